"""Metadata sanitisation for vector-index upserts.

Index backends only accept flat metadata: strings, numbers, booleans and
lists of strings. :func:`sanitize_metadata` walks a mapping and applies an
ordered list of :class:`SanitizerRule` objects to every field; the first
rule that matches decides what happens to the value.

Default rule order
------------------
1. ``scalar``: ``str`` / ``int`` / ``float`` / ``bool`` pass through.
2. ``string_sequence``: lists or tuples made only of strings pass
   through (as a list).
3. ``reserved_key``: structured values under a reserved key (``loc`` by
   default, the positional info attached by LangChain loaders) are
   dropped.
4. ``stringify``: anything else is replaced by ``str(value)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

RESERVED_KEYS: frozenset[str] = frozenset({"loc"})

MetadataValue = str | int | float | bool | list[str]


@dataclass(frozen=True)
class SanitizerRule:
    """One step of the sanitiser.

    Attributes
    ----------
    name:
        Identifier used in logs and tests.
    matches:
        Predicate over ``(key, value)``.
    transform:
        Maps the value to its sanitised form.  ``None`` drops the field.
    """

    name: str
    matches: Callable[[str, Any], bool]
    transform: Callable[[Any], MetadataValue] | None = None

    @property
    def drops(self) -> bool:
        return self.transform is None


def _is_scalar(_key: str, value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def _is_string_sequence(_key: str, value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value)


def _is_structured(value: Any) -> bool:
    return value is None or isinstance(value, (Mapping, list, tuple))


def reserved_key_rule(keys: Iterable[str] = RESERVED_KEYS) -> SanitizerRule:
    """Build a rule dropping structured values stored under any of *keys*."""
    reserved = frozenset(keys)
    return SanitizerRule(
        name="reserved_key",
        matches=lambda key, value: key in reserved and _is_structured(value),
    )


DEFAULT_RULES: tuple[SanitizerRule, ...] = (
    SanitizerRule(name="scalar", matches=_is_scalar, transform=lambda value: value),
    SanitizerRule(name="string_sequence", matches=_is_string_sequence, transform=list),
    reserved_key_rule(),
    SanitizerRule(name="stringify", matches=lambda _key, _value: True, transform=str),
)


def sanitize_metadata(
    metadata: Mapping[str, Any],
    rules: Iterable[SanitizerRule] = DEFAULT_RULES,
) -> dict[str, MetadataValue]:
    """Return a flat, index-safe copy of *metadata*.

    Total over any mapping and idempotent with the default rules.  Keys
    not matched by any rule are left out.  Non-string keys are
    stringified; one that collides with a string key (``1`` vs ``"1"``)
    or with an earlier stringified key is skipped, so the string key
    always keeps its own value.
    """
    rules = tuple(rules)
    string_keys = {key for key in metadata if isinstance(key, str)}
    seen: set[str] = set()
    sanitized: dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            key = str(key)
            if key in string_keys or key in seen:
                logger.debug("Skipping metadata key %r: collides with an existing key", key)
                continue
        seen.add(key)
        for rule in rules:
            if not rule.matches(key, value):
                continue
            if not rule.drops:
                sanitized[key] = rule.transform(value)  # type: ignore[misc]
            break
    return sanitized
