"""
Serving: FastAPI application for ingestion and search.

This module exposes the pipelines over HTTP so they can be deployed as
a standalone container.
"""
