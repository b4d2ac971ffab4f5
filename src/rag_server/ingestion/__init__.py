"""
Ingestion: document loading, chunking, metadata sanitisation, embedding
and upsert into the vector index.

This module is responsible for the ETL-like pipeline that converts raw
documents (Markdown files, fetched PDFs) into embedded chunks stored in
a vector index.
"""
