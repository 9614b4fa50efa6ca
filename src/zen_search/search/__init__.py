"""
Search indexing and query engine package.

This package provides a pure-Python, in-memory search stack:
- analyzers: Tokenizers and filters (lowercase, stop, stemming)
- schema: Field types, per-entity schemas and the index mapping
- storage: Postings storage and immutable index segments
- indexer: Builds a segment from an enriched entity graph
- stats: BM25 scoring statistics
- query: Single-field match queries scoped to one doc type
- projection: Display records with derived relationship fields
"""
