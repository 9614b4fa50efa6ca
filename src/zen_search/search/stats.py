"""BM25 building blocks.

Scores only order hits; callers never see them. Keeping the formulas apart
from the segment lets the query engine score against any set of per-field
document lengths.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math


@dataclass(frozen=True)
class FieldLengthStats:
    """How many documents populate a field and how long they are on average."""

    field: str
    document_count: int
    average_length: float


def compute_field_length_stats(field_lengths: Mapping[str, Mapping[str, int]]) -> dict[str, FieldLengthStats]:
    """Summarize ``{field: {doc_id: term_count}}`` per field."""

    stats: dict[str, FieldLengthStats] = {}
    for field_name, lengths in field_lengths.items():
        count = len(lengths)
        stats[field_name] = FieldLengthStats(
            field=field_name,
            document_count=count,
            average_length=sum(lengths.values()) / count if count else 0.0,
        )
    return stats


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Lucene-style BM25 idf, ``ln(1 + (N - df + 0.5) / (df + 0.5))``; never negative."""

    if total_docs <= 0 or doc_freq <= 0:
        return 0.0
    doc_freq = min(doc_freq, total_docs)
    return math.log1p((total_docs - doc_freq + 0.5) / (doc_freq + 0.5))


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """Term-frequency component of BM25 (multiply by idf for the term score)."""

    if tf <= 0:
        return 0.0
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
    return tf * (k1 + 1) / (tf + k1 * (1 - b + b * length_ratio))
