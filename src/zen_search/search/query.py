"""Single-field match queries against an index segment.

A match query analyzes its value with the analyzer of the queried field, so
keyword fields match on the whole value and text fields match on normalized
tokens. Hits are ranked by BM25 (ties keep index insertion order) and then
scoped to one document type: the segment is shared by every entity type, so
hits of other types are dropped after matching.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass
import logging
from types import MappingProxyType
from typing import Any, Literal

from zen_search.domain.model import DocType
from zen_search.exceptions import QueryError, SchemaError
from zen_search.search.schema import KeywordField, SchemaField
from zen_search.search.stats import bm25, calculate_idf, compute_field_length_stats
from zen_search.search.storage import IndexSegment, keyword_text


logger = logging.getLogger(__name__)

MatchOperator = Literal["or", "and"]


@dataclass(frozen=True)
class MatchQuery:
    """Match ``value`` against one field.

    With ``operator="or"`` a document matches when it contains any analyzed
    query term; with ``"and"`` it must contain all of them.
    """

    field: str
    value: Any
    operator: MatchOperator = "or"


@dataclass(frozen=True)
class Hit:
    """A scored document returned by the query engine."""

    doc_id: str
    doc_type: DocType
    score: float
    fields: Mapping[str, Any]


class QueryEngine:
    """Execute match queries against an immutable segment."""

    def __init__(self, segment: IndexSegment, *, k1: float = 1.2, b: float = 0.75) -> None:
        self.segment = segment
        self.mapping = segment.mapping
        self.k1 = k1
        self.b = b
        self._field_stats = compute_field_length_stats(segment.field_lengths)
        self._doc_order = {doc_id: ordinal for ordinal, doc_id in enumerate(segment.stored_fields)}

    def analyze(self, schema_field: SchemaField, value: Any) -> tuple[str, ...]:
        """Return the distinct query terms for ``value``, in query order."""

        text = keyword_text(value) if isinstance(schema_field, KeywordField) else str(value)
        analyzer = self.mapping.analyzer_for(schema_field)
        terms: list[str] = []
        for token in analyzer(text):
            if token.text and token.text not in terms:
                terms.append(token.text)
        return tuple(terms)

    def search(self, query: MatchQuery, *, doc_type: DocType) -> list[Hit]:
        """Return hits of ``doc_type`` matching ``query``, best first.

        Raises:
            QueryError: If the field is not searchable for ``doc_type`` or the
                query value is missing.
        """

        schema_field = self._resolve_field(query.field, doc_type)
        if query.value is None:
            raise QueryError(f"Missing value for field '{query.field}'")

        terms = self.analyze(schema_field, query.value)
        if not terms:
            logger.debug("Query value %r produced no terms for field '%s'", query.value, query.field)
            return []

        ranked = self._score(query.field, terms, query.operator)
        hits: list[Hit] = []
        discarded = 0
        for doc_id, score in ranked:
            stored = self.segment.stored_fields[doc_id]
            if stored.get(self.mapping.type_field) != doc_type.value:
                discarded += 1
                continue
            hits.append(Hit(doc_id=doc_id, doc_type=doc_type, score=score, fields=MappingProxyType(stored)))

        logger.debug(
            "Query %s=%r matched %d %s documents (%d of other types discarded)",
            query.field,
            query.value,
            len(hits),
            doc_type.value,
            discarded,
        )
        return hits

    def _resolve_field(self, field_name: str, doc_type: DocType) -> SchemaField:
        try:
            schema = self.mapping.schema_for(doc_type)
        except SchemaError as exc:
            raise QueryError(str(exc)) from exc
        if field_name not in schema or not schema[field_name].indexed:
            available = ", ".join(schema.display_fields)
            raise QueryError(f"Unknown search field '{field_name}' for {doc_type.value}. Available: {available}")
        return schema[field_name]

    def _score(self, field_name: str, terms: tuple[str, ...], operator: MatchOperator) -> list[tuple[str, float]]:
        stats = self._field_stats.get(field_name)
        if stats is None:
            return []

        total_docs = max(self.segment.doc_count, 1)
        doc_lengths = self.segment.field_lengths.get(field_name, {})
        scores: dict[str, float] = defaultdict(float)
        matched_terms: dict[str, int] = defaultdict(int)

        for term in terms:
            postings = self.segment.get_postings(field_name, term)
            if not postings:
                continue
            idf = calculate_idf(len(postings), total_docs)
            for posting in postings:
                doc_length = doc_lengths.get(posting.doc_id, posting.frequency)
                weight = bm25(posting.frequency, doc_length, stats.average_length, k1=self.k1, b=self.b)
                scores[posting.doc_id] += idf * weight
                matched_terms[posting.doc_id] += 1

        if operator == "and":
            scores = {doc_id: score for doc_id, score in scores.items() if matched_terms[doc_id] == len(terms)}

        return sorted(scores.items(), key=lambda item: (-item[1], self._doc_order[item[0]]))
