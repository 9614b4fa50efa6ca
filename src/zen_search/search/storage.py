"""In-memory postings storage for the combined entity index.

* ``SegmentWriter`` - accepts flattened, ``doc_type``-stamped documents and
  analyzes each field with the analyzer its schema declares.
* ``IndexSegment`` - immutable result of a build: postings per field and term,
  stored field values per document, and field lengths for scoring.

Every document is keyed by a fresh surrogate key, never by its business id,
so records of different types sharing an id stay distinct. The API mirrors
Whoosh's segment writer/reader split.
"""

from __future__ import annotations

from array import array
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
import logging
from typing import Any
from uuid import uuid4

from zen_search.domain.model import DocType
from zen_search.exceptions import SchemaError
from zen_search.search.analyzers import Token
from zen_search.search.schema import IndexMapping, KeywordField, SchemaField, TextField


logger = logging.getLogger(__name__)

# Keeps phrase-like positions of separate list entries apart
_POSITION_GAP = 100

_SCALAR_TYPES = (str, int, float, bool)


class StorageError(ValueError):
    """Raised when invalid documents or operations are encountered."""


@dataclass(frozen=True, slots=True)
class Posting:
    """Represents a postings entry for a term within a field.

    Frequency is derived from len(positions).
    """

    doc_id: str
    positions: array

    @property
    def frequency(self) -> int:
        return len(self.positions)


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """Immutable, queryable snapshot of every indexed document.

    ``stored_fields`` preserves insertion order, which is the tie-break order
    for equally scored hits.
    """

    mapping: IndexMapping
    postings: dict[str, dict[str, list[Posting]]]
    stored_fields: dict[str, dict[str, Any]]
    field_lengths: dict[str, dict[str, int]]
    segment_id: str = field(default_factory=lambda: uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def doc_count(self) -> int:
        return len(self.stored_fields)

    def get_document(self, doc_id: str) -> dict[str, Any] | None:
        return self.stored_fields.get(doc_id)

    def get_postings(self, field_name: str, term: str) -> list[Posting]:
        """Return postings for a specific term in a field."""
        return self.postings.get(field_name, {}).get(term, [])

    def doc_type_of(self, doc_id: str) -> str | None:
        stored = self.stored_fields.get(doc_id)
        if stored is None:
            return None
        return stored.get(self.mapping.type_field)

    def count_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for stored in self.stored_fields.values():
            counts[stored[self.mapping.type_field]] += 1
        return dict(counts)


def keyword_text(value: Any) -> str:
    """Render a scalar the way keyword fields index it.

    Booleans become JSON literals and integral floats drop their fraction, so
    ``100.0`` matches an id stored as ``"100"``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_values(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return [value]


def _normalize_stored_value(field_name: str, value: Any) -> Any:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, (list, tuple)):
        if all(isinstance(item, _SCALAR_TYPES) for item in value):
            return list(value)
    msg = f"Field '{field_name}' holds a value that cannot be stored: {value!r}"
    raise StorageError(msg)


class SegmentWriter:
    """Builds an index segment from flattened documents of any registered type."""

    def __init__(self, mapping: IndexMapping, *, segment_id: str | None = None) -> None:
        self.mapping = mapping
        self.segment_id = segment_id or uuid4().hex
        self.created_at = datetime.now(timezone.utc)
        # field -> term -> doc key -> positions
        self._postings: defaultdict[str, defaultdict[str, defaultdict[str, list[int]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(list))
        )
        self._field_lengths: defaultdict[str, dict[str, int]] = defaultdict(dict)
        self._stored_fields: dict[str, dict[str, Any]] = {}

    def add_document(self, document: Mapping[str, Any]) -> str:
        """Index one document and return its surrogate key.

        ``document`` maps field names (dotted paths for nested values) to
        JSON-compatible values and must carry the mapping's type field.
        """
        doc_type = self._resolve_doc_type(document)
        try:
            schema = self.mapping.schema_for(doc_type)
        except SchemaError as exc:
            raise StorageError(str(exc)) from exc

        doc_key = uuid4().hex
        stored: dict[str, Any] = {self.mapping.type_field: doc_type.value}
        analyzed: list[tuple[str, list[Token]]] = []
        for schema_field in schema.fields:
            value = document.get(schema_field.name)
            if value is None or value == []:
                continue
            if schema_field.stored:
                stored[schema_field.name] = _normalize_stored_value(schema_field.name, value)
            if schema_field.indexed:
                tokens = self._analyze_field(schema_field, value)
                if tokens:
                    analyzed.append((schema_field.name, tokens))

        # Only touch shared state once the whole document analyzed cleanly
        for field_name, tokens in analyzed:
            self._field_lengths[field_name][doc_key] = len(tokens)
            for token in tokens:
                self._postings[field_name][token.text][doc_key].append(token.position)
        self._postings[self.mapping.type_field][doc_type.value][doc_key].append(0)
        self._stored_fields[doc_key] = stored
        return doc_key

    def build(self) -> IndexSegment:
        """Freeze everything added so far into a segment."""
        postings = {
            field_name: {
                term: [Posting(doc_id, array("I", positions)) for doc_id, positions in by_doc.items()]
                for term, by_doc in terms.items()
            }
            for field_name, terms in self._postings.items()
        }
        logger.debug("Segment %s: %d documents, %d fields", self.segment_id, len(self._stored_fields), len(postings))
        return IndexSegment(
            mapping=self.mapping,
            postings=postings,
            stored_fields=dict(self._stored_fields),
            field_lengths={name: dict(lengths) for name, lengths in self._field_lengths.items()},
            segment_id=self.segment_id,
            created_at=self.created_at,
        )

    def _resolve_doc_type(self, document: Mapping[str, Any]) -> DocType:
        raw = document.get(self.mapping.type_field)
        if raw is None:
            msg = f"Document missing type field '{self.mapping.type_field}'"
            raise StorageError(msg)
        try:
            return DocType(raw)
        except ValueError as exc:
            msg = f"Unknown doc type {raw!r}"
            raise StorageError(msg) from exc

    def _analyze_field(self, schema_field: SchemaField, value: Any) -> list[Token]:
        values = _as_values(value)
        for item in values:
            if not isinstance(item, _SCALAR_TYPES):
                msg = f"Field '{schema_field.name}' holds a value that cannot be indexed: {item!r}"
                raise StorageError(msg)

        analyzer = self.mapping.analyzer_for(schema_field)
        if isinstance(schema_field, KeywordField):
            rendered = [keyword_text(item) for item in values]
        elif isinstance(schema_field, TextField):
            rendered = [str(item) for item in values]
        else:
            return []

        tokens: list[Token] = []
        offset = 0
        for entry in rendered:
            entry_tokens = analyzer(entry)
            for token in entry_tokens:
                tokens.append(replace(token, position=offset + token.position))
            if entry_tokens:
                offset = tokens[-1].position + _POSITION_GAP
        return tokens
