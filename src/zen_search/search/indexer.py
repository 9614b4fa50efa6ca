"""Index construction over an enriched entity graph.

Records are flattened into dotted field paths (``organization.name``,
``assigned_tickets.subject``) so nested relations survive as stored values,
then handed to a ``SegmentWriter`` that applies each type's schema.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError

from zen_search.domain.graph import EntityGraph
from zen_search.exceptions import BuildError
from zen_search.observability.metrics import INDEX_BUILD_LATENCY, INDEX_DOC_COUNT, track_latency
from zen_search.observability.tracing import create_span
from zen_search.search.schema import IndexMapping, create_index_mapping
from zen_search.search.storage import IndexSegment, SegmentWriter, StorageError


logger = logging.getLogger(__name__)


def flatten_document(data: Mapping[str, Any], *, missing: Any = "") -> dict[str, Any]:
    """Flatten nested mappings into dotted paths.

    Values reached through a list of mappings are collected into a list per
    path, in list order: ``{"tickets": [{"subject": "a"}, {"subject": "b"}]}``
    becomes ``{"tickets.subject": ["a", "b"]}``. A null inside such a list is
    collected as ``missing`` so scalar paths stay aligned with the source
    list; everywhere else nulls are dropped.
    """

    flat: dict[str, Any] = {}

    def visit(value: Any, path: str, many: bool) -> None:
        if isinstance(value, Mapping):
            for key, child in value.items():
                visit(child, f"{path}.{key}" if path else key, many)
        elif isinstance(value, list) and any(isinstance(item, Mapping) for item in value):
            for item in value:
                visit(item, path, True)
        elif many:
            collected = flat.setdefault(path, [])
            if value is None:
                collected.append(missing)
            else:
                collected.extend(value if isinstance(value, list) else [value])
        elif value is not None:
            flat[path] = value

    visit(data, "", False)
    return flat


def serialize_record(record: BaseModel) -> dict[str, Any]:
    """Dump an enriched record to flattened, JSON-compatible fields."""

    try:
        data = record.model_dump(mode="json", by_alias=True)
    except PydanticSerializationError as exc:
        raise StorageError(f"Record could not be serialized: {exc}") from exc
    return flatten_document(data)


class IndexBuilder:
    """Build one immutable segment spanning users, organizations and tickets."""

    def __init__(self, mapping: IndexMapping | None = None) -> None:
        self.mapping = mapping or create_index_mapping()

    def build(self, graph: EntityGraph) -> IndexSegment:
        """Index every record of ``graph``.

        Raises:
            BuildError: If a record cannot be serialized or indexed.
        """

        with (
            create_span("zen_search.index.build", attributes={"index.records": len(graph)}),
            track_latency(INDEX_BUILD_LATENCY),
        ):
            writer = SegmentWriter(self.mapping)
            self._add_records(writer, graph.users)
            self._add_records(writer, graph.organizations)
            self._add_records(writer, graph.tickets)
            segment = writer.build()

        counts = segment.count_by_type()
        for doc_type in self.mapping.schemas:
            INDEX_DOC_COUNT.labels(doc_type=doc_type.value).set(counts.get(doc_type.value, 0))
        logger.info("Indexed %d documents (%s)", segment.doc_count, counts)
        return segment

    def _add_records(self, writer: SegmentWriter, records: Iterable[BaseModel]) -> None:
        for position, record in enumerate(records):
            try:
                writer.add_document(serialize_record(record))
            except StorageError as exc:
                doc_type = getattr(record, "doc_type", None)
                label = doc_type.value if doc_type is not None else type(record).__name__
                raise BuildError(f"Failed to index {label} #{position} (id={getattr(record, 'id', None)!r}): {exc}") from exc
