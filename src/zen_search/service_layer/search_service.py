"""Search service orchestration layer.

Runs the load -> enrich -> index pipeline once per instance and then answers
read-only queries for the selected entity type. The built index belongs to
the instance; searching a new dataset means creating a new service.
"""

from __future__ import annotations

import logging
from typing import Any

from zen_search.adapters.file_reader import FileReader, LocalFileReader, load_collection
from zen_search.config import Settings
from zen_search.domain.graph import build_graph
from zen_search.domain.model import EntityType, Organization, Ticket, User
from zen_search.exceptions import BuildError, QueryError, SchemaError
from zen_search.observability.context import trace_context, update_trace_context
from zen_search.observability.metrics import QUERY_COUNT, QUERY_LATENCY, track_latency
from zen_search.observability.tracing import create_span
from zen_search.search.indexer import IndexBuilder
from zen_search.search.projection import ResultProjector
from zen_search.search.query import MatchQuery, QueryEngine
from zen_search.search.schema import IndexMapping, create_index_mapping, fields_for


logger = logging.getLogger(__name__)


class SearchService:
    """High-level entry point used by the CLI.

    Lifecycle: ``initialize`` once, then any number of ``search`` and
    ``list_fields`` calls. A failed ``initialize`` leaves the service
    not-ready and may be retried.
    """

    def __init__(self, reader: FileReader | None = None, settings: Settings | None = None) -> None:
        """Initialize the service with its collaborators.

        Args:
            reader: File access capability (default: local filesystem)
            settings: Configuration (default: loaded from the environment)
        """
        self.settings = settings or Settings()
        self.reader = reader or LocalFileReader()
        self._entity_type: EntityType | None = None
        self._mapping: IndexMapping | None = None
        self._engine: QueryEngine | None = None
        self._projector: ResultProjector | None = None

    @property
    def is_ready(self) -> bool:
        return self._engine is not None

    @property
    def entity_type(self) -> EntityType | None:
        return self._entity_type

    def initialize(self, entity_type: EntityType | str) -> None:
        """Load, enrich and index the three collections for ``entity_type`` searches.

        Raises:
            SchemaError: If ``entity_type`` is unknown (no file is read).
            LoadError: If a collection cannot be read or parsed.
            BuildError: If the index cannot be built, or the service is
                already initialized.
        """
        resolved = EntityType.parse(entity_type)
        if self.is_ready:
            raise BuildError("Search service is already initialized; create a new instance to rebuild")

        token = update_trace_context(entity_type=resolved.value)
        try:
            with create_span("zen_search.initialize", attributes={"search.entity_type": resolved.value}):
                try:
                    mapping = create_index_mapping(self.settings.text_analyzer)
                except SchemaError as exc:
                    raise BuildError(f"Invalid index mapping: {exc}") from exc

                users = load_collection(self.reader, self.settings.users_path, User)
                organizations = load_collection(self.reader, self.settings.organizations_path, Organization)
                tickets = load_collection(self.reader, self.settings.tickets_path, Ticket)

                graph = build_graph(users, organizations, tickets)
                segment = IndexBuilder(mapping).build(graph)

            self._mapping = mapping
            self._projector = ResultProjector(mapping)
            self._engine = QueryEngine(segment)
            self._entity_type = resolved
            logger.info("Search service ready for %s (%d documents indexed)", resolved.value, segment.doc_count)
        finally:
            trace_context.reset(token)

    def list_fields(self, entity_type: EntityType | str | None = None) -> list[str]:
        """Return the searchable fields of ``entity_type`` (default: the active type)."""
        if entity_type is None:
            if self._entity_type is None:
                raise SchemaError("No entity type selected; pass one or initialize the service first")
            entity_type = self._entity_type
        return fields_for(entity_type)

    def search(self, field_name: str, value: Any) -> list[dict[str, Any]]:
        """Return display records of the active type whose ``field_name`` matches ``value``.

        An empty list means no record matched.

        Raises:
            QueryError: If the service is not initialized or the field is not
                searchable for the active entity type.
        """
        if self._engine is None or self._entity_type is None or self._projector is None:
            raise QueryError("Search service is not initialized")

        entity_type = self._entity_type
        query = MatchQuery(field=field_name, value=value, operator=self.settings.match_operator)
        status = "error"
        token = update_trace_context(entity_type=entity_type.value)
        try:
            with (
                create_span(
                    "zen_search.search",
                    attributes={"search.entity_type": entity_type.value, "search.field": field_name},
                ) as span,
                track_latency(QUERY_LATENCY, entity_type=entity_type.value),
            ):
                hits = self._engine.search(query, doc_type=entity_type.doc_type)
                if self.settings.max_results:
                    hits = hits[: self.settings.max_results]
                results = self._projector.project_all(hits, entity_type)
                span.set_attribute("search.results", len(results))
            status = "hit" if results else "empty"
        finally:
            QUERY_COUNT.labels(entity_type=entity_type.value, status=status).inc()
            trace_context.reset(token)

        logger.debug("Search %s %s=%r returned %d records", entity_type.value, field_name, value, len(results))
        return results
