"""Shape raw hits into display records.

Only the entity's declared fields survive projection; the discriminator,
surrogate key and stored graph paths are dropped. Users and tickets gain
derived fields read from the graph paths that were stored at index time.
A derived field is omitted when its relationship was not resolved. A related
ticket without a subject still takes its position, with an empty string.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from zen_search.domain.model import EntityType
from zen_search.search.query import Hit
from zen_search.search.schema import IndexMapping, create_index_mapping


def _detach(value: Any) -> Any:
    # Lists are shared with the segment; hand out copies
    return list(value) if isinstance(value, list) else value


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _user_fields(stored: Mapping[str, Any]) -> dict[str, Any]:
    derived: dict[str, Any] = {}
    if (organization := stored.get("organization.name")) is not None:
        derived["organization"] = organization
    for position, subject in enumerate(_as_list(stored.get("assigned_tickets.subject"))):
        derived[f"assigned_ticket_{position}"] = subject
    for position, subject in enumerate(_as_list(stored.get("submitted_tickets.subject"))):
        derived[f"submitted_ticket_{position}"] = subject
    return derived


def _ticket_fields(stored: Mapping[str, Any]) -> dict[str, Any]:
    derived: dict[str, Any] = {}
    for target, path in (
        ("organization", "organization.name"),
        ("assignee", "assignee.name"),
        ("submitter", "submitter.name"),
    ):
        if (value := stored.get(path)) is not None:
            derived[target] = value
    return derived


_DERIVED_FIELDS = {
    EntityType.USERS: _user_fields,
    EntityType.TICKETS: _ticket_fields,
}


class ResultProjector:
    """Project hits onto the field set of one entity type."""

    def __init__(self, mapping: IndexMapping | None = None) -> None:
        self.mapping = mapping or create_index_mapping()

    def project(self, hit: Hit, entity_type: EntityType) -> dict[str, Any]:
        schema = self.mapping.schema_for(entity_type.doc_type)
        record = {name: _detach(hit.fields[name]) for name in schema.display_fields if name in hit.fields}
        derive = _DERIVED_FIELDS.get(entity_type)
        if derive is not None:
            record.update(derive(hit.fields))
        return record

    def project_all(self, hits: list[Hit], entity_type: EntityType) -> list[dict[str, Any]]:
        return [self.project(hit, entity_type) for hit in hits]
