"""Schema definitions and the per-entity schema registry.

Field types follow Whoosh's schema module:
- TextField: analyzed free text (tokenized, lowercased, stemmed)
- KeywordField: exact-match values (ids, foreign keys, boolean flags)
- StoredField: values kept with the document but not searchable

Each entity type owns one ``Schema`` whose searchable fields are listed in
the entity's natural attribute order. Stored-only fields carry enrichment
values (related names and subjects) from the graph into search hits, where
the result projector reads them back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from zen_search.domain.model import DocType, EntityType
from zen_search.exceptions import SchemaError, UnsupportedTypeError
from zen_search.search.analyzers import Analyzer, KeywordAnalyzer, get_analyzer


DOC_TYPE_FIELD = "doc_type"


class FieldType(str, Enum):
    """Types of fields supported in the schema."""

    TEXT = "text"
    KEYWORD = "keyword"
    STORED = "stored"


@dataclass(frozen=True)
class SchemaField(ABC):
    """Base class for all schema fields."""

    name: str
    stored: bool = True
    indexed: bool = True

    @property
    @abstractmethod
    def field_type(self) -> FieldType:
        """Return the field type."""


@dataclass(frozen=True)
class TextField(SchemaField):
    """
    Analyzed text field for full-text search.

    Use for names, subjects, descriptions, tags and other free text. A query
    value matches when it shares a normalized token with the field.

    Args:
        name: Field name (e.g., "subject", "tags")
        analyzer_name: Analyzer to use (default: None = the mapping's default)
    """

    analyzer_name: str | None = None

    @property
    def field_type(self) -> FieldType:
        return FieldType.TEXT


@dataclass(frozen=True)
class KeywordField(SchemaField):
    """
    Exact-match keyword field.

    Values are indexed as-is, one term per value. Use for:
    - Identifiers and foreign keys
    - Boolean flags (indexed as ``true``/``false``)
    """

    @property
    def field_type(self) -> FieldType:
        return FieldType.KEYWORD


@dataclass(frozen=True)
class StoredField(SchemaField):
    """
    Stored-only field (not indexed).

    The name may be a dotted path into the enriched record, such as
    ``organization.name`` or ``assigned_tickets.subject``.
    """

    stored: bool = field(default=True, init=False)
    indexed: bool = field(default=False, init=False)

    @property
    def field_type(self) -> FieldType:
        return FieldType.STORED


@dataclass
class Schema:
    """Field layout of one document type within the shared index."""

    doc_type: DocType
    fields: list[SchemaField]

    def __post_init__(self) -> None:
        self._field_map: dict[str, SchemaField] = {}
        for schema_field in self.fields:
            if schema_field.name == DOC_TYPE_FIELD:
                raise SchemaError(f"'{DOC_TYPE_FIELD}' is reserved for the type discriminator")
            if schema_field.name in self._field_map:
                raise SchemaError(f"Duplicate field '{schema_field.name}' in schema '{self.doc_type.value}'")
            self._field_map[schema_field.name] = schema_field

    def __getitem__(self, name: str) -> SchemaField:
        return self._field_map[name]

    def __contains__(self, name: object) -> bool:
        return name in self._field_map

    def __iter__(self) -> Iterator[SchemaField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def display_fields(self) -> list[str]:
        """Searchable field names in declared order."""
        return [f.name for f in self.fields if not isinstance(f, StoredField)]

    @property
    def stored_paths(self) -> list[str]:
        """Stored-only graph paths carried into search hits."""
        return [f.name for f in self.fields if isinstance(f, StoredField)]


@dataclass(frozen=True)
class IndexMapping:
    """Bundles the per-type schemas that share one index.

    Text fields without an explicit analyzer use ``default_analyzer``; keyword
    fields always use the keyword analyzer.
    """

    schemas: Mapping[DocType, Schema]
    default_analyzer: str = "english"
    type_field: str = DOC_TYPE_FIELD
    _analyzers: dict[str | None, Analyzer] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schemas", MappingProxyType(dict(self.schemas)))
        analyzers: dict[str | None, Analyzer] = {None: KeywordAnalyzer()}
        for schema in self.schemas.values():
            for schema_field in schema:
                if isinstance(schema_field, TextField):
                    name = schema_field.analyzer_name or self.default_analyzer
                    if name not in analyzers:
                        try:
                            analyzers[name] = get_analyzer(name)
                        except ValueError as exc:
                            raise SchemaError(str(exc)) from exc
        object.__setattr__(self, "_analyzers", analyzers)

    def schema_for(self, doc_type: DocType) -> Schema:
        try:
            return self.schemas[doc_type]
        except KeyError:
            raise SchemaError(f"No schema registered for doc type '{doc_type.value}'") from None

    def analyzer_for(self, schema_field: SchemaField) -> Analyzer:
        """Return the analyzer that indexes and queries ``schema_field``."""
        if isinstance(schema_field, TextField):
            return self._analyzers[schema_field.analyzer_name or self.default_analyzer]
        return self._analyzers[None]


def create_user_schema() -> Schema:
    return Schema(
        doc_type=DocType.USER,
        fields=[
            KeywordField("_id"),
            TextField("url"),
            KeywordField("external_id"),
            TextField("name"),
            TextField("alias"),
            TextField("created_at"),
            KeywordField("active"),
            KeywordField("shared"),
            KeywordField("verified"),
            TextField("locale"),
            TextField("timezone"),
            TextField("last_login_at"),
            TextField("email"),
            TextField("phone"),
            TextField("signature"),
            KeywordField("organization_id"),
            TextField("tags"),
            KeywordField("suspended"),
            TextField("role"),
            StoredField("organization.name"),
            StoredField("submitted_tickets.subject"),
            StoredField("assigned_tickets.subject"),
        ],
    )


def create_organization_schema() -> Schema:
    return Schema(
        doc_type=DocType.ORGANIZATION,
        fields=[
            KeywordField("_id"),
            TextField("url"),
            KeywordField("external_id"),
            TextField("name"),
            TextField("domain_names"),
            TextField("created_at"),
            TextField("details"),
            KeywordField("shared_tickets"),
            TextField("tags"),
        ],
    )


def create_ticket_schema() -> Schema:
    return Schema(
        doc_type=DocType.TICKET,
        fields=[
            KeywordField("_id"),
            TextField("url"),
            KeywordField("external_id"),
            TextField("created_at"),
            TextField("type"),
            TextField("subject"),
            TextField("description"),
            TextField("priority"),
            TextField("status"),
            TextField("tags"),
            KeywordField("has_incidents"),
            TextField("due_at"),
            TextField("via"),
            KeywordField("submitter_id"),
            KeywordField("assignee_id"),
            KeywordField("organization_id"),
            StoredField("organization.name"),
            StoredField("submitter.name"),
            StoredField("assignee.name"),
        ],
    )


_SCHEMA_FACTORIES = {
    DocType.USER: create_user_schema,
    DocType.ORGANIZATION: create_organization_schema,
    DocType.TICKET: create_ticket_schema,
}


def create_index_mapping(default_analyzer: str = "english") -> IndexMapping:
    """Create the mapping for the combined users/organizations/tickets index."""

    return IndexMapping(
        schemas={doc_type: factory() for doc_type, factory in _SCHEMA_FACTORIES.items()},
        default_analyzer=default_analyzer,
    )


def fields_for(entity_type: EntityType | str) -> list[str]:
    """Return the searchable field names of an entity type in declared order.

    Raises:
        UnsupportedTypeError: If the entity type is not registered.
    """

    resolved = EntityType.parse(entity_type)
    factory = _SCHEMA_FACTORIES.get(resolved.doc_type)
    if factory is None:  # pragma: no cover - every EntityType has a schema
        raise UnsupportedTypeError(f"No schema registered for '{resolved.value}'")
    return factory().display_fields
