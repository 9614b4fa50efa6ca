"""Domain model - entity types and typed records.

Records mirror the source JSON collections one-to-one. They are frozen
pydantic models: enrichment produces new instances through ``model_copy``
and nothing mutates a record once it has been indexed.

Identifiers are carried as the decimal text of the source value so that a
JSON number (``113``, or ``113.0``) and a JSON string (``"113"``) refer to the
same record.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from zen_search.exceptions import UnsupportedTypeError


class DocType(str, Enum):
    """Discriminator stamped on every indexed record."""

    USER = "user"
    ORGANIZATION = "organization"
    TICKET = "ticket"


class EntityType(str, Enum):
    """Searchable entity kinds as presented to callers."""

    USERS = "Users"
    ORGANIZATIONS = "Organizations"
    TICKETS = "Tickets"

    @property
    def doc_type(self) -> DocType:
        return _DOC_TYPES[self]

    @classmethod
    def parse(cls, value: "EntityType | str") -> "EntityType":
        """Resolve an entity type from its display name or doc type name.

        Matching is case-insensitive: ``Users``, ``users`` and ``user`` all
        resolve to ``EntityType.USERS``.
        """
        if isinstance(value, EntityType):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for entity_type in cls:
                if normalized in (entity_type.value.lower(), entity_type.doc_type.value):
                    return entity_type
        available = ", ".join(entity_type.value for entity_type in cls)
        raise UnsupportedTypeError(f"Unsupported entity type {value!r}. Available: {available}")


_DOC_TYPES = {
    EntityType.USERS: DocType.USER,
    EntityType.ORGANIZATIONS: DocType.ORGANIZATION,
    EntityType.TICKETS: DocType.TICKET,
}


def _coerce_identifier(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("identifier must be a number or a string, not a boolean")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float, str)):
        return str(value)
    raise ValueError(f"identifier must be a number or a string, got {type(value).__name__}")


def _null_as_empty(value: Any) -> Any:
    return () if value is None else value


Identifier = Annotated[str | None, BeforeValidator(_coerce_identifier)]
# JSON null in a list field reads as an empty list
StringList = Annotated[tuple[str, ...], BeforeValidator(_null_as_empty)]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    doc_type: DocType | None = None


class Organization(_Record):
    """Organization record. Organizations are join targets only."""

    id: Identifier = Field(default=None, alias="_id")
    url: str | None = None
    external_id: str | None = None
    name: str | None = None
    domain_names: StringList = ()
    created_at: str | None = None
    details: str | None = None
    shared_tickets: bool | None = None
    tags: StringList = ()


class User(_Record):
    """User record with its resolved organization and ticket relations."""

    id: Identifier = Field(default=None, alias="_id")
    url: str | None = None
    external_id: str | None = None
    name: str | None = None
    alias: str | None = None
    created_at: str | None = None
    active: bool | None = None
    shared: bool | None = None
    verified: bool | None = None
    locale: str | None = None
    timezone: str | None = None
    last_login_at: str | None = None
    email: str | None = None
    phone: str | None = None
    signature: str | None = None
    organization_id: Identifier = None
    tags: StringList = ()
    suspended: bool | None = None
    role: str | None = None

    organization: Organization | None = None
    submitted_tickets: tuple["Ticket", ...] = ()
    assigned_tickets: tuple["Ticket", ...] = ()


class Ticket(_Record):
    """Ticket record with its resolved organization, submitter and assignee."""

    id: Identifier = Field(default=None, alias="_id")
    url: str | None = None
    external_id: str | None = None
    created_at: str | None = None
    type: str | None = None
    subject: str | None = None
    description: str | None = None
    priority: str | None = None
    status: str | None = None
    tags: StringList = ()
    has_incidents: bool | None = None
    due_at: str | None = None
    via: str | None = None
    submitter_id: Identifier = None
    assignee_id: Identifier = None
    organization_id: Identifier = None

    organization: Organization | None = None
    submitter: User | None = None
    assignee: User | None = None


User.model_rebuild()
Ticket.model_rebuild()
