"""Foreign-key resolution for the three source collections.

The builder attaches relationships to freshly loaded records and stamps each
record with its ``doc_type``. Resolution is best-effort: a reference that
matches no record leaves the relationship absent.

Lookups go through an id table built once per collection. When ids repeat,
the first record in collection order wins, which is what a first-match linear
scan over the collection would return.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import logging
from typing import TypeVar

from zen_search.domain.model import DocType, Organization, Ticket, User


logger = logging.getLogger(__name__)

_R = TypeVar("_R", User, Organization, Ticket)


@dataclass(frozen=True)
class EntityGraph:
    """Immutable snapshot of enriched records, in source order."""

    users: tuple[User, ...]
    organizations: tuple[Organization, ...]
    tickets: tuple[Ticket, ...]

    def __len__(self) -> int:
        return len(self.users) + len(self.organizations) + len(self.tickets)


def index_by_id(records: Iterable[_R]) -> dict[str, _R]:
    """Map record id to record, keeping the first record for duplicate ids."""

    table: dict[str, _R] = {}
    duplicates = 0
    for record in records:
        if record.id is None:
            continue
        if record.id in table:
            duplicates += 1
            continue
        table[record.id] = record
    if duplicates:
        logger.warning("Ignored %d records with duplicate ids", duplicates)
    return table


def build_user_graph(
    user: User,
    organizations: dict[str, Organization],
    tickets: Sequence[Ticket],
) -> User:
    """Return a copy of ``user`` with its organization and ticket relations attached."""

    organization = organizations.get(user.organization_id) if user.organization_id is not None else None
    submitted: list[Ticket] = []
    assigned: list[Ticket] = []
    if user.id is not None:
        for ticket in tickets:
            if ticket.submitter_id == user.id:
                submitted.append(ticket)
            if ticket.assignee_id == user.id:
                assigned.append(ticket)

    return user.model_copy(
        update={
            "doc_type": DocType.USER,
            "organization": organization,
            "submitted_tickets": tuple(submitted),
            "assigned_tickets": tuple(assigned),
        }
    )


def build_ticket_graph(
    ticket: Ticket,
    organizations: dict[str, Organization],
    users: dict[str, User],
) -> Ticket:
    """Return a copy of ``ticket`` with its organization, submitter and assignee attached."""

    def resolve(table, key):
        return table.get(key) if key is not None else None

    return ticket.model_copy(
        update={
            "doc_type": DocType.TICKET,
            "organization": resolve(organizations, ticket.organization_id),
            "submitter": resolve(users, ticket.submitter_id),
            "assignee": resolve(users, ticket.assignee_id),
        }
    )


def build_graph(
    users: Sequence[User],
    organizations: Sequence[Organization],
    tickets: Sequence[Ticket],
) -> EntityGraph:
    """Resolve every foreign key across the three raw collections.

    Users and tickets are joined against the raw (unenriched) records of the
    other collections, so nested relations are one level deep.
    """

    organizations_by_id = index_by_id(organizations)
    users_by_id = index_by_id(users)

    enriched_users = tuple(build_user_graph(user, organizations_by_id, tickets) for user in users)
    enriched_organizations = tuple(org.model_copy(update={"doc_type": DocType.ORGANIZATION}) for org in organizations)
    enriched_tickets = tuple(build_ticket_graph(ticket, organizations_by_id, users_by_id) for ticket in tickets)

    logger.info(
        "Built entity graph: %d users, %d organizations, %d tickets",
        len(enriched_users),
        len(enriched_organizations),
        len(enriched_tickets),
    )
    return EntityGraph(
        users=enriched_users,
        organizations=enriched_organizations,
        tickets=enriched_tickets,
    )
