"""Domain layer - typed records and relationship resolution.

No dependency on the index or on file I/O:
- model: entity types, the ``doc_type`` discriminator and the three records
- graph: foreign-key resolution producing an immutable ``EntityGraph``
"""

from zen_search.domain.graph import EntityGraph, build_graph, build_ticket_graph, build_user_graph, index_by_id
from zen_search.domain.model import DocType, EntityType, Organization, Ticket, User


__all__ = [
    "DocType",
    "EntityGraph",
    "EntityType",
    "Organization",
    "Ticket",
    "User",
    "build_graph",
    "build_ticket_graph",
    "build_user_graph",
    "index_by_id",
]
