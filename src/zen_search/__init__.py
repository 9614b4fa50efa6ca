"""In-memory relational search over users, organizations and tickets."""

from zen_search.domain.model import DocType, EntityType
from zen_search.exceptions import (
    BuildError,
    LoadError,
    QueryError,
    SchemaError,
    UnsupportedTypeError,
    ZenSearchError,
)
from zen_search.service_layer.search_service import SearchService


__version__ = "0.1.0"

__all__ = [
    "BuildError",
    "DocType",
    "EntityType",
    "LoadError",
    "QueryError",
    "SchemaError",
    "SearchService",
    "UnsupportedTypeError",
    "ZenSearchError",
    "__version__",
]
