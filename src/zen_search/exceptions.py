"""Error hierarchy shared by every phase of the search pipeline.

Each phase raises exactly one kind of error so callers can tell a bad dataset
(``LoadError``) from a bad request (``SchemaError``/``QueryError``) without
inspecting messages:

- LoadError: data files missing, unreadable or malformed
- SchemaError: unknown entity type (raised before any I/O)
- BuildError: index construction failed; the service stays not-ready
- QueryError: a single query could not execute; the service stays usable
"""


class ZenSearchError(Exception):
    """Base class for all search service errors."""


class LoadError(ZenSearchError):
    """Raised when a source collection cannot be read or deserialized."""


class SchemaError(ZenSearchError):
    """Raised when an entity type or schema definition is invalid."""


class UnsupportedTypeError(SchemaError):
    """Raised when an entity type is not registered."""


class BuildError(ZenSearchError):
    """Raised when the index cannot be constructed."""


class QueryError(ZenSearchError):
    """Raised when a query cannot be executed against the index."""
