"""Custom exception hierarchy for the Umbra indexing and search layers."""


class UmbraError(Exception):
    """Base exception for all Umbra errors."""


class MalformedIdentifierError(UmbraError, ValueError):
    """Raised when an identifier is not a 64-character hex digest.

    Raised before the value reaches any store filter expression.
    """


class InitializationError(UmbraError):
    """Raised when the embedding model or the vector store failed to initialize.

    The original failure is attached as ``__cause__``.  Once a resource has
    failed it is never re-initialized in the same process.
    """


class DimensionMismatchError(UmbraError, ValueError):
    """Raised when a vector's width differs from the table's fixed dimension."""


class PathOutsideCorpusError(UmbraError, ValueError):
    """Raised when a document path does not live under the corpus root."""


class StorageError(UmbraError):
    """Raised on vector store read/write failures (disk I/O, table errors, etc.)."""
