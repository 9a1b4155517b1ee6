"""Umbra: a local semantic index for a folder of notes.

Incremental embedding, stale-entry cleanup, and similarity search over a
LanceDB table of sentence-transformer vectors.
"""

__version__ = "0.1.0"

from umbra._umbra import Umbra
from umbra._umbra_async import UmbraAsync, get_umbra
from umbra.config import EMBEDDING_DIM, UmbraConfig
from umbra.corpus import CorpusEntry, CorpusWalk, LocalCorpus
from umbra.exceptions import (
    DimensionMismatchError,
    InitializationError,
    MalformedIdentifierError,
    PathOutsideCorpusError,
    StorageError,
    UmbraError,
)
from umbra.identity import fingerprint, identify, is_valid_identifier, require_identifier
from umbra.indexing import IndexingEngine
from umbra.search._engine import SearchEngine
from umbra.search.protocols import EmbeddingProvider, VectorStore
from umbra.search.stores.lance import LanceVectorStore
from umbra.search.types import (
    SearchOk,
    SearchOutcome,
    SearchResult,
    SearchUnavailable,
    SyncFailure,
    SyncResult,
    VectorHit,
    VectorRecord,
)

__all__ = [
    "EMBEDDING_DIM",
    "CorpusEntry",
    "CorpusWalk",
    "DimensionMismatchError",
    "EmbeddingProvider",
    "IndexingEngine",
    "InitializationError",
    "LanceVectorStore",
    "LocalCorpus",
    "MalformedIdentifierError",
    "PathOutsideCorpusError",
    "SearchEngine",
    "SearchOk",
    "SearchOutcome",
    "SearchResult",
    "SearchUnavailable",
    "StorageError",
    "SyncFailure",
    "SyncResult",
    "Umbra",
    "UmbraAsync",
    "UmbraConfig",
    "UmbraError",
    "VectorHit",
    "VectorRecord",
    "VectorStore",
    "__version__",
    "fingerprint",
    "get_umbra",
    "identify",
    "is_valid_identifier",
    "require_identifier",
]
