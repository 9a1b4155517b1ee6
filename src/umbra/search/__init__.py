"""Vector search layer — engine, store, embedding provider, filters."""

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
    "EmbeddingProvider",
    "LanceVectorStore",
    "SearchEngine",
    "SearchOk",
    "SearchOutcome",
    "SearchResult",
    "SearchUnavailable",
    "SyncFailure",
    "SyncResult",
    "VectorHit",
    "VectorRecord",
    "VectorStore",
]
