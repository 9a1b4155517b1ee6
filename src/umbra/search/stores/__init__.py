"""Vector stores — VectorStore protocol implementations."""

from umbra.search.stores.lance import LanceVectorStore

__all__ = [
    "LanceVectorStore",
]
