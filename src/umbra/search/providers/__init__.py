"""Embedding providers — protocol and implementations."""

from umbra.search.protocols import EmbeddingProvider
from umbra.search.providers.sentence_transformers import SentenceTransformerEmbedding

__all__ = [
    "EmbeddingProvider",
    "SentenceTransformerEmbedding",
]
