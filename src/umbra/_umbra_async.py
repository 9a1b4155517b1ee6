"""UmbraAsync — async facade wiring the store, embedding model, and engines."""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from umbra.config import UmbraConfig
from umbra.exceptions import InitializationError
from umbra.indexing import IndexingEngine
from umbra.search._engine import SearchEngine
from umbra.search.stores.lance import LanceVectorStore
from umbra.search.types import SearchUnavailable

if TYPE_CHECKING:
    from pathlib import Path

    from umbra.corpus import CorpusProvider
    from umbra.search.protocols import EmbeddingProvider, VectorStore
    from umbra.search.types import SearchResult, SyncResult

logger = logging.getLogger(__name__)


class UmbraAsync:
    """Semantic index over a folder of markdown notes.

    One instance owns one vector table handle and one embedding model
    handle; both are opened lazily and shared by every call.  Use
    :func:`get_umbra` for the process-wide instance.

    Usage::

        umbra = UmbraAsync()
        await umbra.sync_corpus("/notes")
        await umbra.embed_document("/notes/todo.md", text, "/notes")
        results = await umbra.search("groceries", "/notes")
    """

    def __init__(
        self,
        config: UmbraConfig | None = None,
        *,
        embedding_provider: EmbeddingProvider | None = None,
        store: VectorStore | None = None,
        corpus: CorpusProvider | None = None,
    ) -> None:
        self._config = config if config is not None else UmbraConfig.from_env()

        if store is None:
            store = LanceVectorStore(
                self._config.data_dir,
                table_name=self._config.table_name,
                dimension=self._config.dimension,
            )
        if embedding_provider is None:
            from umbra.search.providers.sentence_transformers import (
                SentenceTransformerEmbedding,
            )

            embedding_provider = SentenceTransformerEmbedding(
                self._config.model_name, dimension=self._config.dimension
            )

        self._store = store
        self._embedding_provider = embedding_provider
        self._indexer = IndexingEngine(
            store,
            embedding_provider,
            corpus,
            extension=self._config.extension,
            hidden_prefix=self._config.hidden_prefix,
        )
        self._search_engine = SearchEngine(store, embedding_provider)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> bool:
        """Open the table and load the model now.  Return :meth:`is_available`."""
        for resource in (self._store, self._embedding_provider):
            warm_up = getattr(resource, "warm_up", None)
            if warm_up is None:
                continue
            try:
                await warm_up()
            except InitializationError:
                logger.debug("Warm-up failed for %r", resource, exc_info=True)
        return self.is_available()

    def is_available(self) -> bool:
        """Return False once the table or the model has failed to initialize."""
        return not (
            getattr(self._store, "failed", False)
            or getattr(self._embedding_provider, "failed", False)
        )

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def embed_document(
        self,
        absolute_path: str | Path,
        content: str,
        corpus_root: str | Path,
    ) -> bool:
        """Embed a note unless its content is unchanged.  Return whether it was written."""
        return await self._indexer.embed_document(absolute_path, content, corpus_root)

    async def remove_document(self, absolute_path: str | Path, corpus_root: str | Path) -> None:
        """Remove a note's vector from the table."""
        await self._indexer.remove_document(absolute_path, corpus_root)

    async def sync_corpus(self, corpus_root: str | Path) -> SyncResult:
        """Index every note under *corpus_root* and drop vectors of deleted notes."""
        return await self._indexer.sync_corpus(corpus_root)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        corpus_root: str | Path,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Return notes similar to *query*, nearest first.

        Returns an empty list when search is unavailable.
        """
        if limit is None:
            limit = self._config.default_limit
        outcome = await self._search_engine.search(query, corpus_root, limit)
        if isinstance(outcome, SearchUnavailable):
            return []
        return outcome.results

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> UmbraConfig:
        """Return the active configuration."""
        return self._config

    @property
    def store(self) -> VectorStore:
        """Return the vector store."""
        return self._store

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Return the embedding provider."""
        return self._embedding_provider

    @property
    def indexer(self) -> IndexingEngine:
        """Return the :class:`IndexingEngine`."""
        return self._indexer

    @property
    def search_engine(self) -> SearchEngine:
        """Return the :class:`SearchEngine`."""
        return self._search_engine


@functools.cache
def get_umbra() -> UmbraAsync:
    """Return the process-wide :class:`UmbraAsync`, configured from the environment."""
    return UmbraAsync()
