"""Umbra — synchronous wrapper around :class:`UmbraAsync`."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

from umbra._umbra_async import UmbraAsync

if TYPE_CHECKING:
    from pathlib import Path

    from umbra.config import UmbraConfig
    from umbra.corpus import CorpusProvider
    from umbra.search.protocols import EmbeddingProvider, VectorStore
    from umbra.search.types import SearchResult, SyncResult

logger = logging.getLogger(__name__)


class Umbra:
    """Blocking facade over :class:`UmbraAsync`.

    Runs a private event loop in a daemon thread so the index can be used
    from plain sync code or from inside an existing event loop.

    Usage::

        with Umbra() as umbra:
            umbra.sync_corpus("/notes")
            results = umbra.search("groceries", "/notes")
    """

    def __init__(
        self,
        config: UmbraConfig | None = None,
        *,
        embedding_provider: EmbeddingProvider | None = None,
        store: VectorStore | None = None,
        corpus: CorpusProvider | None = None,
    ) -> None:
        self._closed = False

        # Private event loop in a daemon thread
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._loop.run_forever, daemon=True)
        self._thread.start()

        self._async: UmbraAsync = self._run(
            self._async_init(config, embedding_provider, store, corpus)
        )

    @staticmethod
    async def _async_init(
        config: UmbraConfig | None,
        embedding_provider: EmbeddingProvider | None,
        store: VectorStore | None,
        corpus: CorpusProvider | None,
    ) -> UmbraAsync:
        # Built on the private loop so its locks belong there.
        return UmbraAsync(config, embedding_provider=embedding_provider, store=store, corpus=corpus)

    def _run(self, coro: Any) -> Any:
        """Submit *coro* to the private loop and block for the result."""
        if self._closed:
            coro.close()
            raise RuntimeError("Umbra is closed")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> bool:
        """Open the table and load the model now.  Return availability."""
        return self._run(self._async.open())

    def is_available(self) -> bool:
        """Return False once the table or the model has failed to initialize."""
        return self._async.is_available()

    def close(self) -> None:
        """Stop the event loop and join the thread."""
        if self._closed:
            return
        self._closed = True
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.debug("Umbra event loop stopped")

    def __enter__(self) -> Umbra:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Indexing and search (sync)
    # ------------------------------------------------------------------

    def embed_document(
        self,
        absolute_path: str | Path,
        content: str,
        corpus_root: str | Path,
    ) -> bool:
        """Embed a note unless its content is unchanged."""
        return self._run(self._async.embed_document(absolute_path, content, corpus_root))

    def remove_document(self, absolute_path: str | Path, corpus_root: str | Path) -> None:
        """Remove a note's vector from the table."""
        self._run(self._async.remove_document(absolute_path, corpus_root))

    def sync_corpus(self, corpus_root: str | Path) -> SyncResult:
        """Index every note under *corpus_root* and drop vectors of deleted notes."""
        return self._run(self._async.sync_corpus(corpus_root))

    def search(
        self,
        query: str,
        corpus_root: str | Path,
        limit: int | None = None,
    ) -> list[SearchResult]:
        """Semantic search over indexed notes."""
        return self._run(self._async.search(query, corpus_root, limit))

    @property
    def async_index(self) -> UmbraAsync:
        """Return the wrapped :class:`UmbraAsync`."""
        return self._async
