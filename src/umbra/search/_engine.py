"""SearchEngine — query embedding, ranking, dedupe, and path mapping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from umbra.identity import to_absolute_path
from umbra.search.types import SearchOk, SearchResult, SearchUnavailable

if TYPE_CHECKING:
    from pathlib import Path

    from umbra.search.protocols import EmbeddingProvider, VectorStore
    from umbra.search.types import SearchOutcome, VectorHit

logger = logging.getLogger(__name__)


class SearchEngine:
    """Runs free-text queries against the vector table.

    Search is best-effort: :meth:`search` never raises.  Failures (model or
    table unavailable, query errors) come back as :class:`SearchUnavailable`
    so callers can tell "no matches" from "search is down"; the facades
    collapse both to an empty list.
    """

    def __init__(self, store: VectorStore, embedding_provider: EmbeddingProvider) -> None:
        self._store = store
        self._embedding_provider = embedding_provider

    async def search(
        self,
        query: str,
        corpus_root: str | Path,
        limit: int = 10,
    ) -> SearchOutcome:
        """Return notes under *corpus_root* nearest to *query*.

        Results are ordered by ascending distance, deduplicated by path
        (first hit wins), and carry the raw distance as ``score``.
        """
        query = query.strip()
        if not query or limit <= 0:
            return SearchOk([])

        try:
            vector = await self._embedding_provider.embed(query)
            hits = await self._store.nearest(vector, limit)
            results = self._to_results(hits, corpus_root)
        except Exception as exc:
            logger.warning("Vector search failed for %r", query, exc_info=True)
            return SearchUnavailable(reason=str(exc) or type(exc).__name__)

        return SearchOk(results)

    @staticmethod
    def _to_results(hits: list[VectorHit], corpus_root: str | Path) -> list[SearchResult]:
        seen: set[str] = set()
        results: list[SearchResult] = []
        for hit in sorted(hits, key=lambda h: h.distance):
            path = to_absolute_path(hit.record.path, corpus_root)
            if path in seen:
                continue
            seen.add(path)
            results.append(SearchResult(path=path, score=hit.distance))
        return results

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def store(self) -> VectorStore:
        """Return the underlying :class:`VectorStore`."""
        return self._store

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        """Return the :class:`EmbeddingProvider`."""
        return self._embedding_provider
