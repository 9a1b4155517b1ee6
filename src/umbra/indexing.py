"""IndexingEngine — incremental embed, remove, and full-corpus sync."""

from __future__ import annotations

import logging
import os
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from umbra.config import DEFAULT_EXTENSION, DEFAULT_HIDDEN_PREFIX
from umbra.corpus import LocalCorpus
from umbra.exceptions import InitializationError
from umbra.identity import document_id, fingerprint, is_valid_identifier, normalize_relative_path
from umbra.search.types import SyncFailure, SyncResult, VectorRecord

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from umbra.corpus import CorpusProvider
    from umbra.search.protocols import EmbeddingProvider, VectorStore

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


class IndexingEngine:
    """Keeps the vector table in step with a corpus of notes.

    Embedding only happens when a note's content hash differs from the one
    stored for its path.  Store and initialization errors propagate to the
    caller of :meth:`embed_document` and :meth:`remove_document`; during
    :meth:`sync_corpus` per-document failures are logged and collected
    instead.
    """

    def __init__(
        self,
        store: VectorStore,
        embedding_provider: EmbeddingProvider,
        corpus: CorpusProvider | None = None,
        *,
        extension: str = DEFAULT_EXTENSION,
        hidden_prefix: str = DEFAULT_HIDDEN_PREFIX,
        clock: Callable[[], int] = _now_millis,
    ) -> None:
        self._store = store
        self._embedding_provider = embedding_provider
        self._corpus = corpus if corpus is not None else LocalCorpus()
        self._extension = extension
        self._hidden_prefix = hidden_prefix
        self._clock = clock

    # ------------------------------------------------------------------
    # Single-document operations
    # ------------------------------------------------------------------

    async def embed_document(
        self,
        absolute_path: str | Path,
        content: str,
        corpus_root: str | Path,
    ) -> bool:
        """Embed *content* for the note at *absolute_path* and store it.

        Returns False without touching the model or the table when the
        stored content hash already matches, True after a write.
        """
        relative_path, record_id = document_id(absolute_path, corpus_root)
        content_hash = fingerprint(content)

        existing = await self._store.find(record_id)
        if existing is not None and existing.content_hash == content_hash:
            logger.debug("Skipping unchanged %s", relative_path)
            return False

        vector = await self._embedding_provider.embed(content)
        record = VectorRecord(
            id=record_id,
            vector=vector,
            path=relative_path,
            content_hash=content_hash,
            last_updated=self._clock(),
        )
        await self._store.upsert(record)
        logger.debug("Embedded %s", relative_path)
        return True

    async def remove_document(self, absolute_path: str | Path, corpus_root: str | Path) -> None:
        """Delete the record for *absolute_path*.  Unknown paths are a no-op."""
        _, record_id = document_id(absolute_path, corpus_root)
        await self._store.delete(record_id)

    # ------------------------------------------------------------------
    # Full sync
    # ------------------------------------------------------------------

    async def sync_corpus(self, corpus_root: str | Path) -> SyncResult:
        """Reconcile the table with every eligible note under *corpus_root*.

        Records whose path is no longer in the corpus are deleted first,
        then every note is embedded (unchanged notes are skipped).  Records
        below a directory that could not be listed are kept.
        """
        root = str(corpus_root)
        walk = await self._corpus.walk(
            root, extension=self._extension, hidden_prefix=self._hidden_prefix
        )
        failures: list[SyncFailure] = list(walk.errors)

        current_ids: set[str] = set()
        for path in walk.documents:
            _, record_id = document_id(path, root)
            current_ids.add(record_id)

        unlisted = [normalize_relative_path(os.path.relpath(f.path, root)) for f in walk.errors]

        stale: list[str] = []
        for record in await self._store.all_records():
            if record.id in current_ids or _is_below_any(record.path, unlisted):
                continue
            if not is_valid_identifier(record.id):
                logger.warning("Ignoring record with malformed id %r", record.id)
                continue
            stale.append(record.id)
        removed = await self._store.delete_many(stale) if stale else 0

        indexed = 0
        embedded = 0
        for path in walk.documents:
            try:
                content = await self._corpus.read_text(path)
                written = await self.embed_document(path, content, root)
            except InitializationError:
                raise
            except Exception as exc:
                logger.warning("Failed to index %s", path, exc_info=True)
                failures.append(SyncFailure(path=path, error=str(exc)))
                continue
            indexed += 1
            embedded += int(written)

        logger.info(
            "Synced %s: %d indexed (%d embedded), %d removed, %d failed",
            root,
            indexed,
            embedded,
            removed,
            len(failures),
        )
        return SyncResult(indexed=indexed, removed=removed, embedded=embedded, failures=failures)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def store(self) -> VectorStore:
        """Return the underlying :class:`VectorStore`."""
        return self._store

    @property
    def corpus(self) -> CorpusProvider:
        """Return the corpus filesystem provider."""
        return self._corpus


def _is_below_any(relative_path: str, directories: list[str]) -> bool:
    """Return whether *relative_path* lies inside any of *directories*."""
    for directory in directories:
        if directory == ".":
            return True
        if relative_path == directory or relative_path.startswith(directory + "/"):
            return True
    return False
