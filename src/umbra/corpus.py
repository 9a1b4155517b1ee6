"""LocalCorpus — read and enumerate note files on the host filesystem."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from umbra.config import DEFAULT_EXTENSION, DEFAULT_HIDDEN_PREFIX
from umbra.search.types import SyncFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CorpusEntry:
    """A single directory entry.

    Attributes:
        name: Entry name (last path component).
        path: Absolute path of the entry.
        is_directory: Whether the entry is a directory (symlinks are not followed).
    """

    name: str
    path: str
    is_directory: bool


@dataclass(frozen=True, slots=True)
class CorpusWalk:
    """Result of enumerating a corpus.

    Attributes:
        documents: Absolute paths of eligible documents, sorted.
        errors: Directories that could not be listed.
    """

    documents: list[str] = field(default_factory=list)
    errors: list[SyncFailure] = field(default_factory=list)


@runtime_checkable
class CorpusProvider(Protocol):
    """What the indexing engine needs from a filesystem."""

    async def read_text(self, path: str) -> str:
        """Return the text content of *path*."""
        ...

    async def list_dir(self, path: str) -> list[CorpusEntry]:
        """Return the entries of directory *path*."""
        ...

    async def walk(
        self,
        root: str,
        *,
        extension: str = DEFAULT_EXTENSION,
        hidden_prefix: str = DEFAULT_HIDDEN_PREFIX,
    ) -> CorpusWalk:
        """Enumerate eligible documents under *root*."""
        ...


class LocalCorpus:
    """Direct disk access for a folder of notes.

    Blocking filesystem calls run in a thread via :func:`asyncio.to_thread`.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def read_text(self, path: str) -> str:
        """Return the decoded content of *path*."""
        return await asyncio.to_thread(Path(path).read_text, encoding=self._encoding)

    async def list_dir(self, path: str) -> list[CorpusEntry]:
        """Return the entries of directory *path*, sorted by name."""
        return await asyncio.to_thread(self._list_dir_sync, path)

    async def walk(
        self,
        root: str,
        *,
        extension: str = DEFAULT_EXTENSION,
        hidden_prefix: str = DEFAULT_HIDDEN_PREFIX,
    ) -> CorpusWalk:
        """Recursively collect files under *root* ending in *extension*.

        Entries whose name starts with *hidden_prefix* are skipped, and so is
        everything below a hidden directory.  Directories that cannot be
        listed are logged and reported in :attr:`CorpusWalk.errors`; the walk
        continues with the rest.
        """
        documents: list[str] = []
        errors: list[SyncFailure] = []
        pending = [str(root)]

        while pending:
            directory = pending.pop()
            try:
                entries = await self.list_dir(directory)
            except OSError as exc:
                logger.warning("Failed to read directory %s: %s", directory, exc)
                errors.append(SyncFailure(path=directory, error=str(exc)))
                continue

            for entry in entries:
                if hidden_prefix and entry.name.startswith(hidden_prefix):
                    continue
                if entry.is_directory:
                    pending.append(entry.path)
                elif entry.name.endswith(extension):
                    documents.append(entry.path)

        documents.sort()
        return CorpusWalk(documents=documents, errors=errors)

    @staticmethod
    def _list_dir_sync(path: str) -> list[CorpusEntry]:
        with os.scandir(path) as it:
            entries = [
                CorpusEntry(
                    name=entry.name,
                    path=entry.path,
                    is_directory=entry.is_dir(follow_symlinks=False),
                )
                for entry in it
                if entry.is_dir(follow_symlinks=False) or entry.is_file()
            ]
        entries.sort(key=lambda e: e.name)
        return entries
