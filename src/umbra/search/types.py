"""Search layer data types — records, hits, results, and sync summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from umbra.search.scoring import relevance

# ------------------------------------------------------------------
# Stored data
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class VectorRecord:
    """One row of the vector table.

    Attributes:
        id: sha256 of the corpus-relative path.
        vector: Embedding of the document content.
        path: Corpus-relative path with forward slashes.
        content_hash: sha256 of the content that produced *vector*.
        last_updated: Write time in epoch milliseconds.
    """

    id: str
    vector: list[float]
    path: str
    content_hash: str
    last_updated: int

    def to_row(self) -> dict[str, Any]:
        """Return the record as a table row."""
        return {
            "id": self.id,
            "vector": list(self.vector),
            "path": self.path,
            "content_hash": self.content_hash,
            "last_updated": int(self.last_updated),
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> VectorRecord:
        """Build a record from a table row, ignoring extra columns like ``_distance``."""
        vector = row.get("vector")
        return cls(
            id=row["id"],
            vector=[float(x) for x in vector] if vector is not None else [],
            path=row["path"],
            content_hash=row["content_hash"],
            last_updated=int(row["last_updated"]),
        )


@dataclass(frozen=True, slots=True)
class VectorHit:
    """A single nearest-neighbor match.

    Attributes:
        record: The matched row.
        distance: Distance to the query vector (lower is more similar).
    """

    record: VectorRecord
    distance: float


# ------------------------------------------------------------------
# Caller-facing results
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SearchResult:
    """A note matching a search query.

    Attributes:
        path: Absolute path of the note.
        score: Raw distance from the query (lower is more similar).
    """

    path: str
    score: float

    @property
    def relevance(self) -> int:
        """Score mapped onto 0-100, higher is more relevant."""
        return relevance(self.score)


@dataclass(frozen=True, slots=True)
class SearchOk:
    """Search ran; *results* are ordered by ascending distance."""

    results: list[SearchResult] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SearchUnavailable:
    """Search could not run (model or store unavailable, or the query failed)."""

    reason: str


SearchOutcome = SearchOk | SearchUnavailable


# ------------------------------------------------------------------
# Indexing summaries
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SyncFailure:
    """A document that could not be listed, read, or embedded during a sync."""

    path: str
    error: str


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Result of a full-corpus sync.

    Attributes:
        indexed: Documents now up to date (embedded or skipped as unchanged).
        removed: Stale records deleted.
        embedded: Documents actually (re-)embedded during this sync.
        failures: Documents that were skipped because of an error.
    """

    indexed: int = 0
    removed: int = 0
    embedded: int = 0
    failures: list[SyncFailure] = field(default_factory=list)

    def as_dict(self) -> dict[str, int]:
        """Return ``{"indexed": ..., "removed": ...}``."""
        return {"indexed": self.indexed, "removed": self.removed}
