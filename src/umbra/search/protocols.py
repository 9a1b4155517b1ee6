"""Search layer protocols — async-first interfaces for embedding and vector storage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from umbra.search.types import VectorHit, VectorRecord


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Async-first protocol for text-to-vector embedding.

    Implementations return unit-length vectors of :attr:`dimensions` floats.
    """

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string into a vector."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts into vectors."""
        ...

    @property
    def dimensions(self) -> int:
        """Number of dimensions in the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Name of the embedding model."""
        ...


@runtime_checkable
class VectorStore(Protocol):
    """Async protocol for the persistent vector table.

    Identifier arguments must pass :func:`umbra.identity.require_identifier`;
    implementations raise :class:`~umbra.exceptions.MalformedIdentifierError`
    before touching storage otherwise.
    """

    async def find(self, record_id: str) -> VectorRecord | None:
        """Return the record with *record_id*, or None."""
        ...

    async def upsert(self, record: VectorRecord) -> None:
        """Replace any record with the same id by *record*."""
        ...

    async def delete(self, record_id: str) -> None:
        """Delete the record with *record_id*.  Missing ids are not an error."""
        ...

    async def delete_many(self, record_ids: list[str]) -> int:
        """Delete all records in *record_ids*.  Return how many ids were submitted."""
        ...

    async def nearest(self, vector: list[float], limit: int) -> list[VectorHit]:
        """Return up to *limit* hits ordered by ascending distance."""
        ...

    async def all_records(self) -> list[VectorRecord]:
        """Return every record (unordered)."""
        ...

    async def count(self) -> int:
        """Return the number of records."""
        ...
