"""LanceVectorStore — persistent on-disk vector table backed by LanceDB."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import lancedb
import numpy as np

from umbra._once import AsyncOnce
from umbra.config import DEFAULT_TABLE_NAME, EMBEDDING_DIM
from umbra.exceptions import DimensionMismatchError, StorageError, UmbraError
from umbra.identity import require_identifier
from umbra.search.filters import compile_lance, eq, in_
from umbra.search.types import VectorHit, VectorRecord

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

# Reserved id of the row used to fix the table schema on creation.
SCHEMA_SENTINEL_ID = "__schema__"

_DELETE_BATCH_SIZE = 256


class LanceVectorStore:
    """Vector table in a local LanceDB database.

    The database and table are opened lazily on first use and shared by all
    callers of this instance.  If the table does not exist it is created
    from a placeholder row (zero vector of :attr:`dimension`, empty strings)
    so LanceDB infers the column types, and the placeholder is deleted
    straight away.

    LanceDB's Python table API is synchronous, so every call runs in a
    thread via :func:`asyncio.to_thread`.  Filters are SQL strings; they are
    only ever built by :func:`~umbra.search.filters.compile_lance`, which
    rejects malformed identifiers before anything reaches the table.

    Usage::

        store = LanceVectorStore(Path.home() / ".umbra" / "lancedb")
        await store.upsert(record)
        hits = await store.nearest(query_vector, 10)
    """

    def __init__(
        self,
        data_dir: str | Path,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
        dimension: int = EMBEDDING_DIM,
    ) -> None:
        self._data_dir = Path(data_dir).expanduser()
        self._table_name = table_name
        self._dimension = dimension
        self._table: AsyncOnce[Any] = AsyncOnce(
            self._open_table, name=f"vector table {table_name!r}"
        )

    # ------------------------------------------------------------------
    # VectorStore protocol
    # ------------------------------------------------------------------

    async def find(self, record_id: str) -> VectorRecord | None:
        """Return the record with *record_id*, or None."""
        where = compile_lance(eq("id", record_id))
        table = await self._table.get()
        rows = await self._call("find record", self._query_sync, table, where, 1)
        if not rows:
            return None
        return VectorRecord.from_row(rows[0])

    async def upsert(self, record: VectorRecord) -> None:
        """Replace the row with ``record.id`` by *record*.

        The delete and the insert run back to back in one worker call.
        """
        where = compile_lance(eq("id", record.id))
        row = self._validated_row(record)
        table = await self._table.get()
        await self._call("upsert record", self._replace_sync, table, where, row)

    async def delete(self, record_id: str) -> None:
        """Delete the row with *record_id*.  Missing ids are not an error."""
        where = compile_lance(eq("id", record_id))
        table = await self._table.get()
        await self._call("delete record", table.delete, where)

    async def delete_many(self, record_ids: list[str]) -> int:
        """Delete all rows in *record_ids*.  Return how many ids were submitted.

        Every id is validated before the first delete is issued.
        """
        if not record_ids:
            return 0
        clauses = [
            compile_lance(in_("id", record_ids[start : start + _DELETE_BATCH_SIZE]))
            for start in range(0, len(record_ids), _DELETE_BATCH_SIZE)
        ]
        table = await self._table.get()
        for where in clauses:
            await self._call("delete records", table.delete, where)
        return len(record_ids)

    async def nearest(self, vector: list[float], limit: int) -> list[VectorHit]:
        """Return up to *limit* rows ordered by ascending L2 distance."""
        if limit <= 0:
            return []
        query = self._validated_vector(vector).tolist()
        table = await self._table.get()
        rows = await self._call("search vectors", self._search_sync, table, query, limit)
        hits = [
            VectorHit(record=VectorRecord.from_row(row), distance=float(row["_distance"]))
            for row in rows
            if row["id"] != SCHEMA_SENTINEL_ID
        ]
        hits.sort(key=lambda h: h.distance)
        return hits

    async def all_records(self) -> list[VectorRecord]:
        """Return every row in the table (full scan)."""
        table = await self._table.get()
        rows = await self._call("scan records", self._scan_sync, table)
        return [VectorRecord.from_row(row) for row in rows if row["id"] != SCHEMA_SENTINEL_ID]

    async def count(self) -> int:
        """Return the number of rows in the table."""
        table = await self._table.get()
        return await self._call("count records", table.count_rows)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def warm_up(self) -> None:
        """Open (or create) the table now instead of on first use."""
        await self._table.get()

    @property
    def failed(self) -> bool:
        """Whether opening the table was attempted and failed."""
        return self._table.failed

    @property
    def data_dir(self) -> Path:
        """Return the LanceDB database directory."""
        return self._data_dir

    @property
    def table_name(self) -> str:
        """Return the table name."""
        return self._table_name

    @property
    def dimension(self) -> int:
        """Return the fixed vector width of the table."""
        return self._dimension

    # ------------------------------------------------------------------
    # Schema bootstrap
    # ------------------------------------------------------------------

    async def _open_table(self) -> Any:
        return await asyncio.to_thread(self._open_table_sync)

    def _open_table_sync(self) -> Any:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        db = lancedb.connect(str(self._data_dir))

        if self._table_name in db.table_names():
            table = db.open_table(self._table_name)
            self._check_table_dimension(table)
            logger.debug("Opened vector table %s in %s", self._table_name, self._data_dir)
            return table

        table = db.create_table(self._table_name, data=[self._placeholder_row()])
        table.delete(f"id = '{SCHEMA_SENTINEL_ID}'")
        logger.info(
            "Created vector table %s in %s (%d dims)",
            self._table_name,
            self._data_dir,
            self._dimension,
        )
        return table

    def _placeholder_row(self) -> dict[str, Any]:
        return {
            "id": SCHEMA_SENTINEL_ID,
            "vector": [0.0] * self._dimension,
            "path": "",
            "content_hash": "",
            "last_updated": 0,
        }

    def _check_table_dimension(self, table: Any) -> None:
        width = getattr(table.schema.field("vector").type, "list_size", None)
        if width is not None and width != self._dimension:
            msg = (
                f"Table {self._table_name!r} stores {width}-dimensional vectors, "
                f"expected {self._dimension}"
            )
            raise DimensionMismatchError(msg)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _validated_vector(self, vector: list[float]) -> np.ndarray:
        arr = np.asarray(vector, dtype=np.float32)
        if arr.shape != (self._dimension,):
            msg = f"Expected a vector of {self._dimension} floats, got shape {arr.shape}"
            raise DimensionMismatchError(msg)
        if not np.isfinite(arr).all():
            raise ValueError("Vector contains NaN or infinite values")
        return arr

    def _validated_row(self, record: VectorRecord) -> dict[str, Any]:
        require_identifier(record.content_hash)
        row = record.to_row()
        row["id"] = record.id.lower()
        row["content_hash"] = record.content_hash.lower()
        row["vector"] = self._validated_vector(record.vector).tolist()
        return row

    @staticmethod
    def _query_sync(table: Any, where: str, limit: int) -> list[dict[str, Any]]:
        return table.search().where(where).limit(limit).to_list()

    @staticmethod
    def _replace_sync(table: Any, where: str, row: dict[str, Any]) -> None:
        table.delete(where)
        table.add([row])

    @staticmethod
    def _search_sync(table: Any, query: list[float], limit: int) -> list[dict[str, Any]]:
        if table.count_rows() == 0:
            return []
        return table.search(query).limit(limit).to_list()

    @staticmethod
    def _scan_sync(table: Any) -> list[dict[str, Any]]:
        return table.to_arrow().to_pylist()

    async def _call(self, action: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking table call in a thread, wrapping library errors."""
        try:
            return await asyncio.to_thread(fn, *args)
        except UmbraError:
            raise
        except Exception as exc:
            msg = f"Failed to {action} in {self._table_name!r}: {exc}"
            raise StorageError(msg) from exc
