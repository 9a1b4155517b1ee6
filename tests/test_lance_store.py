"""Tests for LanceVectorStore — persistent LanceDB vector table."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import FAKE_DIM, hash_vector

from umbra.exceptions import (
    DimensionMismatchError,
    InitializationError,
    MalformedIdentifierError,
)
from umbra.identity import fingerprint, identify
from umbra.search.stores.lance import LanceVectorStore
from umbra.search.types import VectorHit, VectorRecord

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _make_record(path: str, content: str, *, last_updated: int = 1) -> VectorRecord:
    return VectorRecord(
        id=identify(path),
        vector=hash_vector(content),
        path=path,
        content_hash=fingerprint(content),
        last_updated=last_updated,
    )


def _unit(*components: float) -> list[float]:
    return list(components)


# ==================================================================
# Schema bootstrap
# ==================================================================


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_table_created_empty(self, store: LanceVectorStore, tmp_path: Path):
        assert await store.count() == 0
        assert await store.all_records() == []
        assert (tmp_path / "lancedb").is_dir()

    @pytest.mark.asyncio
    async def test_placeholder_never_returned(self, store: LanceVectorStore):
        await store.upsert(_make_record("a.md", "hello"))
        hits = await store.nearest([0.0] * FAKE_DIM, 10)
        assert [h.record.path for h in hits] == ["a.md"]

    @pytest.mark.asyncio
    async def test_reopen_reuses_table(self, tmp_path: Path):
        first = LanceVectorStore(tmp_path / "db", dimension=FAKE_DIM)
        record = _make_record("notes/a.md", "hello")
        await first.upsert(record)

        second = LanceVectorStore(tmp_path / "db", dimension=FAKE_DIM)
        found = await second.find(record.id)
        assert found is not None
        assert found.path == "notes/a.md"
        assert found.content_hash == record.content_hash
        assert await second.count() == 1

    @pytest.mark.asyncio
    async def test_reopen_with_other_dimension_fails(self, tmp_path: Path):
        await LanceVectorStore(tmp_path / "db", dimension=FAKE_DIM).warm_up()

        wider = LanceVectorStore(tmp_path / "db", dimension=FAKE_DIM * 2)
        with pytest.raises(InitializationError) as exc_info:
            await wider.warm_up()
        assert isinstance(exc_info.value.__cause__, DimensionMismatchError)
        assert wider.failed

    @pytest.mark.asyncio
    async def test_open_failure_is_captured(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        store = LanceVectorStore(blocker / "db", dimension=FAKE_DIM)

        with pytest.raises(InitializationError) as first:
            await store.count()
        with pytest.raises(InitializationError) as second:
            await store.find(identify("a.md"))

        assert store.failed
        assert first.value.__cause__ is second.value.__cause__

    def test_properties(self, tmp_path: Path):
        store = LanceVectorStore(tmp_path / "db", table_name="vault", dimension=8)
        assert store.data_dir == tmp_path / "db"
        assert store.table_name == "vault"
        assert store.dimension == 8
        assert not store.failed


# ==================================================================
# find / upsert / delete
# ==================================================================


class TestReadWrite:
    @pytest.mark.asyncio
    async def test_find_missing(self, store: LanceVectorStore):
        assert await store.find(identify("missing.md")) is None

    @pytest.mark.asyncio
    async def test_upsert_then_find(self, store: LanceVectorStore):
        record = _make_record("a.md", "hello", last_updated=1234)
        await store.upsert(record)

        found = await store.find(record.id)
        assert found is not None
        assert found.id == record.id
        assert found.path == "a.md"
        assert found.last_updated == 1234
        assert len(found.vector) == FAKE_DIM
        assert found.vector == pytest.approx(record.vector, abs=1e-6)

    @pytest.mark.asyncio
    async def test_upsert_replaces(self, store: LanceVectorStore):
        await store.upsert(_make_record("a.md", "v1", last_updated=1))
        await store.upsert(_make_record("a.md", "v2", last_updated=2))

        assert await store.count() == 1
        found = await store.find(identify("a.md"))
        assert found is not None
        assert found.content_hash == fingerprint("v2")
        assert found.last_updated == 2

    @pytest.mark.asyncio
    async def test_find_accepts_uppercase_id(self, store: LanceVectorStore):
        record = _make_record("a.md", "hello")
        await store.upsert(record)
        assert await store.find(record.id.upper()) is not None

    @pytest.mark.asyncio
    async def test_delete(self, store: LanceVectorStore):
        record = _make_record("a.md", "hello")
        await store.upsert(record)
        await store.delete(record.id)
        assert await store.find(record.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store: LanceVectorStore):
        await store.delete(identify("never.md"))
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_delete_many(self, store: LanceVectorStore):
        records = [_make_record(f"n{i}.md", f"content {i}") for i in range(3)]
        for record in records:
            await store.upsert(record)

        removed = await store.delete_many([records[0].id, records[2].id])

        assert removed == 2
        remaining = await store.all_records()
        assert [r.path for r in remaining] == ["n1.md"]

    @pytest.mark.asyncio
    async def test_delete_many_empty(self, store: LanceVectorStore):
        assert await store.delete_many([]) == 0

    @pytest.mark.asyncio
    async def test_all_records(self, store: LanceVectorStore):
        for name in ("a.md", "b.md"):
            await store.upsert(_make_record(name, name))
        records = await store.all_records()
        assert sorted(r.path for r in records) == ["a.md", "b.md"]
        assert all(isinstance(r, VectorRecord) for r in records)


# ==================================================================
# Validation
# ==================================================================


class TestValidation:
    @pytest.mark.asyncio
    async def test_wrong_dimension_never_written(self, store: LanceVectorStore):
        record = VectorRecord(
            id=identify("a.md"),
            vector=[0.1] * (FAKE_DIM - 1),
            path="a.md",
            content_hash=fingerprint("x"),
            last_updated=1,
        )
        with pytest.raises(DimensionMismatchError):
            await store.upsert(record)
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_non_finite_vector_rejected(self, store: LanceVectorStore):
        record = VectorRecord(
            id=identify("a.md"),
            vector=[float("nan")] * FAKE_DIM,
            path="a.md",
            content_hash=fingerprint("x"),
            last_updated=1,
        )
        with pytest.raises(ValueError):
            await store.upsert(record)

    @pytest.mark.asyncio
    async def test_query_vector_dimension_checked(self, store: LanceVectorStore):
        with pytest.raises(DimensionMismatchError):
            await store.nearest([1.0, 0.0], 5)

    @pytest.mark.asyncio
    async def test_malformed_content_hash_rejected(self, store: LanceVectorStore):
        record = VectorRecord(
            id=identify("a.md"),
            vector=hash_vector("x"),
            path="a.md",
            content_hash="' OR 1=1 --",
            last_updated=1,
        )
        with pytest.raises(MalformedIdentifierError):
            await store.upsert(record)


class TestInjectionRejection:
    """Malformed ids must fail before the table is opened or queried."""

    @pytest.fixture
    def spied_store(self, tmp_path: Path) -> LanceVectorStore:
        store = LanceVectorStore(tmp_path / "db", dimension=FAKE_DIM)
        table_cell = MagicMock()
        table_cell.get = AsyncMock()
        store._table = table_cell
        store._call = AsyncMock()
        return store

    @pytest.mark.parametrize(
        "bad_id",
        ["' OR '1'='1", 'x" OR "1"="1', "a" * 64 + "' OR id != '", "__schema__"],
    )
    @pytest.mark.asyncio
    async def test_find_delete_upsert_reject(self, spied_store: LanceVectorStore, bad_id: str):
        with pytest.raises(MalformedIdentifierError):
            await spied_store.find(bad_id)
        with pytest.raises(MalformedIdentifierError):
            await spied_store.delete(bad_id)
        with pytest.raises(MalformedIdentifierError):
            await spied_store.delete_many([identify("ok.md"), bad_id])
        with pytest.raises(MalformedIdentifierError):
            await spied_store.upsert(
                VectorRecord(
                    id=bad_id,
                    vector=hash_vector("x"),
                    path="x.md",
                    content_hash=fingerprint("x"),
                    last_updated=1,
                )
            )

        spied_store._table.get.assert_not_awaited()
        spied_store._call.assert_not_awaited()


# ==================================================================
# Nearest neighbors
# ==================================================================


class TestNearest:
    @pytest.fixture
    def small_store(self, tmp_path: Path) -> LanceVectorStore:
        return LanceVectorStore(tmp_path / "small", dimension=4)

    async def _seed(self, store: LanceVectorStore) -> None:
        vectors = {
            "far.md": _unit(0.0, 1.0, 0.0, 0.0),
            "near.md": _unit(1.0, 0.0, 0.0, 0.0),
            "mid.md": _unit(0.8, 0.6, 0.0, 0.0),
        }
        for path, vector in vectors.items():
            await store.upsert(
                VectorRecord(
                    id=identify(path),
                    vector=vector,
                    path=path,
                    content_hash=fingerprint(path),
                    last_updated=1,
                )
            )

    @pytest.mark.asyncio
    async def test_ascending_distance(self, small_store: LanceVectorStore):
        await self._seed(small_store)
        hits = await small_store.nearest(_unit(1.0, 0.0, 0.0, 0.0), 10)

        assert [h.record.path for h in hits] == ["near.md", "mid.md", "far.md"]
        assert all(isinstance(h, VectorHit) for h in hits)
        distances = [h.distance for h in hits]
        assert distances == sorted(distances)
        assert distances[0] == pytest.approx(0.0, abs=1e-5)

    @pytest.mark.asyncio
    async def test_limit_truncates(self, small_store: LanceVectorStore):
        await self._seed(small_store)
        hits = await small_store.nearest(_unit(1.0, 0.0, 0.0, 0.0), 2)
        assert [h.record.path for h in hits] == ["near.md", "mid.md"]

    @pytest.mark.asyncio
    async def test_empty_table(self, small_store: LanceVectorStore):
        assert await small_store.nearest(_unit(1.0, 0.0, 0.0, 0.0), 5) == []

    @pytest.mark.asyncio
    async def test_non_positive_limit(self, small_store: LanceVectorStore):
        await self._seed(small_store)
        assert await small_store.nearest(_unit(1.0, 0.0, 0.0, 0.0), 0) == []
