"""Shared fixtures for Umbra tests."""

from __future__ import annotations

import hashlib
import math
from typing import TYPE_CHECKING

import pytest

from umbra._once import AsyncOnce
from umbra.indexing import IndexingEngine
from umbra.search.stores.lance import LanceVectorStore

if TYPE_CHECKING:
    from pathlib import Path

FAKE_DIM = 32


def hash_vector(text: str) -> list[float]:
    """Deterministic unit vector from text hash."""
    h = hashlib.sha256(text.encode()).digest()
    raw = [float(b) + 1.0 for b in h]
    norm = math.sqrt(sum(x * x for x in raw))
    return [x / norm for x in raw]


class FakeProvider:
    """Deterministic async embedding provider that records every call."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return hash_vector(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]

    @property
    def dimensions(self) -> int:
        return FAKE_DIM

    @property
    def model_name(self) -> str:
        return "fake"


class FailingProvider:
    """Provider whose model never loads."""

    def __init__(self) -> None:
        self.load_attempts = 0
        self._model: AsyncOnce[object] = AsyncOnce(self._load, name="failing model")

    async def _load(self) -> object:
        self.load_attempts += 1
        raise OSError("model weights not found")

    async def embed(self, text: str) -> list[float]:
        await self._model.get()
        raise AssertionError("unreachable")

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        await self._model.get()
        raise AssertionError("unreachable")

    async def warm_up(self) -> None:
        await self._model.get()

    @property
    def failed(self) -> bool:
        return self._model.failed

    @property
    def dimensions(self) -> int:
        return FAKE_DIM

    @property
    def model_name(self) -> str:
        return "failing"


class Clock:
    """Monotonic fake millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 1000
        return self.now


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()


@pytest.fixture
def store(tmp_path: Path) -> LanceVectorStore:
    """LanceDB store in a temp directory with the fake dimension."""
    return LanceVectorStore(tmp_path / "lancedb", dimension=FAKE_DIM)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def indexer(store: LanceVectorStore, provider: FakeProvider, clock: Clock) -> IndexingEngine:
    return IndexingEngine(store, provider, clock=clock)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """A small notes folder: two top-level notes and one nested note."""
    root = tmp_path / "vault"
    (root / "projects").mkdir(parents=True)
    (root / "a.md").write_text("alpha note about gardening", encoding="utf-8")
    (root / "b.md").write_text("beta note about cooking", encoding="utf-8")
    (root / "projects" / "c.md").write_text("gamma note about rust", encoding="utf-8")
    return root
