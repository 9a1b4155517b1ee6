"""SentenceTransformerEmbedding — local embedding provider (all-MiniLM-L6-v2)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import numpy as np

from umbra._once import AsyncOnce
from umbra.config import DEFAULT_MODEL, EMBEDDING_DIM
from umbra.exceptions import DimensionMismatchError

try:
    from sentence_transformers import SentenceTransformer

    _HAS_SENTENCE_TRANSFORMERS = True
except ImportError:  # pragma: no cover
    _HAS_SENTENCE_TRANSFORMERS = False

logger = logging.getLogger(__name__)


class SentenceTransformerEmbedding:
    """Embedding provider backed by ``sentence-transformers``.

    The model is loaded once, lazily, on the first call to :meth:`embed` or
    :meth:`embed_batch`; concurrent first calls share the same load.  A
    failed load is remembered and re-raised as
    :class:`~umbra.exceptions.InitializationError` without retrying.

    Vectors are mean-pooled by the model's pooling head and L2-normalized.
    Model load and inference run in a thread pool via :func:`asyncio.to_thread`.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        *,
        dimension: int = EMBEDDING_DIM,
        device: str | None = None,
    ) -> None:
        if not _HAS_SENTENCE_TRANSFORMERS:
            msg = (
                "sentence-transformers is required for SentenceTransformerEmbedding. "
                "Install it with: pip install umbra-index"
            )
            raise ImportError(msg)
        self._model_name = model_name
        self._dimension = dimension
        self._device = device
        self._model: AsyncOnce[Any] = AsyncOnce(
            self._load_model, name=f"embedding model {model_name!r}"
        )

    async def _load_model(self) -> Any:
        model = await asyncio.to_thread(
            SentenceTransformer, self._model_name, device=self._device
        )
        dim = model.get_sentence_embedding_dimension()
        if dim != self._dimension:
            msg = (
                f"Model {self._model_name!r} produces {dim}-dimensional vectors, "
                f"expected {self._dimension}"
            )
            raise DimensionMismatchError(msg)
        logger.debug("Loaded embedding model %s (%d dims)", self._model_name, dim)
        return model

    @staticmethod
    def _encode(model: Any, texts: list[str]) -> list[list[float]]:
        result = model.encode(texts, normalize_embeddings=True, convert_to_numpy=True)
        return np.asarray(result, dtype=np.float32).tolist()

    # ------------------------------------------------------------------
    # EmbeddingProvider protocol
    # ------------------------------------------------------------------

    async def embed(self, text: str) -> list[float]:
        """Embed a single text string in a thread pool."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed multiple texts in a thread pool."""
        if not texts:
            return []
        model = await self._model.get()
        return await asyncio.to_thread(self._encode, model, texts)

    @property
    def dimensions(self) -> int:
        """Return the embedding dimensionality."""
        return self._dimension

    @property
    def model_name(self) -> str:
        """Return the model name."""
        return self._model_name

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def warm_up(self) -> None:
        """Load the model now instead of on first use."""
        await self._model.get()

    @property
    def failed(self) -> bool:
        """Whether loading the model was attempted and failed."""
        return self._model.failed
