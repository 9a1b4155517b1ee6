"""Configuration for the local index — defaults, named constants, env overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# Width of all-MiniLM-L6-v2 sentence embeddings.  Fixed for the lifetime of a table.
EMBEDDING_DIM = 384

DEFAULT_MODEL = "all-MiniLM-L6-v2"
DEFAULT_TABLE_NAME = "notes"
DEFAULT_DATA_DIR = Path.home() / ".umbra" / "lancedb"
DEFAULT_EXTENSION = ".md"
DEFAULT_HIDDEN_PREFIX = "."
DEFAULT_SEARCH_LIMIT = 10

ENV_DATA_DIR = "UMBRA_DATA_DIR"
ENV_TABLE_NAME = "UMBRA_TABLE_NAME"
ENV_EMBEDDING_MODEL = "UMBRA_EMBEDDING_MODEL"
ENV_SEARCH_LIMIT = "UMBRA_SEARCH_LIMIT"


@dataclass(frozen=True, slots=True)
class UmbraConfig:
    """Settings shared by the store, the embedding provider and the engines.

    Attributes:
        data_dir: Directory holding the LanceDB database.
        table_name: Name of the vector table inside the database.
        model_name: sentence-transformers model used for embeddings.
        dimension: Vector width; must match the model's output.
        extension: Only files with this suffix are indexed.
        hidden_prefix: Files and directories starting with this are skipped.
        default_limit: Result count used when a search passes no limit.
    """

    data_dir: Path = field(default_factory=lambda: DEFAULT_DATA_DIR)
    table_name: str = DEFAULT_TABLE_NAME
    model_name: str = DEFAULT_MODEL
    dimension: int = EMBEDDING_DIM
    extension: str = DEFAULT_EXTENSION
    hidden_prefix: str = DEFAULT_HIDDEN_PREFIX
    default_limit: int = DEFAULT_SEARCH_LIMIT

    def __post_init__(self) -> None:
        if self.dimension <= 0:
            msg = f"dimension must be positive, got {self.dimension}"
            raise ValueError(msg)
        if not self.table_name:
            raise ValueError("table_name must not be empty")

    @classmethod
    def from_env(
        cls,
        *,
        data_dir: str | Path | None = None,
        table_name: str | None = None,
        model_name: str | None = None,
        default_limit: int | None = None,
    ) -> UmbraConfig:
        """Build a config from explicit arguments, then env vars, then defaults.

        Precedence:
        1) explicit keyword argument
        2) ``UMBRA_*`` environment variable
        3) module default
        """
        raw_dir = data_dir or os.getenv(ENV_DATA_DIR)
        resolved_dir = Path(raw_dir).expanduser() if raw_dir else DEFAULT_DATA_DIR

        raw_limit = os.getenv(ENV_SEARCH_LIMIT)
        if default_limit is None and raw_limit:
            try:
                default_limit = int(raw_limit)
            except ValueError:
                msg = f"{ENV_SEARCH_LIMIT} must be an integer, got {raw_limit!r}"
                raise ValueError(msg) from None
        elif default_limit is None:
            default_limit = DEFAULT_SEARCH_LIMIT

        return cls(
            data_dir=resolved_dir,
            table_name=table_name or os.getenv(ENV_TABLE_NAME) or DEFAULT_TABLE_NAME,
            model_name=model_name or os.getenv(ENV_EMBEDDING_MODEL) or DEFAULT_MODEL,
            default_limit=default_limit,
        )
