"""Document identity — path-derived identifiers, content fingerprints, the id gate."""

from __future__ import annotations

import hashlib
import os
import posixpath
import re
from pathlib import Path, PurePosixPath

from umbra.exceptions import MalformedIdentifierError, PathOutsideCorpusError

_HEX_ID_RE = re.compile(r"^[0-9a-f]{64}$", re.IGNORECASE)


def _sha256(data: str | bytes) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def identify(relative_path: str) -> str:
    """Return the identifier for a corpus-relative path.

    The path is normalized to POSIX separators first so the same note gets
    the same id on every platform.  Content never enters the id.
    """
    return _sha256(normalize_relative_path(relative_path))


def fingerprint(content: str | bytes) -> str:
    """Return the sha256 hex digest of *content*."""
    return _sha256(content)


def is_valid_identifier(value: object) -> bool:
    """Return whether *value* is a 64-character hex string."""
    return isinstance(value, str) and _HEX_ID_RE.fullmatch(value) is not None


def require_identifier(value: object) -> str:
    """Return *value* lowercased, or raise :class:`MalformedIdentifierError`.

    Must be called on every identifier before it is placed in a filter.
    """
    if not is_valid_identifier(value):
        msg = f"Invalid identifier format: {value!r}"
        raise MalformedIdentifierError(msg)
    assert isinstance(value, str)
    return value.lower()


# =============================================================================
# Path mapping
# =============================================================================


def normalize_relative_path(relative_path: str) -> str:
    """Normalize a relative path to forward slashes with no ``.`` segments.

    Examples:
        normalize_relative_path("notes\\a.md") -> "notes/a.md"
        normalize_relative_path("./notes//a.md") -> "notes/a.md"
    """
    path = relative_path.replace("\\", "/")
    return posixpath.normpath(path) if path else path


def to_relative_path(absolute_path: str | Path, corpus_root: str | Path) -> str:
    """Return *absolute_path* relative to *corpus_root*, POSIX-normalized."""
    rel = os.path.relpath(os.path.abspath(absolute_path), os.path.abspath(corpus_root))
    rel = normalize_relative_path(rel)
    if rel == "." or rel == ".." or rel.startswith("../"):
        msg = f"{absolute_path} is not inside corpus root {corpus_root}"
        raise PathOutsideCorpusError(msg)
    return rel


def to_absolute_path(relative_path: str, corpus_root: str | Path) -> str:
    """Join a stored relative path back onto *corpus_root*."""
    parts = PurePosixPath(normalize_relative_path(relative_path)).parts
    return str(Path(corpus_root).joinpath(*parts))


def document_id(absolute_path: str | Path, corpus_root: str | Path) -> tuple[str, str]:
    """Return ``(relative_path, identifier)`` for a document under *corpus_root*."""
    rel = to_relative_path(absolute_path, corpus_root)
    return rel, identify(rel)
