"""Distance-to-relevance transform used for presenting search results."""

from __future__ import annotations

# Metric used by the vector table.  LanceDB reports squared L2 distance.
DISTANCE_METRIC = "l2"

# Squared L2 distance between two unit vectors with cosine similarity 0.
MAX_DISTANCE = 2.0


def relevance(distance: float, *, max_distance: float = MAX_DISTANCE) -> int:
    """Map a distance to an integer relevance in ``[0, 100]``.

    The distance is clamped to ``[0, max_distance]`` and inverted linearly,
    so ordering by ascending distance equals ordering by descending relevance.
    """
    if max_distance <= 0:
        msg = f"max_distance must be positive, got {max_distance}"
        raise ValueError(msg)
    clamped = min(max(distance, 0.0), max_distance)
    return round((1.0 - clamped / max_distance) * 100)
