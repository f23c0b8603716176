"""Embedding vector math for centroids and similarity."""

from __future__ import annotations

from typing import Sequence

import numpy as np

Vector = Sequence[float]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """Cosine similarity in [-1, 1]; zero-norm vectors score 0.0."""
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise ValueError(f"Embedding dimensions must match: {left.shape[0]} vs {right.shape[0]}")
    norm_left = np.linalg.norm(left)
    norm_right = np.linalg.norm(right)
    if norm_left == 0.0 or norm_right == 0.0:
        return 0.0
    similarity = float(np.dot(left, right) / (norm_left * norm_right))
    return max(-1.0, min(1.0, similarity))


def mean_vector(vectors: Sequence[Vector]) -> list[float] | None:
    """Unweighted mean of equal-length vectors, or None when there are none."""
    if not vectors:
        return None
    stacked = np.asarray(vectors, dtype=np.float64)
    return stacked.mean(axis=0).tolist()
