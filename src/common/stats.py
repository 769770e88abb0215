"""Numeric helpers shared by the aggregation and drift stages."""

from __future__ import annotations

import json
import math
from typing import Any, Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean. Returns 0 for empty input."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def stddev(values: Sequence[float]) -> float:
    """Sample standard deviation (N-1 denominator). Returns 0 below two values."""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / (len(values) - 1)
    return math.sqrt(variance)


def round_to(value: float, decimals: int) -> float:
    """Round to the given number of decimals, halves rounding up."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def compute_centroid(embeddings: Sequence[Sequence[float]]) -> list[float] | None:
    """Element-wise mean of a set of vectors. Returns None if empty."""
    if not embeddings:
        return None
    return np.mean(np.asarray(embeddings, dtype="float64"), axis=0).tolist()


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity between two vectors.

    Mismatched dimensions and zero vectors yield 0.0.
    """
    a = np.asarray(a, dtype="float64")
    b = np.asarray(b, dtype="float64")
    if a.shape != b.shape:
        return 0.0
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """1 - cosine similarity."""
    return 1.0 - cosine_similarity(a, b)


def coerce_embedding(value: Any) -> list[float] | None:
    """Normalize a stored embedding (JSON text, array or list) to a float list."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, list):
            return [float(v) for v in parsed]
        return None
    if hasattr(value, "tolist"):
        try:
            return [float(v) for v in value.tolist()]
        except TypeError:
            return None
    if isinstance(value, (list, tuple)):
        return [float(v) for v in value]
    return None
