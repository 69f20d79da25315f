"""Vector normalization."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def normalize(vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """Scale ``vector`` to unit L2 norm; an all-zero vector is returned as is.

    With unit vectors, inner product equals cosine similarity.
    """
    array = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(array))
    if norm == 0.0:
        norm = 1.0
    return array / norm


__all__ = ["normalize"]
