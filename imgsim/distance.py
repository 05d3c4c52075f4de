"""
Squared Euclidean distance between feature vectors, with an optional cap.

When a cap is given the sum is accumulated block by block and returned as
soon as the partial sum reaches the cap.  A capped result is only an
upper-bound witness: anything >= cap means "at least cap", so callers
must compare it against that same cap and never treat it as exact.
"""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

# elements summed between two cap checks
BLOCK_SIZE = 16

FeatureLike = Union[bytes, bytearray, memoryview, Sequence[float], np.ndarray]


def as_feature_vector(features: FeatureLike) -> np.ndarray:
    """
    Cast stored features to a 1-D float32 vector.

    Raw bytes are read as one signed 8-bit value per feature.
    """
    if isinstance(features, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(features), dtype=np.int8).astype(np.float32)
    arr = np.asarray(features, dtype=np.float32)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    return arr


def square_distance(a: np.ndarray, b: np.ndarray, cap: Optional[float] = None) -> float:
    if a.shape != b.shape:
        raise ValueError(f"Feature vectors differ in shape: {a.shape} vs {b.shape}")

    diff = a.astype(np.float64, copy=False) - b.astype(np.float64, copy=False)
    if cap is None or not np.isfinite(cap):
        return float(np.dot(diff, diff))

    total = 0.0
    for start in range(0, diff.shape[0], BLOCK_SIZE):
        block = diff[start : start + BLOCK_SIZE]
        total += float(np.dot(block, block))
        if total >= cap:
            break
    return total
