"""
Reference case indexes over a matrix of item feature vectors.

* :class:`ExactCaseIndex` answers neighbor queries by brute force with
  numpy.  Exact, and fine for a few hundred thousand vectors.
* :class:`FaissCaseIndex` delegates the search to FAISS.  With the default
  ``"Flat"`` factory it is exact as well; an ``"HNSW32"``-style factory
  string gives the approximate behaviour a large case would use.

Both report relevance as ``1 / (1 + squared_distance)`` and use the row
number as the internal key, so item handles (whatever the caller uses as
ids) are translated through the ``item_ids`` list given at construction.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

import faiss  # type: ignore[import-not-found]
import numpy as np
from loguru import logger


class ExactCaseIndex:
    def __init__(
        self,
        vectors: np.ndarray,
        item_ids: Sequence[Hashable],
        hashes: Optional[Dict[Hashable, str]] = None,
    ):
        vectors = np.asarray(vectors, dtype="float32")
        if vectors.ndim != 2:
            raise ValueError(f"Feature vectors must be 2D (N,D). Got {vectors.shape}.")
        if len(item_ids) != vectors.shape[0]:
            raise ValueError(
                f"Vector rows ({vectors.shape[0]}) != item ids ({len(item_ids)})"
            )
        self.vectors = np.ascontiguousarray(vectors)
        self.item_ids = list(item_ids)
        self._row_of = {item: row for row, item in enumerate(self.item_ids)}
        hashes = hashes or {}
        self._hash_by_row = {self._row_of[i]: h for i, h in hashes.items() if i in self._row_of}

    @property
    def dim(self) -> int:
        return int(self.vectors.shape[1])

    def __len__(self) -> int:
        return int(self.vectors.shape[0])

    def nearest_neighbors(self, vector: np.ndarray, k: int) -> List[Tuple[int, float]]:
        n = len(self)
        if n == 0 or k <= 0:
            return []
        query = np.asarray(vector, dtype="float32").reshape(-1)
        diff = self.vectors - query
        dists = np.einsum("ij,ij->i", diff, diff)
        k = min(k, n)
        if k < n:
            rows = np.argpartition(dists, k - 1)[:k]
        else:
            rows = np.arange(n)
        rows = rows[np.argsort(dists[rows], kind="stable")]
        return [(int(r), float(1.0 / (1.0 + dists[r]))) for r in rows]

    def vectors_of(self, keys: Iterable[int]) -> Dict[int, np.ndarray]:
        out: Dict[int, np.ndarray] = {}
        for key in keys:
            if 0 <= int(key) < len(self):
                out[int(key)] = self.vectors[int(key)]
        return out

    def internal_key_of(self, item: Hashable) -> Optional[int]:
        return self._row_of.get(item)

    def hash_of(self, key: int) -> Optional[str]:
        return self._hash_by_row.get(int(key))


class FaissCaseIndex(ExactCaseIndex):
    def __init__(
        self,
        vectors: np.ndarray,
        item_ids: Sequence[Hashable],
        hashes: Optional[Dict[Hashable, str]] = None,
        factory: str = "Flat",
    ):
        super().__init__(vectors, item_ids, hashes)
        logger.info("Creating FAISS index '{}' with dim={} rows={}", factory, self.dim, len(self))
        self.index = faiss.index_factory(self.dim, factory, faiss.METRIC_L2)
        if not self.index.is_trained:
            self.index.train(self.vectors)
        self.index.add(self.vectors)

    def nearest_neighbors(self, vector: np.ndarray, k: int) -> List[Tuple[int, float]]:
        n = len(self)
        if n == 0 or k <= 0:
            return []
        query = np.asarray(vector, dtype="float32").reshape(1, -1)
        dists, rows = self.index.search(query, min(k, n))
        # METRIC_L2 already reports squared distances
        return [
            (int(r), float(1.0 / (1.0 + max(float(d), 0.0))))
            for d, r in zip(dists[0], rows[0])
            if r >= 0
        ]


# -------------------------------------------------------------------
# Loaders
# -------------------------------------------------------------------

def _read_json(path: Path):
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_case_index(
    embeddings_path: Path,
    ids_path: Path,
    hashes_path: Optional[Path] = None,
    factory: Optional[str] = None,
) -> ExactCaseIndex:
    """
    Load an ``(N, D)`` ``.npy`` matrix plus a JSON list of item ids (and
    optionally a JSON object item id -> content hash).

    ``factory`` selects a :class:`FaissCaseIndex`; without it the exact
    numpy index is used.
    """
    if not embeddings_path.exists():
        raise FileNotFoundError(f"Embeddings not found at {embeddings_path}")
    if not ids_path.exists():
        raise FileNotFoundError(f"ID mapping not found at {ids_path}")

    logger.info("Loading feature vectors from {}", embeddings_path)
    vectors = np.load(embeddings_path, allow_pickle=False)

    raw_ids = _read_json(ids_path)
    if isinstance(raw_ids, dict):
        item_ids = [v for _, v in sorted(raw_ids.items(), key=lambda kv: int(kv[0]))]
    else:
        item_ids = list(raw_ids)

    hashes: Dict[Hashable, str] = {}
    if hashes_path is not None:
        if hashes_path.exists():
            raw_hashes = _read_json(hashes_path)
            # JSON object keys are strings; match them back to the id type
            by_str = {str(i): i for i in item_ids}
            hashes = {by_str[k]: str(v) for k, v in raw_hashes.items() if k in by_str}
        else:
            logger.warning("Hash file {} does not exist; identical detection disabled", hashes_path)

    logger.info("Loaded features: shape={} items={} hashes={}", vectors.shape, len(item_ids), len(hashes))
    if factory:
        return FaissCaseIndex(vectors, item_ids, hashes, factory=factory)
    return ExactCaseIndex(vectors, item_ids, hashes)
