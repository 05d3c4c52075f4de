"""
Interfaces of the external collaborators the scorer talks to.

The scorer never builds or owns an index. It is handed a *case index*
(vector storage + approximate nearest-neighbor search + item lookups)
and a *result set* (the items found by some earlier search, one mutable
score per position).  Anything with these methods works; see
:mod:`imgsim.vector_index` for reference index implementations.
"""

from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Optional, Protocol, Sequence, Tuple

import numpy as np


class CaseIndex(Protocol):
    def nearest_neighbors(self, vector: np.ndarray, k: int) -> List[Tuple[Hashable, float]]:
        """
        Up to ``k`` approximate nearest neighbors of ``vector`` as
        ``(internal_key, relevance)`` pairs, highest relevance first.
        Relevance follows ``1 / (1 + squared_distance)``.
        """
        ...

    def vectors_of(self, keys: Iterable[Hashable]) -> Dict[Hashable, np.ndarray]:
        """Batch fetch of stored feature vectors."""
        ...

    def internal_key_of(self, item: Hashable) -> Optional[Hashable]:
        """Translate a result-set item handle into the index key (None if absent)."""
        ...

    def hash_of(self, key: Hashable) -> Optional[str]:
        """Content hash of the indexed item, or None if unknown."""
        ...


class ResultSet(Protocol):
    def __len__(self) -> int: ...

    def item_at(self, position: int) -> Hashable: ...

    def get_score(self, position: int) -> float: ...

    def set_score(self, position: int, value: float) -> None: ...


class ListResultSet:
    """Plain list-backed result set; scores start at ``initial_score``."""

    def __init__(self, items: Sequence[Hashable], initial_score: float = 0.0):
        self.items = list(items)
        self.scores = [float(initial_score)] * len(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def item_at(self, position: int) -> Hashable:
        return self.items[position]

    def get_score(self, position: int) -> float:
        return self.scores[position]

    def set_score(self, position: int, value: float) -> None:
        self.scores[position] = float(value)

