"""Typed containers shared across scoring modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Hashable, List


@dataclass
class ScoredCandidate:
    """An item of the result set together with its display score."""

    item: Hashable
    score: float


@dataclass
class ScoreMap:
    """Output of the neighbor pass: index key -> score, plus matched positions."""

    by_key: Dict[Hashable, float] = field(default_factory=dict)
    matched_positions: List[int] = field(default_factory=list)
    neighbors_seen: int = 0


@dataclass
class TopList:
    """
    Best scored positions, descending, split at ``tail_start``.

    ``positions[:tail_start]`` is the prefix left untouched by reordering
    (identical matches, always including position 0 as the chain anchor).
    ``positions[tail_start:]`` is the similar tail.
    """

    positions: List[int]
    tail_start: int

    @property
    def tail_size(self) -> int:
        return len(self.positions) - self.tail_start

    @property
    def prefix(self) -> List[int]:
        return self.positions[: self.tail_start]

    @property
    def tail(self) -> List[int]:
        return self.positions[self.tail_start :]
