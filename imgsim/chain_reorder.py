from __future__ import annotations

import math
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np

from .collaborators import ResultSet

DistanceFn = Callable[[np.ndarray, np.ndarray, Optional[float]], float]


def reference_distances(
    positions: List[int],
    features: Mapping[int, np.ndarray],
    reference: np.ndarray,
    distance: DistanceFn,
) -> Dict[int, float]:
    return {pos: distance(reference, features[pos], None) for pos in positions}


def chain_reorder(
    order: List[int],
    tail_start: int,
    features: Mapping[int, np.ndarray],
    reference: np.ndarray,
    range_check: int,
    distance: DistanceFn,
) -> List[int]:
    """
    Greedily re-sequence ``order[tail_start:]`` so neighbors look alike.

    Walking left to right from the element just before the tail (the seed),
    the next slot gets the candidate within ``range_check`` positions that
    minimizes ``dist(reference, c) + dist(pivot, c)``.  The cached reference
    distance doubles as a lower bound: a candidate whose reference distance
    alone cannot beat the best cost is skipped, and the pivot distance is
    computed with the remaining budget as its cap.  The chosen candidate is
    rotated into place so everything it jumped over keeps its relative order.

    Mutates ``order`` in place (and returns it).  Tails of 2 or fewer
    entries are left alone.  ``features`` must cover the seed and the tail.
    """
    n = len(order)
    if n - tail_start <= 2:
        return order

    first = max(tail_start - 1, 0)
    ref_dist = reference_distances(order[first:], features, reference, distance)

    for i in range(first, n - 2):
        pivot = features[order[i]]
        limit = min(n - 1, i + range_check)
        best_cost = math.inf
        best = i + 1
        for j in range(i + 1, limit + 1):
            cand = order[j]
            cost = ref_dist[cand]
            if cost >= best_cost:
                continue
            cost += distance(pivot, features[cand], best_cost - cost)
            if cost < best_cost:
                best_cost = cost
                best = j
        if best != i + 1:
            order[i + 1 : best + 1] = [order[best]] + order[i + 1 : best]

    return order


def tail_score_bounds(order: List[int], tail_start: int, result_set: ResultSet) -> Tuple[float, float]:
    """(max, min) of a tail still sorted by descending score."""
    return result_set.get_score(order[tail_start]), result_set.get_score(order[-1])


def relinearize_scores(
    result_set: ResultSet,
    order: List[int],
    tail_start: int,
    max_score: float,
    min_score: float,
) -> None:
    """Evenly spaced scores from ``max_score`` down to ``min_score`` along the tail."""
    tail = order[tail_start:]
    if not tail:
        return
    if len(tail) == 1:
        result_set.set_score(tail[0], max_score)
        return
    step = (max_score - min_score) / (len(tail) - 1)
    for k, pos in enumerate(tail):
        result_set.set_score(pos, max_score - step * k)
    # pin the end exactly
    result_set.set_score(tail[-1], min_score)
