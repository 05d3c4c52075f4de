from __future__ import annotations

import math
from typing import Callable, Union

from .config import DEFAULT_CONFIG, ScorerConfig


def relevance_to_square_distance(relevance: float) -> float:
    """Invert ``relevance = 1 / (1 + d^2)``; non-positive relevance is infinitely far."""
    if relevance <= 0 or math.isnan(relevance):
        return math.inf
    return max(0.0, 1.0 / relevance - 1.0)


def distance_to_score(distance: float, num_features: int, cfg: ScorerConfig = DEFAULT_CONFIG) -> float:
    """Continuous score in ``[0, base_score]``."""
    if num_features <= 0:
        raise ValueError("num_features must be positive")
    return max(0.0, cfg.base_score - distance * cfg.dist_to_score_mult / num_features)


def convert(
    raw_relevance: float,
    ref_vector_length: int,
    is_exact_candidate: Union[bool, Callable[[], bool]],
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> float:
    """
    Display score of one neighbor.

    ``is_exact_candidate`` may be a callable (typically a content-hash
    comparison); it is only evaluated for near-zero distances, and any
    exception it raises propagates to the caller.
    """
    distance = relevance_to_square_distance(raw_relevance)
    score = distance_to_score(distance, ref_vector_length, cfg)
    if distance < cfg.identical_epsilon:
        exact = is_exact_candidate() if callable(is_exact_candidate) else is_exact_candidate
        if exact:
            score = cfg.identical_score
    return score
