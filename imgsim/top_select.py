# imgsim/top_select.py
from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
from loguru import logger

from .collaborators import CaseIndex, ResultSet
from .config import DEFAULT_CONFIG, ScorerConfig
from .distance import as_feature_vector
from .pipeline_types import TopList


def tail_start_of(positions: Sequence[int], result_set: ResultSet, identical_score: float) -> int:
    """
    First index (from 1) whose score is below ``identical_score``.

    Index 0 always stays in the prefix: it anchors the chain even when it
    is not an identical match.
    """
    for i in range(1, len(positions)):
        if result_set.get_score(positions[i]) < identical_score:
            return i
    return len(positions)


def select_top(
    matched_positions: Sequence[int],
    result_set: ResultSet,
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> TopList:
    """Sort matched positions by descending score, keep ``max_top``, split prefix/tail."""
    # tie order between equal scores is not part of the contract
    ranked = sorted(matched_positions, key=lambda pos: -result_set.get_score(pos))
    del ranked[cfg.max_top :]
    return TopList(positions=ranked, tail_start=tail_start_of(ranked, result_set, cfg.identical_score))


def fetch_features(
    index: CaseIndex,
    result_set: ResultSet,
    positions: Sequence[int],
) -> Dict[int, np.ndarray]:
    """
    Feature vectors of ``positions`` in one batch call, keyed by result position.

    Keys are requested in ascending position order. Positions whose key or
    vector is missing are left out. ``OSError`` from the index propagates.
    """
    key_of: Dict[int, object] = {}
    for pos in sorted(positions):
        key = index.internal_key_of(result_set.item_at(pos))
        if key is not None:
            key_of[pos] = key

    vectors = index.vectors_of(list(key_of.values()))
    features: Dict[int, np.ndarray] = {}
    for pos, key in key_of.items():
        vec = vectors.get(key)
        if vec is not None:
            features[pos] = as_feature_vector(vec)

    if len(features) < len(positions):
        logger.warning("Missing feature vectors for {} of {} top results", len(positions) - len(features), len(positions))
    return features
