# imgsim/neighbors.py
from __future__ import annotations

from functools import partial
from typing import Dict, Hashable, List, Optional, Tuple

import numpy as np
from loguru import logger

from .collaborators import CaseIndex, ResultSet
from .config import DEFAULT_CONFIG, ScorerConfig
from .errors import HashLookupError, ScoringError
from .pipeline_types import ScoreMap
from .score_convert import convert


class _StopScan(Exception):
    pass


def _same_hash(index: CaseIndex, key: Hashable, reference_hash: Optional[str]) -> bool:
    if reference_hash is None:
        return False
    try:
        return index.hash_of(key) == reference_hash
    except HashLookupError as e:
        logger.warning("Hash lookup failed for {}; scoring as non-identical: {}", key, e)
        return False
    except OSError as e:
        raise _StopScan(e) from e


def query_neighbors(
    index: CaseIndex,
    reference_vector: np.ndarray,
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> List[Tuple[Hashable, float]]:
    """
    Nearest neighbors of the reference, highest relevance first.

    The early exit in :func:`scan_neighbors` relies on this order, so it is
    re-established here instead of trusted.
    """
    try:
        neighbors = index.nearest_neighbors(reference_vector, cfg.max_results)
    except OSError as e:
        raise ScoringError(f"Nearest-neighbor query failed: {e}") from e

    neighbors = [(key, float(rel)) for key, rel in neighbors]
    neighbors.sort(key=lambda kv: -kv[1])
    return neighbors


def scan_neighbors(
    index: CaseIndex,
    neighbors: List[Tuple[Hashable, float]],
    num_features: int,
    reference_hash: Optional[str] = None,
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> Tuple[Dict[Hashable, float], int]:
    """
    Score neighbors in order until one falls below ``min_score``.

    Returns ``(key -> score, number of neighbors examined)``.
    """
    scores: Dict[Hashable, float] = {}
    seen = 0

    for key, relevance in neighbors:
        seen += 1

        try:
            score = convert(relevance, num_features, partial(_same_hash, index, key, reference_hash), cfg)
        except _StopScan as e:
            logger.warning("I/O error reading neighbor {}; stopping scan with {} accepted: {}", key, len(scores), e)
            break

        if score < cfg.min_score:
            logger.debug("Score {:.3f} below min_score at neighbor #{}; stopping", score, seen)
            break
        scores[key] = score

    return scores, seen


def project_scores(
    index: CaseIndex,
    result_set: ResultSet,
    scores: Dict[Hashable, float],
) -> List[int]:
    """
    Write the score of every result-set position (0 when unmatched) and
    return the matched positions in result-set order.
    """
    matched: List[int] = []
    for pos in range(len(result_set)):
        key = index.internal_key_of(result_set.item_at(pos))
        score = scores.get(key) if key is not None else None
        if score is not None:
            result_set.set_score(pos, score)
            matched.append(pos)
        else:
            result_set.set_score(pos, 0.0)
    return matched


def build_score_map(
    index: CaseIndex,
    result_set: ResultSet,
    reference_vector: Optional[np.ndarray],
    reference_hash: Optional[str] = None,
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> ScoreMap:
    """
    Score the result set by distance to ``reference_vector``.

    No-op (empty map, scores untouched) when there is no reference vector
    or the result set is empty.
    """
    if reference_vector is None or len(reference_vector) == 0 or len(result_set) == 0:
        return ScoreMap()

    neighbors = query_neighbors(index, reference_vector, cfg)
    by_key, seen = scan_neighbors(index, neighbors, len(reference_vector), reference_hash, cfg)
    matched = project_scores(index, result_set, by_key)

    logger.info(
        "Neighbor pass: {} returned, {} examined, {} accepted, {} matched in result set",
        len(neighbors), seen, len(by_key), len(matched),
    )
    return ScoreMap(by_key=by_key, matched_positions=matched, neighbors_seen=seen)
