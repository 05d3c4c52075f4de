# imgsim/scorer.py
from __future__ import annotations

from typing import Hashable, List, Optional

import numpy as np
from loguru import logger

from .chain_reorder import chain_reorder, relinearize_scores, tail_score_bounds
from .collaborators import CaseIndex, ResultSet
from .config import DEFAULT_CONFIG, ScorerConfig
from .distance import as_feature_vector, square_distance
from .errors import HashLookupError
from .neighbors import build_score_map
from .pipeline_types import ScoredCandidate, TopList
from .top_select import fetch_features, select_top


class ImageSimilarityScorer:
    """
    Scores a result set by visual similarity to one reference image.

    Every position gets a score: ``identical_score`` for exact duplicates of
    the reference, a value in ``[min_score, base_score]`` for neighbors close
    enough, 0 otherwise.  The best ``max_top`` non-identical matches are then
    regrouped so similar images sit next to each other, and their scores are
    respread evenly so "higher score = earlier" still holds.

    One instance serves one call; it keeps no state shared with other calls.
    """

    def __init__(
        self,
        index: CaseIndex,
        result_set: ResultSet,
        reference_vector,
        reference_hash: Optional[str] = None,
        cfg: ScorerConfig = DEFAULT_CONFIG,
    ):
        self.index = index
        self.result_set = result_set
        self.reference = None if reference_vector is None else as_feature_vector(reference_vector)
        self.reference_hash = reference_hash
        self.cfg = cfg
        self.top: Optional[TopList] = None

    @classmethod
    def for_item(
        cls,
        index: CaseIndex,
        result_set: ResultSet,
        item: Hashable,
        cfg: ScorerConfig = DEFAULT_CONFIG,
    ) -> "ImageSimilarityScorer":
        """Use an indexed item (its stored vector and hash) as the reference."""
        key = index.internal_key_of(item)
        vector = None
        ref_hash = None
        if key is not None:
            vector = index.vectors_of([key]).get(key)
            try:
                ref_hash = index.hash_of(key)
            except HashLookupError as e:
                logger.warning("Hash lookup failed for reference {}: {}", item, e)
        if vector is None:
            logger.warning("Reference item {} has no similarity features", item)
        return cls(index, result_set, vector, ref_hash, cfg)

    def score(self) -> Optional[TopList]:
        """
        Run the scoring pass, then the best-effort reordering.

        Raises :class:`~imgsim.errors.ScoringError` if the neighbor query
        fails; the result set is left untouched in that case.
        """
        if self.reference is None or self.reference.size == 0 or len(self.result_set) == 0:
            logger.info("Nothing to score (reference features or results missing)")
            return None

        score_map = build_score_map(
            self.index, self.result_set, self.reference, self.reference_hash, self.cfg
        )
        self.top = select_top(score_map.matched_positions, self.result_set, self.cfg)
        self._organize_top_results(self.top)
        return self.top

    def _organize_top_results(self, top: TopList) -> None:
        if top.tail_size <= 2:
            return

        order = top.positions
        needed = order[top.tail_start - 1 :]
        try:
            features = fetch_features(self.index, self.result_set, needed)
        except OSError as e:
            logger.warning("Feature fetch failed; keeping distance order: {}", e)
            return
        if len(features) < len(needed):
            logger.warning("Incomplete features for reordering; keeping distance order")
            return

        max_score, min_score = tail_score_bounds(order, top.tail_start, self.result_set)
        chain_reorder(
            order,
            top.tail_start,
            features,
            self.reference,
            self.cfg.range_check,
            square_distance,
        )
        relinearize_scores(self.result_set, order, top.tail_start, max_score, min_score)
        logger.info("Reordered {} similar results after {} anchored", top.tail_size, top.tail_start)

    def top_candidates(self) -> List[ScoredCandidate]:
        """Top results in display order with their final scores."""
        if self.top is None:
            return []
        return [
            ScoredCandidate(item=self.result_set.item_at(pos), score=self.result_set.get_score(pos))
            for pos in self.top.positions
        ]


def score_by_similarity(
    index: CaseIndex,
    result_set: ResultSet,
    reference_vector: np.ndarray,
    reference_hash: Optional[str] = None,
    cfg: ScorerConfig = DEFAULT_CONFIG,
) -> List[ScoredCandidate]:
    """One-shot helper: score ``result_set`` and return the ordered top list."""
    scorer = ImageSimilarityScorer(index, result_set, reference_vector, reference_hash, cfg)
    scorer.score()
    return scorer.top_candidates()
