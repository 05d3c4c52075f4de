"""Image similarity scoring and proximity reordering of search results."""

from .config import DEFAULT_CONFIG, ScorerConfig
from .errors import HashLookupError, ScoringError
from .scorer import ImageSimilarityScorer, score_by_similarity

__all__ = [
    "DEFAULT_CONFIG",
    "HashLookupError",
    "ImageSimilarityScorer",
    "ScorerConfig",
    "ScoringError",
    "score_by_similarity",
]
