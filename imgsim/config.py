from __future__ import annotations

import os
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------
# Score conversion
# ---------------------------

# score = BASE_SCORE - distance * DIST_TO_SCORE_MULT / num_features
# Higher multipliers weigh distance more, so fewer images pass MIN_SCORE.
DIST_TO_SCORE_MULT = 4.0
BASE_SCORE = 100.0

# Reserved for images identical to the reference (same content hash),
# which can include the reference image itself.
IDENTICAL_SCORE = 1000.0
IDENTICAL_EPSILON = 0.001

# Images scoring below this are left out of the results.
MIN_SCORE = 1.0


# ---------------------------
# Neighbor query & reordering
# ---------------------------

MAX_RESULTS = 100_000

# The best MAX_TOP images are regrouped by mutual similarity, each one
# looking at most RANGE_CHECK positions ahead.
MAX_TOP = 2000
RANGE_CHECK = 100


# ---------------------------
# Env toggles
# ---------------------------

ENV_PREFIX = "IMGSIM_"

ENV_FIELDS: Dict[str, str] = {
    "DIST_TO_SCORE_MULT": "dist_to_score_mult",
    "MIN_SCORE": "min_score",
    "MAX_RESULTS": "max_results",
    "MAX_TOP": "max_top",
    "RANGE_CHECK": "range_check",
}


class ScorerConfig(BaseModel):
    """
    Tunables for one image similarity scoring call.

    Frozen so a single instance can be shared by concurrent scoring calls.
    """

    model_config = ConfigDict(frozen=True)

    dist_to_score_mult: float = Field(DIST_TO_SCORE_MULT, gt=0)
    base_score: float = Field(BASE_SCORE, gt=0)
    identical_score: float = Field(IDENTICAL_SCORE, gt=0)
    identical_epsilon: float = Field(IDENTICAL_EPSILON, ge=0)
    min_score: float = Field(MIN_SCORE, ge=0)
    max_results: int = Field(MAX_RESULTS, ge=1)
    max_top: int = Field(MAX_TOP, ge=1)
    range_check: int = Field(RANGE_CHECK, ge=1)

    @model_validator(mode="after")
    def _identical_above_formula(self) -> "ScorerConfig":
        if self.identical_score <= self.base_score:
            raise ValueError(
                f"identical_score ({self.identical_score}) must exceed base_score ({self.base_score})"
            )
        return self

    @classmethod
    def from_env(cls, environ=None) -> "ScorerConfig":
        """
        Build a config from IMGSIM_* environment variables, keeping the
        reference value for anything unset.
        """
        env = os.environ if environ is None else environ
        overrides = {}
        for suffix, field in ENV_FIELDS.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw is not None and raw.strip():
                overrides[field] = raw.strip()
        return cls(**overrides)


DEFAULT_CONFIG = ScorerConfig()
