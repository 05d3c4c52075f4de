import pytest
from pydantic import ValidationError

from imgsim.config import DEFAULT_CONFIG, ScorerConfig


def test_reference_defaults():
    cfg = DEFAULT_CONFIG
    assert cfg.dist_to_score_mult == 4.0
    assert cfg.identical_score == 1000.0
    assert cfg.min_score == 1.0
    assert cfg.max_results == 100_000
    assert cfg.max_top == 2000
    assert cfg.range_check == 100


def test_config_is_frozen():
    cfg = ScorerConfig()
    with pytest.raises(ValidationError):
        cfg.max_top = 5


def test_identical_must_exceed_formula_ceiling():
    with pytest.raises(ValidationError):
        ScorerConfig(identical_score=50.0)


def test_from_env_overrides(monkeypatch):
    monkeypatch.setenv("IMGSIM_MAX_TOP", "50")
    monkeypatch.setenv("IMGSIM_DIST_TO_SCORE_MULT", "2.5")
    monkeypatch.delenv("IMGSIM_RANGE_CHECK", raising=False)
    cfg = ScorerConfig.from_env()
    assert cfg.max_top == 50
    assert cfg.dist_to_score_mult == 2.5
    assert cfg.range_check == 100


def test_from_env_rejects_bad_values():
    with pytest.raises(ValidationError):
        ScorerConfig.from_env({"IMGSIM_RANGE_CHECK": "0"})
