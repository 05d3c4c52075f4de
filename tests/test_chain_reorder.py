import numpy as np
import pytest

from imgsim.chain_reorder import chain_reorder, relinearize_scores, tail_score_bounds
from imgsim.collaborators import ListResultSet
from imgsim.distance import square_distance


def _vec(*xs):
    return np.array(xs, dtype="float32")


REF = _vec(0.0, 0.0)

# position -> features; 0 is the seed (identical to the reference)
FEATURES = {
    0: _vec(0.0, 0.0),
    1: _vec(1.0, 0.0),   # A
    2: _vec(0.0, 1.2),   # B
    3: _vec(-1.3, 0.0),  # C
    4: _vec(1.5, 0.0),   # D, close to A
}


def test_nearest_candidate_pulled_next_to_pivot():
    order = [0, 1, 2, 3, 4]
    chain_reorder(order, 1, FEATURES, REF, range_check=100, distance=square_distance)
    assert order[:3] == [0, 1, 4]
    assert order == [0, 1, 4, 2, 3]


def test_small_window_cannot_reach_far_candidate():
    order = [0, 1, 2, 3, 4]
    chain_reorder(order, 1, FEATURES, REF, range_check=1, distance=square_distance)
    assert order == [0, 1, 2, 3, 4]


def test_short_tail_is_noop():
    order = [0, 1, 2]
    chain_reorder(order, 1, FEATURES, REF, range_check=100, distance=square_distance)
    assert order == [0, 1, 2]


def test_membership_and_prefix_preserved():
    rng = np.random.default_rng(7)
    n = 60
    features = {p: rng.normal(size=8).astype("float32") for p in range(n)}
    ref = np.zeros(8, dtype="float32")
    order = list(range(n))
    tail_start = 3

    chain_reorder(order, tail_start, features, ref, range_check=10, distance=square_distance)

    assert order[:tail_start] == [0, 1, 2]
    assert sorted(order[tail_start:]) == list(range(tail_start, n))


def test_relinearized_scores_are_arithmetic():
    rs = ListResultSet(["s", "a", "b", "c", "d"])
    for pos, s in enumerate([1000.0, 90.0, 80.0, 50.0, 10.0]):
        rs.set_score(pos, s)
    order = [0, 1, 2, 3, 4]
    hi, lo = tail_score_bounds(order, 1, rs)

    order[1:] = [4, 2, 1, 3]
    relinearize_scores(rs, order, 1, hi, lo)

    tail_scores = [rs.get_score(p) for p in order[1:]]
    assert tail_scores == pytest.approx([90.0, 63.333333, 36.666667, 10.0])
    steps = np.diff(tail_scores)
    assert np.allclose(steps, steps[0])
    assert rs.get_score(0) == 1000.0
