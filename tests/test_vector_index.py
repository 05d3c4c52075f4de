import argparse
import json

import numpy as np
import pytest

from imgsim import debug_score
from imgsim.vector_index import ExactCaseIndex, FaissCaseIndex, load_case_index


def _vectors():
    return np.array(
        [
            [0.0, 0.0, 0.0],
            [3.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [0.0, 2.0, 0.0],
        ],
        dtype="float32",
    )


def test_exact_neighbors_ordered_by_relevance():
    index = ExactCaseIndex(_vectors(), ["w", "x", "y", "z"], {"w": "h-w"})
    out = index.nearest_neighbors(np.zeros(3, dtype="float32"), 3)

    assert [row for row, _ in out] == [0, 2, 3]
    assert [rel for _, rel in out] == pytest.approx([1.0, 0.5, 0.2])
    assert index.internal_key_of("y") == 2
    assert index.internal_key_of("nope") is None
    assert index.hash_of(0) == "h-w"
    assert index.hash_of(1) is None


def test_faiss_flat_matches_exact():
    vectors = np.random.default_rng(3).normal(size=(50, 8)).astype("float32")
    ids = list(range(50))
    exact = ExactCaseIndex(vectors, ids)
    approx = FaissCaseIndex(vectors, ids, factory="Flat")

    query = vectors[7]
    ex = exact.nearest_neighbors(query, 10)
    fa = approx.nearest_neighbors(query, 10)
    assert [r for r, _ in fa] == [r for r, _ in ex]
    assert [s for _, s in fa] == pytest.approx([s for _, s in ex], rel=1e-4)


def test_rows_must_match_ids():
    with pytest.raises(ValueError):
        ExactCaseIndex(_vectors(), ["only-one"])


def _write_case(tmp_path):
    emb = tmp_path / "features.npy"
    ids = tmp_path / "ids.json"
    hashes = tmp_path / "hashes.json"
    np.save(emb, _vectors(), allow_pickle=False)
    ids.write_text(json.dumps([10, 11, 12, 13]), encoding="utf-8")
    hashes.write_text(json.dumps({"10": "abc"}), encoding="utf-8")
    return emb, ids, hashes


def test_load_case_index_from_files(tmp_path):
    emb, ids, hashes = _write_case(tmp_path)
    index = load_case_index(emb, ids, hashes)
    assert isinstance(index, ExactCaseIndex)
    assert index.internal_key_of(12) == 2
    assert index.hash_of(0) == "abc"

    assert isinstance(load_case_index(emb, ids, factory="Flat"), FaissCaseIndex)


def test_load_case_index_missing_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_case_index(tmp_path / "nope.npy", tmp_path / "ids.json")


def test_debug_score_prints_ranking(tmp_path, capsys):
    emb, ids, hashes = _write_case(tmp_path)
    args = argparse.Namespace(
        embeddings=str(emb),
        ids=str(ids),
        hashes=str(hashes),
        reference="10",
        faiss_factory=None,
        show=10,
    )
    debug_score.main(args)
    out = capsys.readouterr().out
    assert "Reference: 10" in out
    assert "1000.000" in out


def test_module_docstring_is_kept():
    from imgsim import vector_index

    assert vector_index.__doc__ and "Reference case indexes" in vector_index.__doc__
