# imgsim/debug_score.py
import argparse
from pathlib import Path

from loguru import logger

from .collaborators import ListResultSet
from .config import ScorerConfig
from .scorer import ImageSimilarityScorer
from .vector_index import load_case_index


def _parse_item(raw: str, item_ids):
    # ids from JSON may be ints; match the CLI string back to them
    for item in item_ids:
        if str(item) == raw:
            return item
    raise SystemExit(f"Reference item {raw!r} not found in id mapping")


def main(args):
    index = load_case_index(
        Path(args.embeddings),
        Path(args.ids),
        Path(args.hashes) if args.hashes else None,
        factory=args.faiss_factory,
    )
    ref_item = _parse_item(args.reference, index.item_ids)
    results = ListResultSet(index.item_ids)

    cfg = ScorerConfig.from_env()
    scorer = ImageSimilarityScorer.for_item(index, results, ref_item, cfg)
    top = scorer.score()
    if top is None:
        print("Nothing scored.")
        return

    candidates = scorer.top_candidates()
    print(f"Reference: {ref_item}")
    print(f"Matched: {len(candidates)}  identical/anchor prefix: {top.tail_start}  reordered tail: {top.tail_size}\n")
    for rank, cand in enumerate(candidates[: args.show], start=1):
        marker = "=" if cand.score >= cfg.identical_score else " "
        print(f"{rank:>5} {marker} {cand.score:9.3f}  {cand.item}")
    logger.info("Printed {} of {} results", min(args.show, len(candidates)), len(candidates))


if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Score all indexed images against one reference image.")
    ap.add_argument("--embeddings", required=True, help=".npy matrix of feature vectors (N, D)")
    ap.add_argument("--ids", required=True, help="JSON list of item ids, one per row")
    ap.add_argument("--hashes", default=None, help="JSON object item id -> content hash")
    ap.add_argument("--reference", required=True, help="item id of the reference image")
    ap.add_argument("--faiss_factory", default=None, help='e.g. "Flat" or "HNSW32"; default is exact numpy search')
    ap.add_argument("--show", type=int, default=30)
    main(ap.parse_args())
