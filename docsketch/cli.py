"""docsketch unified command-line interface.

Usage
-----
$ docsketch near-duplicates corpus/ doc.txt --permutations 100 --bands 20 --threshold 0.5
$ docsketch accuracy corpus/ --permutations 200 --epsilon 0.05
$ docsketch speed corpus/ --permutations 100
$ docsketch run config.yml

The *near-duplicates* command lists the documents whose exact Jaccard
similarity with the given one exceeds the threshold among its LSH candidates,
then the number of false positives.

The *accuracy* command counts document pairs whose MinHash estimate is off by
more than epsilon. The *speed* command times exact against approximate
all-pairs similarity.

The *run* command reads a YAML configuration and writes every verified
near-duplicate pair of the corpus to ``<out>/duplicates.jsonl``.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

from .config import SketchConfig, load_config
from .detector.benchmark import measure_accuracy, measure_speed
from .detector.dedup import find_near_duplicates, process_corpus
from .detector.errors import SketchError
from .detector.ingest import FolderCorpus
from .detector.lsh_index import LSHIndex
from .detector.minhash import build_signature_matrix

logger = logging.getLogger(__name__)

# -----------------------------------------------------------
# Helpers
# -----------------------------------------------------------


def _config_from_args(args: argparse.Namespace) -> SketchConfig:
    # accuracy/speed never band the signatures; any k is acceptable there.
    bands = args.bands if "bands" in vars(args) else 1
    return SketchConfig().with_overrides(
        num_permutations=getattr(args, "permutations", None),
        num_bands=bands,
        threshold=getattr(args, "threshold", None),
        seed=getattr(args, "seed", None),
        processes=getattr(args, "processes", None),
        stop_words=getattr(args, "stop_words", None),
    ).validate()


# -----------------------------------------------------------
# Commands
# -----------------------------------------------------------


def _cmd_near_duplicates(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    corpus = FolderCorpus(args.folder, cfg.tokenizer())
    matrix = build_signature_matrix(
        corpus, cfg.num_permutations, cfg.seed, processes=cfg.processes, show_progress=args.progress
    )
    index = LSHIndex.build(matrix, cfg.num_bands, cfg.seed)
    report = find_near_duplicates(corpus, index, args.doc, cfg.threshold, exclude_self=not args.include_self)

    for doc_id, score in report.matches:
        print(f"{doc_id}\t{score:.4f}" if args.scores else doc_id)
    if report.undefined:
        logger.warning("%d candidates skipped: both documents have no terms", len(report.undefined))
    print(f"Number of false positives: {report.num_false_positives}")


def _cmd_accuracy(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    corpus = FolderCorpus(args.folder, cfg.tokenizer())
    report = measure_accuracy(corpus, cfg.num_permutations, args.epsilon, cfg.seed, show_progress=args.progress)
    print(f"Total number of comparisons: {report.comparisons}")
    print(
        "Number of times exact and approximate jaccard differ more than epsilon: "
        f"{report.exceeding}"
    )
    print(f"Mean absolute error: {report.mean_absolute_error:.4f}")


def _cmd_speed(args: argparse.Namespace) -> None:
    cfg = _config_from_args(args)
    corpus = FolderCorpus(args.folder, cfg.tokenizer())
    report = measure_speed(corpus, cfg.num_permutations, cfg.seed)
    print(f"Exact jaccard total time: {report.exact_seconds * 1000:.0f} (ms)")
    print("------------------------------")
    print(f"Approx jaccard total time: {report.approximate_seconds * 1000:.0f} (ms)")
    print(f"Resident memory: {report.memory_mb:.1f} MB")


def _cmd_run(args: argparse.Namespace) -> None:
    cfg_path: Path = args.config.resolve()
    cfg, run_keys = load_config(cfg_path)
    if "data_dir" not in run_keys:
        raise SketchError(f"{cfg_path}: missing required key 'data_dir'")

    data_dir = Path(run_keys["data_dir"]).expanduser().resolve()
    out_dir = Path(run_keys.get("out", "results")).expanduser().resolve()

    corpus = FolderCorpus(data_dir, cfg.tokenizer())
    summary = process_corpus(corpus, cfg, out_dir, show_progress=args.progress)
    print(
        f"Processed {summary['documents']:,} documents in {summary['seconds']:.2f}s: "
        f"{summary['duplicate_pairs']:,} near-duplicate pairs, "
        f"{summary['false_positives']:,} false positives."
    )
    print(f"Results written to {out_dir / 'duplicates.jsonl'}")


# -----------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------


def _add_sketch_args(p: argparse.ArgumentParser, *, bands: bool = False) -> None:
    p.add_argument("folder", type=Path, help="Folder whose files are the documents")
    p.add_argument("-k", "--permutations", type=int, help="Signature length (default: 100)")
    if bands:
        p.add_argument("-b", "--bands", type=int, help="LSH bands; must divide k (default: 20)")
    p.add_argument("--seed", type=int, help="Seed for hash coefficients (default: random)")
    p.add_argument("--stop-words", nargs="*", help="Stop words (default: the)")
    p.add_argument("--progress", action="store_true", help="Show progress bars")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsketch",
        description="MinHash + LSH near-duplicate detection for text documents",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(required=True, dest="cmd")

    p_near = sub.add_parser("near-duplicates", help="List near duplicates of one document")
    _add_sketch_args(p_near, bands=True)
    p_near.add_argument("doc", help="Document (file name) to find near duplicates for")
    p_near.add_argument("-t", "--threshold", type=float, help="Exact Jaccard cut-off (default: 0.5)")
    p_near.add_argument("-j", "--processes", type=int, help="Worker processes for signatures")
    p_near.add_argument("--scores", action="store_true", help="Print exact similarity next to each match")
    p_near.add_argument("--include-self", action="store_true", help="Keep the queried document in the output")
    p_near.set_defaults(func=_cmd_near_duplicates)

    p_acc = sub.add_parser("accuracy", help="Count pairs where the estimate misses by more than epsilon")
    _add_sketch_args(p_acc)
    p_acc.add_argument("-e", "--epsilon", type=float, required=True, help="Allowed absolute error")
    p_acc.set_defaults(func=_cmd_accuracy)

    p_speed = sub.add_parser("speed", help="Time exact against approximate all-pairs Jaccard")
    _add_sketch_args(p_speed)
    p_speed.set_defaults(func=_cmd_speed)

    p_run = sub.add_parser("run", help="Report every near-duplicate pair using a YAML config")
    p_run.add_argument("config", type=Path, help="Path to YAML configuration file")
    p_run.add_argument("--progress", action="store_true", help="Show progress bars")
    p_run.set_defaults(func=_cmd_run)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except (SketchError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
