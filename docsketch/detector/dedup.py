"""Near-duplicate reporting on top of the MinHash + LSH core.

LSH buckets only shortlist candidates. Every candidate is re-checked with the
exact Jaccard similarity of the two documents' term sets; candidates at or
below the threshold are false positives.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from tqdm import tqdm

from .errors import UndefinedSimilarity
from .ingest import Corpus
from .lsh_index import LSHIndex
from .minhash import build_signature_matrix
from .similarity import approximate_jaccard, exact_jaccard

if TYPE_CHECKING:  # pragma: no cover
    from ..config import SketchConfig

logger = logging.getLogger(__name__)


@dataclass
class NearDuplicateReport:
    doc_id: str
    matches: List[Tuple[str, float]] = field(default_factory=list)
    false_positives: List[str] = field(default_factory=list)
    # Candidates where both documents have no terms at all.
    undefined: List[str] = field(default_factory=list)

    @property
    def num_false_positives(self) -> int:
        return len(self.false_positives)


def find_near_duplicates(
    corpus: Corpus,
    index: LSHIndex,
    doc_id: str,
    threshold: float,
    *,
    exclude_self: bool = True,
) -> NearDuplicateReport:
    """Split the LSH candidates of *doc_id* into verified matches and false positives.

    A candidate matches when its exact Jaccard similarity with *doc_id* is
    strictly greater than *threshold*. Matches are ordered by decreasing
    similarity, then by id.
    """
    report = NearDuplicateReport(doc_id)
    own_terms = corpus.tokens_of(doc_id)
    for cand in sorted(index.near_duplicates_of(doc_id)):
        if exclude_self and cand == doc_id:
            continue
        try:
            score = exact_jaccard(own_terms, corpus.tokens_of(cand))
        except UndefinedSimilarity:
            report.undefined.append(cand)
            continue
        if score > threshold:
            report.matches.append((cand, score))
        else:
            report.false_positives.append(cand)
    report.matches.sort(key=lambda m: (-m[1], m[0]))
    logger.debug(
        "%s: %d matches, %d false positives", doc_id, len(report.matches), report.num_false_positives
    )
    return report


# -----------------------------------------------------------
# Whole-corpus run
# -----------------------------------------------------------


def process_corpus(
    corpus: Corpus,
    config: "SketchConfig",
    out_dir: Path,
    *,
    show_progress: bool = False,
) -> Dict[str, Any]:
    """Find every verified near-duplicate pair in *corpus* and write them to *out_dir*.

    Outputs ``duplicates.jsonl`` (one ``{"a", "b", "exact", "approximate"}``
    record per pair, most similar first) and ``speed.txt``.
    """
    config.validate()
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    t0 = time.time()

    matrix = build_signature_matrix(
        corpus,
        config.num_permutations,
        config.seed,
        processes=config.processes,
        show_progress=show_progress,
    )
    index = LSHIndex.build(matrix, config.num_bands, config.seed)
    candidates = index.candidate_pairs()
    logger.info("%r produced %d candidate pairs", index, len(candidates))

    pairs: List[Dict[str, Any]] = []
    false_positives = 0
    for a, b in tqdm(candidates, desc="Verifying", disable=not show_progress):
        try:
            exact = exact_jaccard(corpus.tokens_of(a), corpus.tokens_of(b))
        except UndefinedSimilarity:
            false_positives += 1
            continue
        if exact > config.threshold:
            approx = approximate_jaccard(matrix.signature_of(a), matrix.signature_of(b))
            pairs.append({"a": a, "b": b, "exact": round(exact, 4), "approximate": round(approx, 4)})
        else:
            false_positives += 1
    pairs.sort(key=lambda rec: (-rec["exact"], rec["a"], rec["b"]))

    elapsed = time.time() - t0
    throughput = len(matrix) / max(elapsed, 1e-9)

    with (out_dir / "duplicates.jsonl").open("w", encoding="utf-8") as f:
        for rec in pairs:
            json.dump(rec, f)
            f.write("\n")
    (out_dir / "speed.txt").write_text(
        f"documents\tseconds\tthroughput_docs_per_s\n{len(matrix)}\t{elapsed:.2f}\t{throughput:.2f}\n"
    )

    summary = {
        "documents": len(matrix),
        "candidate_pairs": len(candidates),
        "duplicate_pairs": len(pairs),
        "false_positives": false_positives,
        "seconds": elapsed,
    }
    logger.info("near-duplicate run finished: %s", summary)
    return summary
