"""Accuracy and speed comparisons between MinHash estimates and exact Jaccard."""
from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Optional

import psutil
from tqdm import tqdm

from .errors import UndefinedSimilarity
from .hashing import SeedLike
from .ingest import Corpus
from .minhash import build_signature_matrix
from .similarity import approximate_jaccard, exact_jaccard

logger = logging.getLogger(__name__)


@dataclass
class AccuracyReport:
    num_permutations: int
    epsilon: float
    comparisons: int
    exceeding: int
    mean_absolute_error: float
    # Pairs of term-less documents, left out of every figure above.
    skipped: int = 0


@dataclass
class SpeedReport:
    num_permutations: int
    comparisons: int
    exact_seconds: float
    approximate_seconds: float
    memory_mb: float


def measure_accuracy(
    corpus: Corpus,
    k: int,
    epsilon: float,
    seed: SeedLike = None,
    *,
    modulus: Optional[int] = None,
    show_progress: bool = False,
) -> AccuracyReport:
    """Compare approximate and exact Jaccard over every document pair.

    Counts the pairs whose estimate is off by more than *epsilon*.
    """
    matrix = build_signature_matrix(corpus, k, seed, modulus=modulus, show_progress=show_progress)
    comparisons = exceeding = skipped = 0
    total_error = 0.0
    pairs = itertools.combinations(range(len(matrix)), 2)
    n_pairs = len(matrix) * (len(matrix) - 1) // 2
    for i, j in tqdm(pairs, total=n_pairs, desc="Comparing", disable=not show_progress):
        a, b = matrix.doc_ids[i], matrix.doc_ids[j]
        try:
            exact = exact_jaccard(corpus.tokens_of(a), corpus.tokens_of(b))
        except UndefinedSimilarity:
            skipped += 1
            continue
        error = abs(approximate_jaccard(matrix.values[i], matrix.values[j]) - exact)
        total_error += error
        comparisons += 1
        if error > epsilon:
            exceeding += 1

    report = AccuracyReport(
        num_permutations=k,
        epsilon=epsilon,
        comparisons=comparisons,
        exceeding=exceeding,
        mean_absolute_error=total_error / comparisons if comparisons else 0.0,
        skipped=skipped,
    )
    logger.info("accuracy: %s", report)
    return report


def measure_speed(corpus: Corpus, k: int, seed: SeedLike = None) -> SpeedReport:
    """Time all-pairs exact Jaccard against signature construction plus all-pairs estimates."""
    docs = list(corpus.list_documents())
    for doc_id in docs:  # warm the token cache so neither side pays for file reads
        corpus.tokens_of(doc_id)

    comparisons = 0
    start = time.perf_counter()
    for a, b in itertools.combinations(docs, 2):
        try:
            exact_jaccard(corpus.tokens_of(a), corpus.tokens_of(b))
        except UndefinedSimilarity:
            pass
        comparisons += 1
    exact_seconds = time.perf_counter() - start

    start = time.perf_counter()
    matrix = build_signature_matrix(corpus, k, seed)
    for i, j in itertools.combinations(range(len(matrix)), 2):
        approximate_jaccard(matrix.values[i], matrix.values[j])
    approximate_seconds = time.perf_counter() - start

    memory_mb = psutil.Process().memory_info().rss / 1024 / 1024
    report = SpeedReport(k, comparisons, exact_seconds, approximate_seconds, memory_mb)
    logger.info("speed: %s", report)
    return report
