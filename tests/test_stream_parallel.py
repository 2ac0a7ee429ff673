"""Parallel vs single-process equivalence tests for signature construction."""
from __future__ import annotations

import random

import numpy as np
import pytest

from docsketch.detector.ingest import InMemoryCorpus
from docsketch.detector.lsh_index import LSHIndex
from docsketch.detector.minhash import build_signature_matrix


def _synthetic_corpus() -> InMemoryCorpus:
    rng = random.Random(42)
    vocab = [f"tok{i}" for i in range(500)]
    docs = {}
    prev: list[str] | None = None
    for i in range(30):
        words = rng.choices(vocab, k=80)
        if prev is not None and i % 5 == 0:
            # Every 5th doc duplicates the previous one.
            words = prev
        prev = words
        docs[f"doc_{i:02d}"] = " ".join(words)
    return InMemoryCorpus(docs)


@pytest.mark.parametrize("processes", [2, 4])
def test_parallel_equivalence(processes: int) -> None:
    corpus = _synthetic_corpus()
    single = build_signature_matrix(corpus, 60, seed=7, processes=1)
    multi = build_signature_matrix(corpus, 60, seed=7, processes=processes)

    assert single.doc_ids == multi.doc_ids
    assert np.array_equal(single.values, multi.values)

    idx_single = LSHIndex.build(single, 12, seed=7)
    idx_multi = LSHIndex.build(multi, 12, seed=7)
    assert dict(idx_single.buckets) == dict(idx_multi.buckets)
    assert ("doc_04", "doc_05") in idx_multi.candidate_pairs()
