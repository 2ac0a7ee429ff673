"""Banded LSH index behaviour."""
from __future__ import annotations

import numpy as np
import pytest

from docsketch.detector.errors import DimensionMismatch, InvalidParameter, NotFound
from docsketch.detector.ingest import InMemoryCorpus
from docsketch.detector.lsh_index import BucketKey, LSHIndex, build_index, query
from docsketch.detector.minhash import SignatureMatrix, build_signature_matrix
from docsketch.detector.primes import next_prime

DOCS = {
    "fox": "the quick brown fox jumps over the lazy dog",
    "fox_copy": "The quick brown fox jumps over the lazy dog.",
    "fox_variant": "a quick brown fox leaps over the lazy dog",
    "stocks": "markets rallied after strong earnings from technology firms",
    "weather": "heavy rain expected across northern regions tomorrow morning",
}


@pytest.fixture(scope="module")
def matrix() -> SignatureMatrix:
    return build_signature_matrix(InMemoryCorpus(DOCS), 100, seed=11)


def test_bands_must_divide_signature_length(matrix: SignatureMatrix) -> None:
    with pytest.raises(InvalidParameter):
        LSHIndex.build(matrix, 7, seed=1)
    with pytest.raises(InvalidParameter):
        LSHIndex.build(matrix, 0, seed=1)
    index = LSHIndex.build(matrix, 20, seed=1)
    assert index.rows_per_band == 5
    assert index.table_prime == next_prime(5 * len(DOCS))


def test_identical_documents_find_each_other(matrix: SignatureMatrix) -> None:
    index = build_index(matrix, 20, seed=1)
    assert {"fox", "fox_copy"} <= query(index, "fox")
    assert {"fox", "fox_copy"} <= query(index, "fox_copy")


def test_query_includes_self(matrix: SignatureMatrix) -> None:
    index = build_index(matrix, 20, seed=1)
    for doc_id in DOCS:
        assert doc_id in index.near_duplicates_of(doc_id)


def test_unknown_document_raises(matrix: SignatureMatrix) -> None:
    index = build_index(matrix, 20, seed=1)
    with pytest.raises(NotFound):
        index.near_duplicates_of("missing")
    with pytest.raises(KeyError):
        query(index, "missing")


def test_rebuild_with_same_seed_is_identical(matrix: SignatureMatrix) -> None:
    first = LSHIndex.build(matrix, 25, seed=42)
    second = LSHIndex.build(matrix, 25, seed=42)
    assert first.hash_function == second.hash_function
    assert dict(first.buckets) == dict(second.buckets)


def test_index_is_read_only(matrix: SignatureMatrix) -> None:
    index = LSHIndex.build(matrix, 20, seed=3)
    with pytest.raises(TypeError):
        index.buckets[BucketKey(0, 0)] = ("x",)  # type: ignore[index]
    with pytest.raises(ValueError):
        matrix.values[0, 0] = 1


def test_every_document_lands_in_every_band(matrix: SignatureMatrix) -> None:
    index = LSHIndex.build(matrix, 10, seed=3)
    for doc_id in DOCS:
        keys = index.band_keys(doc_id)
        assert [k.band for k in keys] == list(range(10))
        for key in keys:
            assert doc_id in index.buckets[key]


def test_band_fold_matches_formula() -> None:
    m = SignatureMatrix(["x", "y", "z"], [[1, 2, 3, 4], [1, 2, 9, 9], [5, 6, 7, 8]])
    index = LSHIndex.build(m, 2, seed=8)
    h = index.hash_function
    acc = 1
    for value in (1, 2):
        acc = (acc + h.a * value + h.b) % h.p
    assert index.band_keys("x")[0] == BucketKey(0, acc)
    # x and y agree on the whole first band.
    assert index.band_keys("x")[0] == index.band_keys("y")[0]
    assert "y" in index.near_duplicates_of("x")
    assert "x" in index.near_duplicates_of("y")


def test_candidate_pairs_are_sorted_and_unique(matrix: SignatureMatrix) -> None:
    index = LSHIndex.build(matrix, 50, seed=5)
    pairs = index.candidate_pairs()
    assert ("fox", "fox_copy") in pairs
    assert pairs == sorted(set(pairs))
    assert all(a < b for a, b in pairs)


def test_candidates_for_external_signature(matrix: SignatureMatrix) -> None:
    index = LSHIndex.build(matrix, 20, seed=5)
    sig = matrix.signature_of("fox")
    assert {"fox", "fox_copy"} <= index.candidates_for(sig)
    with pytest.raises(DimensionMismatch):
        index.candidates_for(sig[:10])


def test_matrix_signs_new_text_with_its_family(matrix: SignatureMatrix) -> None:
    index = LSHIndex.build(matrix, 20, seed=5)
    tokens = InMemoryCorpus({"new": "The quick, brown fox jumps over the lazy dog."}).tokens_of("new")
    sig = matrix.sign(tokens)
    assert np.array_equal(sig, matrix.signature_of("fox"))
    assert {"fox", "fox_copy"} <= index.candidates_for(sig)
    with pytest.raises(InvalidParameter):
        SignatureMatrix(["a"], [[1, 2]]).sign(["quick"])


def test_empty_documents_share_buckets() -> None:
    corpus = InMemoryCorpus({"blank": "", "tiny": "a an of", "text": "something longer here"})
    m = build_signature_matrix(corpus, 20, seed=0)
    index = LSHIndex.build(m, 4, seed=0)
    assert "tiny" in index.near_duplicates_of("blank")


# ---------------------------------------------------------------------------
# Signature matrix
# ---------------------------------------------------------------------------


def test_matrix_preserves_corpus_order(matrix: SignatureMatrix) -> None:
    assert list(matrix.doc_ids) == list(DOCS)
    assert matrix.num_permutations == 100
    assert [doc_id for doc_id, _ in matrix] == list(DOCS)
    assert np.array_equal(matrix.signature_of("fox"), matrix.signature_of("fox_copy"))


def test_matrix_rejects_duplicate_ids_and_ragged_rows() -> None:
    with pytest.raises(InvalidParameter):
        SignatureMatrix(["a", "a"], [[1, 2], [3, 4]])
    with pytest.raises(InvalidParameter):
        SignatureMatrix.from_rows([("a", [1, 2]), ("b", [1, 2, 3])])
    with pytest.raises(NotFound):
        SignatureMatrix(["a"], [[1, 2]]).index_of("b")


def test_empty_corpus_builds_empty_index() -> None:
    m = build_signature_matrix(InMemoryCorpus({}), 10, seed=0)
    assert len(m) == 0
    assert m.num_permutations == 10
    index = LSHIndex.build(m, 5, seed=0)
    assert len(index) == 0
    assert index.candidate_pairs() == []


def test_empty_matrix_keeps_column_count() -> None:
    m = SignatureMatrix([], np.empty((0, 10), dtype=np.int64))
    assert m.num_permutations == 10
    assert SignatureMatrix([], []).num_permutations == 0
    with pytest.raises(InvalidParameter):
        SignatureMatrix([], np.empty((0, 10)), num_permutations=4)
