"""Property-based similarity tests (Hypothesis)."""
from __future__ import annotations

import string
from typing import List, Set

import pytest

hyp = pytest.importorskip("hypothesis")

import hypothesis.strategies as st  # type: ignore
from hypothesis import assume, given, settings  # type: ignore

from docsketch.detector.hashing import HashFunctionFamily
from docsketch.detector.minhash import compute_signature
from docsketch.detector.similarity import approximate_jaccard, exact_jaccard

FAMILY = HashFunctionFamily.generate(64, 10007, seed=2024)

_words = st.text(string.ascii_lowercase, min_size=3, max_size=8)
_word_sets = st.sets(_words, min_size=1, max_size=25)

# ---------------------------------------------------------------------------
# Approximate Jaccard
# ---------------------------------------------------------------------------


@st.composite
def _signature_pairs(draw):
    size = draw(st.integers(min_value=1, max_value=64))
    ints = st.integers(min_value=0, max_value=2**31)
    a = draw(st.lists(ints, min_size=size, max_size=size))
    b = draw(st.lists(ints, min_size=size, max_size=size))
    return a, b


@given(pair=_signature_pairs())
def test_approximate_jaccard_symmetric_and_bounded(pair) -> None:
    a, b = pair
    s = approximate_jaccard(a, b)
    assert s == approximate_jaccard(b, a)
    assert 0.0 <= s <= 1.0
    assert (s == 1.0) == (a == b)


@given(pair=_signature_pairs())
def test_approximate_jaccard_reflexive(pair) -> None:
    a, _ = pair
    assert approximate_jaccard(a, a) == 1.0


@settings(deadline=None)
@given(tokens=st.lists(_words, min_size=0, max_size=30))
def test_same_tokens_same_signature(tokens: List[str]) -> None:
    sig1 = compute_signature(tokens, FAMILY)
    sig2 = compute_signature(list(reversed(tokens)), FAMILY)
    assert approximate_jaccard(sig1, sig2) == 1.0


# ---------------------------------------------------------------------------
# Exact Jaccard
# ---------------------------------------------------------------------------


@given(a=_word_sets, b=_word_sets)
def test_exact_jaccard_symmetric_and_bounded(a: Set[str], b: Set[str]) -> None:
    s = exact_jaccard(a, b)
    assert s == exact_jaccard(b, a)
    assert 0.0 <= s <= 1.0
    assert (s == 1.0) == (a == b)
    assert (s == 0.0) == a.isdisjoint(b)


@given(a=_word_sets)
def test_exact_jaccard_identity(a: Set[str]) -> None:
    assert exact_jaccard(a, a) == 1.0


@settings(deadline=None)
@given(a=_word_sets, b=_word_sets)
def test_disjoint_sets_rarely_agree(a: Set[str], b: Set[str]) -> None:
    assume(a.isdisjoint(b))
    sig_a = compute_signature(a, FAMILY)
    sig_b = compute_signature(b, FAMILY)
    # Only hash collisions modulo 10007 can make disjoint sets agree.
    assert approximate_jaccard(sig_a, sig_b) < 0.5
