"""Exact and MinHash-estimated Jaccard similarity."""
from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from .errors import DimensionMismatch, InvalidParameter, UndefinedSimilarity


def approximate_jaccard(sig_a: Sequence[int], sig_b: Sequence[int]) -> float:
    """Fraction of signature positions on which *sig_a* and *sig_b* agree.

    An unbiased estimate of the exact Jaccard similarity of the underlying
    token sets; its variance shrinks as ``1/k``.
    """
    a = np.asarray(sig_a)
    b = np.asarray(sig_b)
    if a.shape != b.shape or a.ndim != 1:
        raise DimensionMismatch(f"cannot compare signatures of shape {a.shape} and {b.shape}")
    if a.size == 0:
        raise DimensionMismatch("cannot compare empty signatures")
    return float(np.count_nonzero(a == b)) / a.size


def exact_jaccard(tokens_a: Iterable[str], tokens_b: Iterable[str]) -> float:
    """``|A ∩ B| / |A ∪ B|`` over the distinct tokens of each side.

    Raises :class:`UndefinedSimilarity` when both sides are empty.
    """
    a = set(tokens_a)
    b = set(tokens_b)
    intersect = len(a & b)
    union = len(a) + len(b) - intersect
    if union == 0:
        raise UndefinedSimilarity("Jaccard similarity of two empty token sets is undefined")
    return intersect / union


# -----------------------------------------------------------
# Banding maths
# -----------------------------------------------------------


def candidate_probability(similarity: float, num_bands: int, rows: int) -> float:
    """Probability that two documents of Jaccard *similarity* share a bucket.

    Two signatures agree on a whole band of *rows* columns with probability
    ``s**r``; they collide in at least one of *num_bands* bands with
    ``1 - (1 - s**r)**b``.
    """
    _check_banding(num_bands, rows)
    if not 0.0 <= similarity <= 1.0:
        raise InvalidParameter(f"similarity must lie in [0, 1], got {similarity}")
    return 1.0 - (1.0 - similarity**rows) ** num_bands


def similarity_threshold(num_bands: int, rows: int) -> float:
    """Approximate similarity where :func:`candidate_probability` rises steepest."""
    _check_banding(num_bands, rows)
    return (1.0 / num_bands) ** (1.0 / rows)


def _check_banding(num_bands: int, rows: int) -> None:
    if num_bands < 1 or rows < 1:
        raise InvalidParameter(f"bands and rows must be positive, got b={num_bands}, r={rows}")
