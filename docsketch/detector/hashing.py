"""Seeded families of affine hash functions ``h(x) = (a*x + b) mod p``.

A family stands in for *k* random permutations of the term universe when
computing MinHash signatures, and a single-member family combines the rows
of an LSH band into one bucket hash.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidParameter
from .primes import is_prime

# Largest modulus accepted by a family. Keeps ``b * (h ^ ord(ch)) + a`` and
# ``a * value + b`` inside signed 64-bit numpy integers.
MAX_MODULUS: int = 2**31 - 1

SeedLike = Union[None, int, np.random.Generator]


def as_generator(seed: SeedLike) -> np.random.Generator:
    """Return a numpy ``Generator`` for *seed* (``None`` draws from OS entropy)."""
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


@dataclass(frozen=True)
class HashFunction:
    """One affine hash function; equal when ``(a, b, p)`` are equal."""

    a: int
    b: int
    p: int

    def __post_init__(self) -> None:
        if not is_prime(self.p):
            raise InvalidParameter(f"modulus must be prime, got {self.p!r}")
        if not (0 <= self.a < self.p and 0 <= self.b < self.p):
            raise InvalidParameter(f"coefficients ({self.a}, {self.b}) must lie in [0, {self.p})")

    def __call__(self, x: int) -> int:
        return (self.a * x + self.b) % self.p


class HashFunctionFamily:
    """Immutable sequence of *k* hash functions with pairwise-distinct ``(a, b)``."""

    def __init__(self, functions: Sequence[HashFunction]) -> None:
        functions = tuple(functions)
        if not functions:
            raise InvalidParameter("a hash function family needs at least one member")
        moduli = {f.p for f in functions}
        if len(moduli) != 1:
            raise InvalidParameter(f"family members disagree on the modulus: {sorted(moduli)}")
        p = moduli.pop()
        _check_modulus(p)
        pairs = set()
        for f in functions:
            if not (0 <= f.a < p and 0 <= f.b < p):
                raise InvalidParameter(f"coefficients of {f} must lie in [0, {p})")
            pairs.add((f.a, f.b))
        if len(pairs) != len(functions):
            raise InvalidParameter("family contains duplicate (a, b) pairs")

        self._functions: Tuple[HashFunction, ...] = functions
        self.p: int = p
        # Column vectors for the vectorised signature path.
        self.a = np.array([f.a for f in functions], dtype=np.int64)
        self.b = np.array([f.b for f in functions], dtype=np.int64)
        self.a.setflags(write=False)
        self.b.setflags(write=False)

    # --------------------------------------------------
    # Construction
    # --------------------------------------------------

    @classmethod
    def generate(cls, k: int, p: int, seed: SeedLike = None) -> "HashFunctionFamily":
        """Draw *k* distinct functions modulo the prime *p*.

        Coefficients are sampled uniformly from ``[0, p)`` and a pair already
        in the family is rejected and redrawn. The same integer *seed* always
        yields the same family.
        """
        if not isinstance(k, (int, np.integer)) or k < 1:
            raise InvalidParameter(f"family size must be a positive integer, got {k!r}")
        _check_modulus(p)
        if k > p * p:
            raise InvalidParameter(
                f"cannot draw {k} distinct (a, b) pairs modulo {p}; only {p * p} exist"
            )

        rng = as_generator(seed)
        seen: set[Tuple[int, int]] = set()
        functions = []
        while len(functions) < k:
            a, b = (int(v) for v in rng.integers(0, p, size=2))
            if (a, b) in seen:
                continue
            seen.add((a, b))
            functions.append(HashFunction(a, b, p))
        return cls(functions)

    # --------------------------------------------------
    # Sequence protocol
    # --------------------------------------------------

    def __len__(self) -> int:
        return len(self._functions)

    def __iter__(self) -> Iterator[HashFunction]:
        return iter(self._functions)

    def __getitem__(self, i: int) -> HashFunction:
        return self._functions[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashFunctionFamily):
            return NotImplemented
        return self._functions == other._functions

    def __hash__(self) -> int:
        return hash(self._functions)

    def __repr__(self) -> str:
        return f"HashFunctionFamily(k={len(self)}, p={self.p})"

    def __reduce__(self):
        # numpy views are rebuilt on unpickle, keeping worker processes cheap.
        return (type(self), (self._functions,))


def _check_modulus(p: Optional[int]) -> None:
    if not isinstance(p, (int, np.integer)) or not is_prime(int(p)):
        raise InvalidParameter(f"modulus must be prime, got {p!r}")
    if p > MAX_MODULUS:
        raise InvalidParameter(f"modulus {p} exceeds the supported maximum {MAX_MODULUS}")
