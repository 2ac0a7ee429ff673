"""Banded LSH index over a :class:`SignatureMatrix`.

Each signature is cut into ``num_bands`` contiguous bands of ``r`` columns.
The ``r`` values of a band are folded into one integer with a shared affine
hash modulo a table prime, and the document is filed under
``(band, combined_hash)``. Documents sharing any bucket are near-duplicate
candidates.
"""
from __future__ import annotations

import itertools
from collections import defaultdict
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Sequence, Set, Tuple

import numpy as np

from .errors import DimensionMismatch, InvalidParameter
from .hashing import HashFunction, HashFunctionFamily, SeedLike
from .minhash import SignatureMatrix
from .primes import next_prime


class BucketKey(NamedTuple):
    band: int
    combined_hash: int


class LSHIndex:
    """Read-only bucket table built once from a signature matrix.

    Use :meth:`build`; an index cannot be extended or rebuilt in place.
    """

    def __init__(
        self,
        matrix: SignatureMatrix,
        num_bands: int,
        table_prime: int,
        hash_function: HashFunction,
        buckets: Dict[BucketKey, Tuple[str, ...]],
    ) -> None:
        self.matrix = matrix
        self.num_bands = num_bands
        self.rows_per_band = matrix.num_permutations // num_bands
        self.table_prime = table_prime
        self.hash_function = hash_function
        self._buckets = buckets

    # --------------------------------------------------
    # Construction
    # --------------------------------------------------

    @classmethod
    def build(cls, matrix: SignatureMatrix, num_bands: int, seed: SeedLike = None) -> "LSHIndex":
        """Band *matrix* into *num_bands* bands and fill the bucket table.

        *num_bands* must divide the signature length exactly; partial bands
        are rejected rather than truncated.
        """
        k = matrix.num_permutations
        if k < 1:
            raise InvalidParameter("signature matrix has no permutation columns")
        if not isinstance(num_bands, (int, np.integer)) or num_bands < 1:
            raise InvalidParameter(f"number of bands must be a positive integer, got {num_bands!r}")
        if k % num_bands:
            raise InvalidParameter(
                f"{num_bands} bands do not evenly divide a signature of length {k}"
            )

        table_prime = next_prime(5 * len(matrix))
        hash_function = HashFunctionFamily.generate(1, table_prime, seed)[0]
        rows = k // num_bands

        combined = _band_hashes(matrix.values, num_bands, rows, hash_function)
        buckets: Dict[BucketKey, List[str]] = defaultdict(list)
        for doc_id, row in zip(matrix.doc_ids, combined):
            for band, value in enumerate(row):
                buckets[BucketKey(band, int(value))].append(doc_id)

        frozen = {key: tuple(ids) for key, ids in buckets.items()}
        return cls(matrix, int(num_bands), table_prime, hash_function, frozen)

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------

    def band_keys(self, doc_id: str) -> List[BucketKey]:
        """Recompute the bucket keys of *doc_id* from its stored signature."""
        return self._keys_for(self.matrix.signature_of(doc_id))

    def near_duplicates_of(self, doc_id: str) -> Set[str]:
        """Every document sharing at least one bucket with *doc_id*.

        The result includes *doc_id* itself; callers wanting others only
        discard it. Raises :class:`NotFound` for unknown ids.
        """
        return self._collect(self.band_keys(doc_id))

    def candidates_for(self, signature: Sequence[int]) -> Set[str]:
        """Indexed documents sharing a bucket with an arbitrary *signature*."""
        sig = np.asarray(signature, dtype=np.int64)
        if sig.shape != (self.matrix.num_permutations,):
            raise DimensionMismatch(
                f"signature of shape {sig.shape} does not match index width "
                f"{self.matrix.num_permutations}"
            )
        return self._collect(self._keys_for(sig))

    def _keys_for(self, signature: np.ndarray) -> List[BucketKey]:
        row = _band_hashes(signature[np.newaxis, :], self.num_bands, self.rows_per_band, self.hash_function)[0]
        return [BucketKey(band, int(value)) for band, value in enumerate(row)]

    def _collect(self, keys: List[BucketKey]) -> Set[str]:
        found: Set[str] = set()
        for key in keys:
            found.update(self._buckets.get(key, ()))
        return found

    # --------------------------------------------------
    # Bulk utilities
    # --------------------------------------------------

    @property
    def buckets(self) -> Mapping[BucketKey, Tuple[str, ...]]:
        """Read-only view of the bucket table (ids in matrix row order)."""
        return MappingProxyType(self._buckets)

    def candidate_pairs(self) -> List[Tuple[str, str]]:
        """All unordered document pairs sharing a bucket, sorted."""
        pairs: Set[Tuple[str, str]] = set()
        for ids in self._buckets.values():
            if len(ids) > 1:
                pairs.update(itertools.combinations(sorted(ids), 2))
        return sorted(pairs)

    def __len__(self) -> int:
        return len(self.matrix)

    def __repr__(self) -> str:
        return (
            f"LSHIndex(documents={len(self)}, bands={self.num_bands}, "
            f"rows={self.rows_per_band}, buckets={len(self._buckets)})"
        )


def _band_hashes(values: np.ndarray, num_bands: int, rows: int, h: HashFunction) -> np.ndarray:
    """Fold each band of every row: ``acc = (acc + a*v + b) mod p``, ``acc`` starting at 1."""
    p = h.p
    # (a*v) mod p == (a*(v mod p)) mod p; reducing first keeps products in int64.
    reduced = values % p
    out = np.empty((values.shape[0], num_bands), dtype=np.int64)
    for band in range(num_bands):
        acc = np.ones(values.shape[0], dtype=np.int64)
        for col in range(band * rows, (band + 1) * rows):
            acc = (acc + h.a * reduced[:, col] + h.b) % p
        out[:, band] = acc
    return out


# -----------------------------------------------------------
# Functional API
# -----------------------------------------------------------


def build_index(matrix: SignatureMatrix, num_bands: int, seed: SeedLike = None) -> LSHIndex:
    return LSHIndex.build(matrix, num_bands, seed)


def query(index: LSHIndex, doc_id: str) -> Set[str]:
    return index.near_duplicates_of(doc_id)
