"""MinHash signatures and the per-corpus signature matrix."""
from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from functools import partial
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from .errors import InvalidParameter, NotFound
from .hashing import MAX_MODULUS, HashFunctionFamily, SeedLike

if TYPE_CHECKING:  # pragma: no cover
    from .ingest import Corpus

# "+infinity" for a signature slot no token has reached.
SENTINEL_HASH: int = int(np.iinfo(np.int64).max)

# -----------------------------------------------------------
# Word hashing
# -----------------------------------------------------------


def word_hash(token: str, a: int, b: int, p: int) -> int:
    """Rolling affine hash of *token*: ``h = (a + b * (h ^ ord(ch))) mod p``."""
    h = 0
    for ch in token:
        h = (a + b * (h ^ ord(ch))) % p
    return h


def word_hashes(token: str, family: HashFunctionFamily) -> np.ndarray:
    """Hash *token* under every member of *family* at once (one value per member)."""
    h = np.zeros(len(family), dtype=np.int64)
    for ch in token:
        h = (family.a + family.b * (h ^ ord(ch))) % family.p
    return h


# -----------------------------------------------------------
# Signatures
# -----------------------------------------------------------


def compute_signature(tokens: Iterable[str], family: HashFunctionFamily) -> np.ndarray:
    """Return the MinHash signature of *tokens* under *family*.

    *tokens* is the already stop-word filtered multiset of a document; repeats
    do not change the result. A document without tokens keeps
    :data:`SENTINEL_HASH` in every slot.
    """
    signature = np.full(len(family), SENTINEL_HASH, dtype=np.int64)
    for token in set(tokens):
        np.minimum(signature, word_hashes(token, family), out=signature)
    return signature


class SignatureMatrix:
    """Rows are documents, columns are permutations.

    Row order is the order the caller supplied and never changes; the
    underlying array is read-only.
    """

    def __init__(
        self,
        doc_ids: Sequence[str],
        values: "np.ndarray | Sequence[Sequence[int]]",
        *,
        num_permutations: Optional[int] = None,
        family: Optional[HashFunctionFamily] = None,
    ) -> None:
        doc_ids = list(doc_ids)
        if len(set(doc_ids)) != len(doc_ids):
            raise InvalidParameter("document identifiers in a signature matrix must be unique")

        arr = np.asarray(values, dtype=np.int64)
        if arr.ndim != 2 and arr.size == 0 and not doc_ids:
            if num_permutations is None:
                num_permutations = len(family) if family is not None else 0
            arr = np.empty((0, num_permutations), dtype=np.int64)
        if arr.ndim != 2:
            raise InvalidParameter("signatures must all share the same length")
        if arr.shape[0] != len(doc_ids):
            raise InvalidParameter(
                f"{len(doc_ids)} document ids given for {arr.shape[0]} signatures"
            )
        if num_permutations is not None and arr.shape[1] != num_permutations:
            raise InvalidParameter(
                f"signatures have length {arr.shape[1]}, expected {num_permutations}"
            )

        arr = arr.copy()
        arr.setflags(write=False)
        self.values: np.ndarray = arr
        self.doc_ids: Tuple[str, ...] = tuple(doc_ids)
        self.family = family
        self._row = {doc_id: i for i, doc_id in enumerate(doc_ids)}

    @classmethod
    def from_rows(
        cls, rows: Iterable[Tuple[str, Sequence[int]]], *, family: Optional[HashFunctionFamily] = None
    ) -> "SignatureMatrix":
        """Build a matrix from ``(doc_id, signature)`` pairs."""
        rows = list(rows)
        lengths = {len(sig) for _, sig in rows}
        if len(lengths) > 1:
            raise InvalidParameter(f"signatures have differing lengths: {sorted(lengths)}")
        return cls(
            [doc_id for doc_id, _ in rows],
            [list(sig) for _, sig in rows],
            family=family,
        )

    @property
    def num_permutations(self) -> int:
        return int(self.values.shape[1])

    def index_of(self, doc_id: str) -> int:
        try:
            return self._row[doc_id]
        except KeyError:
            raise NotFound(f"document {doc_id!r} is not in the signature matrix") from None

    def signature_of(self, doc_id: str) -> np.ndarray:
        return self.values[self.index_of(doc_id)]

    def sign(self, tokens: Iterable[str]) -> np.ndarray:
        """Signature of *tokens* under the family this matrix was built with.

        The result can be handed to :meth:`LSHIndex.candidates_for` to look up
        a document that is not part of the matrix.
        """
        if self.family is None:
            raise InvalidParameter("this signature matrix was built without a hash function family")
        return compute_signature(tokens, self.family)

    def __len__(self) -> int:
        return len(self.doc_ids)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._row

    def __iter__(self) -> Iterator[Tuple[str, np.ndarray]]:
        return iter(zip(self.doc_ids, self.values))

    def __repr__(self) -> str:
        return f"SignatureMatrix(documents={len(self)}, permutations={self.num_permutations})"


# -----------------------------------------------------------
# Corpus-wide construction
# -----------------------------------------------------------


def build_signature_matrix(
    corpus: "Corpus",
    k: int,
    seed: SeedLike = None,
    *,
    modulus: Optional[int] = None,
    processes: int = 1,
    show_progress: bool = False,
) -> SignatureMatrix:
    """Compute the MinHash signature of every document in *corpus*.

    The term-universe *modulus* defaults to ``MAX_MODULUS``; a prime that large
    keeps accidental collisions between distinct terms negligible. It must not
    be smaller than the corpus' distinct term count. With ``processes > 1``
    signatures are computed in worker processes; rows still follow
    ``corpus.list_documents()``.
    """
    doc_ids = list(corpus.list_documents())
    if modulus is None:
        modulus = MAX_MODULUS
    num_terms = corpus.num_unique_terms()
    if num_terms > modulus:
        raise InvalidParameter(
            f"modulus {modulus} is smaller than the corpus' {num_terms} distinct terms"
        )
    family = HashFunctionFamily.generate(k, modulus, seed)

    token_lists = (list(corpus.tokens_of(doc_id)) for doc_id in doc_ids)
    signatures = _compute_all(token_lists, family, len(doc_ids), processes, show_progress)
    return SignatureMatrix(doc_ids, signatures, num_permutations=k, family=family)


def _compute_all(
    token_lists: Iterable[List[str]],
    family: HashFunctionFamily,
    total: int,
    processes: int,
    show_progress: bool,
) -> List[np.ndarray]:
    if processes < 1:
        raise InvalidParameter(f"processes must be >= 1, got {processes}")
    worker = partial(compute_signature, family=family)
    with tqdm(total=total, desc="Signatures", disable=not show_progress) as bar:
        if processes == 1 or total < 2:
            out = []
            for tokens in token_lists:
                out.append(worker(tokens))
                bar.update()
            return out
        # Executor.map yields in submission order, whatever finishes first.
        chunksize = max(1, total // (processes * 4))
        with ProcessPoolExecutor(max_workers=processes) as pool:
            out = []
            for sig in pool.map(worker, token_lists, chunksize=chunksize):
                out.append(sig)
                bar.update()
            return out
