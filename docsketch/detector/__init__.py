"""docsketch detector package.

Core public API lives here so external users can::

    from docsketch.detector import build_signature_matrix, build_index, query

    matrix = build_signature_matrix(corpus, k=100, seed=7)
    index = build_index(matrix, num_bands=20, seed=7)
    query(index, "doc.txt")
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

# Semantic version of the installed package
try:
    __version__: str = _pkg_version("docsketch")
except PackageNotFoundError:  # pragma: no cover – local dev path
    __version__ = "0.1.0"

from .errors import (
    SketchError,
    InvalidParameter,
    DimensionMismatch,
    NotFound,
    UndefinedSimilarity,
)
from .primes import is_prime, next_prime
from .hashing import HashFunction, HashFunctionFamily, MAX_MODULUS
from .minhash import (
    SENTINEL_HASH,
    SignatureMatrix,
    build_signature_matrix,
    compute_signature,
    word_hash,
)
from .similarity import (
    approximate_jaccard,
    exact_jaccard,
    candidate_probability,
    similarity_threshold,
)
from .lsh_index import BucketKey, LSHIndex, build_index, query
from .ingest import Tokenizer, FolderCorpus, InMemoryCorpus

__all__ = [
    "__version__",
    # Errors
    "SketchError",
    "InvalidParameter",
    "DimensionMismatch",
    "NotFound",
    "UndefinedSimilarity",
    # Hashing
    "is_prime",
    "next_prime",
    "HashFunction",
    "HashFunctionFamily",
    "MAX_MODULUS",
    # Signatures
    "SENTINEL_HASH",
    "SignatureMatrix",
    "build_signature_matrix",
    "compute_signature",
    "word_hash",
    # Similarity
    "approximate_jaccard",
    "exact_jaccard",
    "candidate_probability",
    "similarity_threshold",
    # LSH
    "BucketKey",
    "LSHIndex",
    "build_index",
    "query",
    # Collaborators
    "Tokenizer",
    "FolderCorpus",
    "InMemoryCorpus",
]
