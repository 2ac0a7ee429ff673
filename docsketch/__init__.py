"""docsketch - MinHash signatures and LSH banding for near-duplicate documents.

Quick Start:
    # CLI usage
    docsketch near-duplicates corpus/ report.txt --permutations 100 --bands 20

    # Python API
    from docsketch import InMemoryCorpus, build_signature_matrix, build_index, query
    corpus = InMemoryCorpus({"a": "the quick brown fox", "b": "a quick brown fox jumps"})
    index = build_index(build_signature_matrix(corpus, 100, seed=1), 20, seed=1)
    query(index, "a")
"""

from .detector import __version__

# Re-export main API
from .detector import (
    SketchError,
    InvalidParameter,
    DimensionMismatch,
    NotFound,
    UndefinedSimilarity,
    HashFunctionFamily,
    SignatureMatrix,
    LSHIndex,
    build_signature_matrix,
    build_index,
    query,
    approximate_jaccard,
    exact_jaccard,
    Tokenizer,
    FolderCorpus,
    InMemoryCorpus,
)
from .config import SketchConfig, load_config

__all__ = [
    "__version__",
    "SketchError",
    "InvalidParameter",
    "DimensionMismatch",
    "NotFound",
    "UndefinedSimilarity",
    "HashFunctionFamily",
    "SignatureMatrix",
    "LSHIndex",
    "build_signature_matrix",
    "build_index",
    "query",
    "approximate_jaccard",
    "exact_jaccard",
    "Tokenizer",
    "FolderCorpus",
    "InMemoryCorpus",
    "SketchConfig",
    "load_config",
]
