"""Tokenisation and corpus access for docsketch.

The detector core only ever sees token lists; this module turns raw text and
folders of text files into them.
"""
from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

import chardet

from .errors import NotFound

logger = logging.getLogger(__name__)

# -----------------------------------------------------------
# Tokenisation helpers
# -----------------------------------------------------------

_PUNCT_RE = re.compile(r"[.,:;']")
_WHITESPACE_RE = re.compile(r"\s+")

DEFAULT_STOP_WORDS: frozenset[str] = frozenset({"the"})
DEFAULT_MIN_LENGTH: int = 3


class Tokenizer:
    """Lower-cased whitespace tokeniser with an injected stop-word policy.

    A token is a stop word when it appears in *stop_words* or is shorter than
    *min_length* characters.
    """

    def __init__(self, stop_words: Iterable[str] = DEFAULT_STOP_WORDS, min_length: int = DEFAULT_MIN_LENGTH) -> None:
        self.stop_words = frozenset(w.lower() for w in stop_words)
        self.min_length = min_length

    def tokenize(self, text: str) -> List[str]:
        """Strip ``. , : ; '``, lowercase and split on whitespace."""
        if text is None or not isinstance(text, str):
            text = ""
        cleaned = _PUNCT_RE.sub("", text).lower()
        return [tok for tok in _WHITESPACE_RE.split(cleaned) if tok]

    def is_stop_word(self, token: str) -> bool:
        return token in self.stop_words or len(token) < self.min_length

    def terms(self, text: str) -> List[str]:
        """Tokens of *text* that survive the stop-word filter, in order."""
        return [tok for tok in self.tokenize(text) if not self.is_stop_word(tok)]

    def __repr__(self) -> str:
        return f"Tokenizer(stop_words={sorted(self.stop_words)}, min_length={self.min_length})"


# -----------------------------------------------------------
# Corpora
# -----------------------------------------------------------


class Corpus(Protocol):
    """What signature construction needs from a document collection."""

    def list_documents(self) -> Sequence[str]: ...

    def tokens_of(self, doc_id: str) -> List[str]: ...

    def num_unique_terms(self) -> int: ...


class _TokenCache(ABC):
    """Shared memoisation of per-document terms."""

    tokenizer: Tokenizer

    def __init__(self, tokenizer: Optional[Tokenizer]) -> None:
        self.tokenizer = tokenizer or Tokenizer()
        self._cache: Dict[str, List[str]] = {}

    @abstractmethod
    def list_documents(self) -> Sequence[str]:
        """Document identifiers in corpus order."""

    @abstractmethod
    def _read(self, doc_id: str) -> Iterable[str]:
        """Raw lines of *doc_id*; raises :class:`NotFound` for unknown ids."""

    def tokens_of(self, doc_id: str) -> List[str]:
        """Stop-word filtered terms of *doc_id* (a multiset, in document order)."""
        if doc_id not in self._cache:
            terms: List[str] = []
            for line in self._read(doc_id):
                terms.extend(self.tokenizer.terms(line))
            self._cache[doc_id] = terms
        return list(self._cache[doc_id])

    def unique_terms_of(self, doc_id: str) -> set[str]:
        return set(self.tokens_of(doc_id))

    def num_unique_terms(self) -> int:
        """Distinct terms across every document of the corpus."""
        universe: set[str] = set()
        for doc_id in self.list_documents():
            universe.update(self.tokens_of(doc_id))
        return len(universe)

    def __len__(self) -> int:
        return len(self.list_documents())


class InMemoryCorpus(_TokenCache):
    """Corpus over raw texts held in memory, in the order given."""

    def __init__(
        self,
        documents: Union[Mapping[str, Optional[str]], Iterable[Tuple[str, Optional[str]]]],
        tokenizer: Optional[Tokenizer] = None,
    ) -> None:
        super().__init__(tokenizer)
        items = documents.items() if isinstance(documents, Mapping) else documents
        self._texts: Dict[str, str] = {}
        for doc_id, text in items:
            # A missing text is an empty document.
            self._texts[doc_id] = text or ""

    def list_documents(self) -> List[str]:
        return list(self._texts)

    def _read(self, doc_id: str) -> Iterable[str]:
        try:
            return self._texts[doc_id].splitlines()
        except KeyError:
            raise NotFound(f"document {doc_id!r} is not in the corpus") from None


def detect_encoding(file_path: Union[str, os.PathLike], sample_size: int = 8192) -> str:
    """Guess the encoding of *file_path* from its first *sample_size* bytes."""
    with open(file_path, "rb") as f:
        raw = f.read(sample_size)
    if not raw:
        return "utf-8"
    result = chardet.detect(raw)
    return result.get("encoding") or "utf-8"


class FolderCorpus(_TokenCache):
    """Every regular file directly inside *folder* is one document, named by file name."""

    def __init__(self, folder: Union[str, os.PathLike], tokenizer: Optional[Tokenizer] = None) -> None:
        super().__init__(tokenizer)
        self.folder = Path(folder)
        if not self.folder.is_dir():
            raise FileNotFoundError(f"corpus folder not found: {self.folder}")
        self._names = sorted(p.name for p in self.folder.iterdir() if p.is_file())
        logger.debug("FolderCorpus %s: %d documents", self.folder, len(self._names))

    def list_documents(self) -> List[str]:
        return list(self._names)

    def _read(self, doc_id: str) -> Iterable[str]:
        path = self.folder / doc_id
        if doc_id not in self._names:
            raise NotFound(f"document {doc_id!r} is not in {self.folder}")
        encoding = detect_encoding(path)
        logger.debug("reading %s as %s", path, encoding)
        with path.open("r", encoding=encoding, errors="replace") as f:
            return f.readlines()
