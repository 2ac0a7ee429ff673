"""Exception types raised by the docsketch detector core.

Every error also derives from the closest builtin so callers that only know
about ``ValueError``/``KeyError`` keep working.
"""
from __future__ import annotations


class SketchError(Exception):
    """Base class for all docsketch errors."""


class InvalidParameter(SketchError, ValueError):
    """A modulus, band count or family size that cannot be honoured."""


class DimensionMismatch(SketchError, ValueError):
    """Two signatures of different lengths were compared."""


class NotFound(SketchError, KeyError):
    """A document identifier unknown to the matrix, index or corpus."""

    def __str__(self) -> str:  # KeyError.__str__ wraps the message in quotes
        return str(self.args[0]) if self.args else ""


class UndefinedSimilarity(SketchError, ZeroDivisionError):
    """Exact Jaccard similarity of two empty token sets."""
