"""YAML-backed run configuration for the docsketch CLI."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml  # type: ignore

from .detector.errors import InvalidParameter
from .detector.ingest import DEFAULT_MIN_LENGTH, DEFAULT_STOP_WORDS, Tokenizer


@dataclass(frozen=True)
class SketchConfig:
    num_permutations: int = 100
    num_bands: int = 20
    threshold: float = 0.5
    seed: Optional[int] = None
    processes: int = 1
    stop_words: Tuple[str, ...] = field(default_factory=lambda: tuple(sorted(DEFAULT_STOP_WORDS)))
    min_token_length: int = DEFAULT_MIN_LENGTH

    @property
    def rows_per_band(self) -> int:
        return self.num_permutations // self.num_bands

    def validate(self) -> "SketchConfig":
        """Raise :class:`InvalidParameter` on settings no index could be built from."""
        if self.num_permutations < 1:
            raise InvalidParameter(f"num_permutations must be positive, got {self.num_permutations}")
        if self.num_bands < 1 or self.num_permutations % self.num_bands:
            raise InvalidParameter(
                f"num_bands={self.num_bands} must evenly divide num_permutations={self.num_permutations}"
            )
        if not 0.0 <= self.threshold <= 1.0:
            raise InvalidParameter(f"threshold must lie in [0, 1], got {self.threshold}")
        if self.processes < 1:
            raise InvalidParameter(f"processes must be >= 1, got {self.processes}")
        return self

    def tokenizer(self) -> Tokenizer:
        return Tokenizer(stop_words=self.stop_words, min_length=self.min_token_length)

    def with_overrides(self, **overrides: Any) -> "SketchConfig":
        """Copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "stop_words" in changes:
            changes["stop_words"] = tuple(changes["stop_words"])
        return dataclasses.replace(self, **changes)


_FIELDS = {f.name for f in dataclasses.fields(SketchConfig)}


def config_from_dict(raw: Dict[str, Any]) -> SketchConfig:
    unknown = sorted(set(raw) - _FIELDS)
    if unknown:
        raise InvalidParameter(f"unknown configuration keys: {', '.join(unknown)}")
    return SketchConfig().with_overrides(**raw).validate()


def load_config(path: Union[str, Path]) -> Tuple[SketchConfig, Dict[str, Any]]:
    """Read *path* and split it into a :class:`SketchConfig` and the remaining run keys.

    ``data_dir`` and ``out`` are run keys; everything else must be a
    :class:`SketchConfig` field.
    """
    with Path(path).open() as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidParameter(f"{path}: expected a mapping at the top level")
    run_keys = {k: raw.pop(k) for k in ("data_dir", "out") if k in raw}
    return config_from_dict(raw), run_keys
