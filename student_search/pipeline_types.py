"""Typed containers shared across search modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from .config import NO_MATCH

FieldGetter = Callable[[Any], Optional[str]]


@dataclass(frozen=True)
class FieldAccessor:
    """A named searchable field and how to read it off a candidate."""

    name: str
    getter: FieldGetter

    def read(self, candidate: Any) -> Optional[str]:
        return self.getter(candidate)


@dataclass(frozen=True)
class FieldScore:
    """Best score one candidate reached, and where it came from."""

    score: int = NO_MATCH
    field: Optional[str] = None
    offset: Optional[int] = None  # substring index; None for subsequence hits

    @property
    def matched(self) -> bool:
        return self.score > 0


@dataclass(frozen=True)
class ScoredMatch:
    """A candidate that matched, with its aggregate score."""

    candidate: Any
    score: int
    field: str
    offset: Optional[int] = None
