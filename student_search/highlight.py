# student_search/highlight.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .normalize import as_text, fold_with_offsets


@dataclass(frozen=True)
class HighlightParts:
    """Text split around the span a substring match came from."""

    prefix: str
    match: str
    suffix: str

    @property
    def text(self) -> str:
        return self.prefix + self.match + self.suffix

    def render(self, open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
        return f"{self.prefix}{open_tag}{self.match}{close_tag}{self.suffix}"


def highlight(text: Optional[str], query: Optional[str]) -> Union[HighlightParts, str]:
    """
    Split ``text`` around the first case-insensitive occurrence of ``query``.

    Returns the original text unchanged when the query is empty or only
    matched as a subsequence; fuzzy hits are not highlighted. The parts are
    cut from the original text, so ``prefix + match + suffix == text``.
    """
    raw = as_text(text)
    q = as_text(query)
    if not q or not raw:
        return raw

    folded_text, offsets = fold_with_offsets(raw)
    folded_query, _ = fold_with_offsets(q)

    idx = folded_text.find(folded_query)
    if idx < 0:
        return raw

    start = offsets[idx]
    end = offsets[idx + len(folded_query)]
    # a span ending inside one expanded character takes the whole character
    if end <= offsets[idx + len(folded_query) - 1]:
        end = offsets[idx + len(folded_query) - 1] + 1
    return HighlightParts(prefix=raw[:start], match=raw[start:end], suffix=raw[end:])


def highlight_or_plain(text: Optional[str], query: Optional[str]) -> HighlightParts:
    """Like :func:`highlight` but always returns parts (empty match when unmarked)."""
    result = highlight(text, query)
    if isinstance(result, HighlightParts):
        return result
    return HighlightParts(prefix=result, match="", suffix="")
