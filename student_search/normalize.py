from __future__ import annotations

"""
Text helpers shared by the search, highlight and roster modules.

Public helpers:

* as_text(value) -> str
    Total coercion of roster cells (None / NaN / numbers) to text.

* fold(text) -> str
    The case folding used for every comparison.

* fold_with_offsets(text) -> (folded, offsets)
    Folding that remembers which original character each folded
    character came from, so spans found in folded text can be cut
    out of the original text.

* clean_query(text) -> str
    Trim and cap a raw query before it is committed.
"""

import math
from typing import List, Tuple

from . import config


def as_text(value) -> str:
    """Coerce a field value to a string; missing values become ''."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def fold(text: str | None) -> str:
    return as_text(text).lower()


def fold_with_offsets(text: str | None) -> Tuple[str, List[int]]:
    """Fold ``text`` and map each folded index back to an original index.

    ``offsets`` has one entry per folded character plus a trailing entry
    equal to ``len(text)``, so ``offsets[end]`` is always a valid slice end.
    """
    raw = as_text(text)
    pieces: List[str] = []
    offsets: List[int] = []
    for i, ch in enumerate(raw):
        low = ch.lower()
        pieces.append(low)
        offsets.extend([i] * len(low))
    offsets.append(len(raw))
    return "".join(pieces), offsets


def clean_query(text: str | None, max_len: int = config.MAX_QUERY_CHARS) -> str:
    """
    Normalise a raw input value into a committed query:
    - trim surrounding whitespace
    - hard cap (defensive)
    """
    q = as_text(text).strip()
    if len(q) > max_len:
        q = q[:max_len]
    return q
