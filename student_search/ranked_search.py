# student_search/ranked_search.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from . import config
from .normalize import as_text, fold
from .pipeline_types import FieldAccessor, FieldScore, ScoredMatch


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------

def _read_field(candidate: Any, name: str) -> Optional[str]:
    """
    Read ``name`` off a mapping or an object. Roster dicts rarely carry a
    ``full_name`` key, so it is derived from first/last name when absent.
    """
    if isinstance(candidate, Mapping):
        if name in candidate:
            return candidate.get(name)
        if name == "full_name":
            parts = [as_text(candidate.get(k)) for k in ("first_name", "last_name")]
            return " ".join(p for p in parts if p)
        return None
    return getattr(candidate, name, None)


def field(name: str) -> FieldAccessor:
    """Accessor for a plain attribute / key."""
    return FieldAccessor(name=name, getter=lambda c, _n=name: _read_field(c, _n))


DEFAULT_FIELDS: Tuple[FieldAccessor, ...] = tuple(field(n) for n in config.SEARCH_FIELDS)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def _match(text: Optional[str], query: str) -> Tuple[int, Optional[int]]:
    """Score one field; returns ``(score, substring_offset)``."""
    if not query:
        return 0, None
    if not text:
        return config.NO_MATCH, None

    lower_text = fold(text)
    lower_query = fold(query)

    # Exact substring: earlier hits score higher
    idx = lower_text.find(lower_query)
    if idx >= 0:
        return config.EXACT_MATCH_BASE - idx, idx

    # Greedy in-order subsequence
    q_idx = 0
    matches = 0
    for ch in lower_text:
        if q_idx >= len(lower_query):
            break
        if ch == lower_query[q_idx]:
            matches += 1
            q_idx += 1

    if q_idx == len(lower_query):
        return matches * config.SUBSEQUENCE_WEIGHT, None

    return config.NO_MATCH, None


def fuzzy_match(text: Optional[str], query: str) -> int:
    """
    Score ``text`` against ``query``.

    * empty query -> 0 (nothing to score)
    * missing / empty text -> -1
    * case-insensitive substring at index i -> 100 - i
    * all query characters found in order -> 10 * characters consumed
    * otherwise -> -1
    """
    return _match(text, query)[0]


def score_candidate(
    candidate: Any,
    query: str,
    fields: Sequence[FieldAccessor] = DEFAULT_FIELDS,
) -> FieldScore:
    """
    Aggregate score for one candidate: the max over its fields, never the
    sum. On a tie the earlier field is kept.
    """
    best = FieldScore()
    for accessor in fields:
        score, offset = _match(accessor.read(candidate), query)
        if score > best.score:
            best = FieldScore(score=score, field=accessor.name, offset=offset)
    return best


def search(
    query: str,
    candidates: Iterable[Any],
    fields: Sequence[FieldAccessor] = DEFAULT_FIELDS,
    limit: int = config.RESULT_MAX,
) -> List[ScoredMatch]:
    """
    Rank ``candidates`` against ``query``.

    Returns at most ``limit`` matches sorted by descending score. The sort
    is stable, so equal scores keep the order of the input list. An empty
    or whitespace-only query returns ``[]`` without scoring anything.
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    if not query or not query.strip():
        return []

    pool = list(candidates)
    if not pool:
        return []

    scored: List[ScoredMatch] = []
    for candidate in pool:
        best = score_candidate(candidate, query, fields)
        if not best.matched:
            continue
        scored.append(
            ScoredMatch(
                candidate=candidate,
                score=best.score,
                field=best.field or "",
                offset=best.offset,
            )
        )

    scored.sort(key=lambda m: -m.score)
    logger.debug(
        "search query={!r} candidates={} matched={} limit={}",
        query, len(pool), len(scored), limit,
    )
    return scored[:limit]
