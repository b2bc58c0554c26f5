# student_search/session.py
from __future__ import annotations

"""
State for one student lookup box.

The box owns a debounce controller and an explicit ``LookupState``
snapshot; every transition returns a new snapshot, so callers (an HTTP
handler, a terminal UI, tests) can render from ``session.state`` alone.

Keyboard behaviour:
- ArrowDown / ArrowUp move the highlighted row and wrap around
- Enter selects the highlighted row
- Escape hides the results panel
Keys are ignored while the panel is hidden or empty.
"""

import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from loguru import logger

from . import config
from .debounce import DebouncedQueryController, Scheduler
from .highlight import HighlightParts, highlight_or_plain
from .pipeline_types import FieldAccessor, ScoredMatch
from .ranked_search import DEFAULT_FIELDS, field, search

KEY_DOWN = "ArrowDown"
KEY_UP = "ArrowUp"
KEY_ENTER = "Enter"
KEY_ESCAPE = "Escape"


@dataclass(frozen=True)
class LookupState:
    raw_query: str = ""
    active_query: str = ""
    results: Tuple[ScoredMatch, ...] = ()
    show_results: bool = False
    selected_index: int = -1
    selected_student: Any = None

    @property
    def highlighted(self) -> Optional[ScoredMatch]:
        if 0 <= self.selected_index < len(self.results):
            return self.results[self.selected_index]
        return None


_FULL_NAME = field("full_name")


def _display_name(candidate: Any) -> str:
    return _FULL_NAME.read(candidate) or ""


class LookupSession:
    def __init__(
        self,
        roster: Callable[[], Iterable[Any]],
        fields: Sequence[FieldAccessor] = DEFAULT_FIELDS,
        limit: int = config.RESULT_MAX,
        delay: float = config.DEBOUNCE_SECONDS,
        scheduler: Optional[Scheduler] = None,
        on_change: Optional[Callable[[LookupState], None]] = None,
    ) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self._roster = roster
        self._fields = tuple(fields)
        self._limit = limit
        self._on_change = on_change
        self._lock = threading.RLock()
        self._state = LookupState()
        # cleared by select(); a commit already in flight must not reopen the panel
        self._accept_commits = True
        self._controller = DebouncedQueryController(self._commit, delay=delay, scheduler=scheduler)

    @property
    def state(self) -> LookupState:
        return self._state

    @property
    def controller(self) -> DebouncedQueryController:
        return self._controller

    # -----------------------
    # Input
    # -----------------------

    def type(self, raw: str) -> LookupState:
        with self._lock:
            self._accept_commits = True
            self._set(raw_query=raw or "")
        self._controller.on_input(raw)
        return self._state

    def _commit(self, committed: str) -> None:
        with self._lock:
            if not self._accept_commits:
                logger.debug("Dropping commit {!r} after selection", committed)
                return
            if not committed:
                self._set(active_query="", results=(), show_results=False, selected_index=-1)
                return
            results = tuple(search(committed, self._roster(), self._fields, self._limit))
            logger.debug("Committed {!r}: {} result(s)", committed, len(results))
            self._set(
                active_query=committed,
                results=results,
                show_results=bool(results),
                selected_index=-1,
            )

    # -----------------------
    # Panel / keyboard
    # -----------------------

    def key(self, name: str) -> LookupState:
        with self._lock:
            st = self._state
            n = len(st.results)
            if not st.show_results or n == 0:
                return st
            if name == KEY_DOWN:
                self._set(selected_index=st.selected_index + 1 if st.selected_index < n - 1 else 0)
            elif name == KEY_UP:
                self._set(selected_index=st.selected_index - 1 if st.selected_index > 0 else n - 1)
            elif name == KEY_ENTER:
                match = st.highlighted
                if match is not None:
                    self.select(match)
            elif name == KEY_ESCAPE:
                self._set(show_results=False, selected_index=-1)
            return self._state

    def select(self, match: ScoredMatch) -> LookupState:
        with self._lock:
            self._accept_commits = False
            self._controller.cancel()
            self._set(
                selected_student=match.candidate,
                raw_query=_display_name(match.candidate),
                active_query="",
                show_results=False,
                selected_index=-1,
            )
            logger.info("Selected student {}", _display_name(match.candidate))
            return self._state

    def focus(self) -> LookupState:
        with self._lock:
            if self._state.active_query and self._state.results:
                self._set(show_results=True)
            return self._state

    def blur(self) -> LookupState:
        with self._lock:
            self._set(show_results=False, selected_index=-1)
            return self._state

    def close(self) -> None:
        self._controller.close()

    # -----------------------
    # Rendering
    # -----------------------

    def highlighted_fields(self, match: ScoredMatch) -> Dict[str, HighlightParts]:
        query = self._state.active_query
        return {a.name: highlight_or_plain(a.read(match.candidate), query) for a in self._fields}

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        if self._on_change is not None:
            self._on_change(self._state)
