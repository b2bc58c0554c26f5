# student_search/cli.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from . import config
from .debounce import ManualScheduler
from .highlight import highlight_or_plain
from .roster import filter_roster, load_roster
from .session import LookupSession


def _format_hit(rank: int, match, query: str) -> str:
    student = match.candidate
    name = highlight_or_plain(student.full_name, query).render("[", "]")
    adm = highlight_or_plain(student.admission_number, query).render("[", "]")
    cls = highlight_or_plain(student.class_name or "No class", query).render("[", "]")
    return f"{rank:>2}. {name}  #{adm}  ({cls})  score={match.score} via {match.field}"


def replay_keystrokes(
    session: LookupSession,
    scheduler: ManualScheduler,
    keystrokes: List[str],
    gap_ms: float,
) -> List[str]:
    """
    Feed ``keystrokes`` through ``session`` ``gap_ms`` apart, then let the
    debounce settle. Returns the committed queries in order.
    """
    commits: List[str] = []
    last_active = ""

    def _record() -> None:
        nonlocal last_active
        st = session.state
        if st.active_query != last_active:
            commits.append(st.active_query)
            last_active = st.active_query

    for raw in keystrokes:
        session.type(raw)
        _record()
        scheduler.advance(gap_ms / 1000.0)
        _record()
    scheduler.advance(session.controller.delay)
    _record()
    return commits


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Ranked student lookup over a roster snapshot")
    ap.add_argument("query", nargs="?", default="", help="Search text")
    ap.add_argument("--roster", type=Path, default=config.ROSTER_SNAPSHOT_PATH,
                    help="Roster snapshot (.json, .jsonl or .parquet)")
    ap.add_argument("--limit", type=int, default=config.RESULT_MAX)
    ap.add_argument("--branch", default=None, help="Only search this branch id")
    ap.add_argument("--replay", default=None,
                    help="Comma-separated keystroke values to replay through the debounce")
    ap.add_argument("--gap-ms", type=float, default=100.0,
                    help="Delay between replayed keystrokes")
    args = ap.parse_args(argv)

    students = filter_roster(load_roster(args.roster), branch_id=args.branch)
    scheduler = ManualScheduler()
    session = LookupSession(lambda: students, limit=args.limit, scheduler=scheduler)

    if args.replay is not None:
        keystrokes = args.replay.split(",")
        for committed in replay_keystrokes(session, scheduler, keystrokes, args.gap_ms):
            print(f"commit: {committed!r}")
    else:
        session.type(args.query)
        session.controller.flush()

    st = session.state
    if not st.active_query:
        session.close()
        return
    if not st.results:
        print("No matches found.")
    for rank, match in enumerate(st.results, start=1):
        print(_format_hit(rank, match, st.active_query))
    session.close()


if __name__ == "__main__":
    main()
