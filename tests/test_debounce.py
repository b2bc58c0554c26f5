import asyncio
import threading

import pytest

from student_search.debounce import (
    ControllerState,
    DebouncedQueryController,
    ManualScheduler,
    ThreadingScheduler,
)


def _controller(delay=0.3):
    commits = []
    scheduler = ManualScheduler()
    ctrl = DebouncedQueryController(commits.append, delay=delay, scheduler=scheduler)
    return ctrl, scheduler, commits


def test_rapid_inputs_coalesce_into_one_commit():
    ctrl, clock, commits = _controller()
    for raw in ["a", "al", "ali"]:
        ctrl.on_input(raw)
        clock.advance(0.1)
    assert commits == []
    assert ctrl.state is ControllerState.PENDING

    clock.advance(0.3)
    assert commits == ["ali"]
    assert ctrl.state is ControllerState.IDLE


def test_timer_restarts_rather_than_queueing():
    ctrl, clock, commits = _controller()
    ctrl.on_input("a")
    clock.advance(0.29)
    ctrl.on_input("al")
    clock.advance(0.29)
    assert commits == []
    clock.advance(0.02)
    assert commits == ["al"]
    assert clock.pending() == 0


def test_clearing_commits_immediately():
    ctrl, clock, commits = _controller()
    ctrl.on_input("ali")
    clock.advance(0.3)
    ctrl.on_input("")
    assert commits == ["ali", ""]
    assert ctrl.state is ControllerState.IDLE


def test_clearing_cancels_pending_timer():
    ctrl, clock, commits = _controller()
    ctrl.on_input("al")
    ctrl.on_input("   ")
    clock.advance(1.0)
    assert commits == [""]


def test_committed_query_is_trimmed():
    ctrl, clock, commits = _controller()
    ctrl.on_input("  ali ")
    clock.advance(0.3)
    assert commits == ["ali"]


def test_close_prevents_further_commits():
    ctrl, clock, commits = _controller()
    ctrl.on_input("ali")
    ctrl.close()
    clock.advance(1.0)
    ctrl.on_input("bob")
    ctrl.on_input("")
    clock.advance(1.0)
    assert commits == []
    assert ctrl.closed


def test_flush_and_cancel():
    ctrl, clock, commits = _controller()
    assert ctrl.flush() is False
    ctrl.on_input("bo")
    assert ctrl.flush() is True
    assert commits == ["bo"]
    clock.advance(1.0)
    assert commits == ["bo"]

    ctrl.on_input("bob")
    ctrl.cancel()
    clock.advance(1.0)
    assert commits == ["bo"]


def test_invalid_delay():
    with pytest.raises(ValueError):
        DebouncedQueryController(lambda q: None, delay=0)


def test_asyncio_loop_as_scheduler():
    async def run():
        commits = []
        loop = asyncio.get_running_loop()
        ctrl = DebouncedQueryController(commits.append, delay=0.05, scheduler=loop)
        ctrl.on_input("a")
        ctrl.on_input("al")
        await asyncio.sleep(0.2)
        return commits

    assert asyncio.run(run()) == ["al"]


def test_threading_scheduler_fires():
    fired = threading.Event()
    commits = []

    def on_commit(q):
        commits.append(q)
        fired.set()

    ctrl = DebouncedQueryController(on_commit, delay=0.01, scheduler=ThreadingScheduler())
    ctrl.on_input("ali")
    assert fired.wait(2.0)
    assert commits == ["ali"]
