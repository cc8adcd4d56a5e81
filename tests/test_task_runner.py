import threading

import pytest


def test_runner_tracks_success_and_failure():
    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=2, name="test-runner")
    seen = []

    def ok(*, value):
        seen.append(value)

    def bad():
        raise ValueError("unit blew up")

    try:
        ok_id = runner.submit("ok", ok, value=1)
        bad_id = runner.submit("bad", bad)
        assert runner.drain(5)

        assert seen == [1]
        assert runner.get_task(ok_id)["status"] == "done"
        failed = runner.get_task(bad_id)
        assert failed["status"] == "error"
        assert failed["error"] == "unit blew up"
        assert [t["task_id"] for t in runner.list_tasks(kind="ok")] == [ok_id]
        assert runner.pending_count() == 0
    finally:
        runner.shutdown()


def test_runner_is_bounded_and_drain_times_out():
    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=1, name="test-bounded")
    release = threading.Event()
    started = []

    def blocking(*, n):
        started.append(n)
        release.wait(5)

    try:
        runner.submit("block", blocking, n=1)
        runner.submit("block", blocking, n=2)
        assert runner.drain(0.2) is False
        # One worker: the second unit has not started yet.
        assert started == [1]
        assert runner.pending_count() == 2
        release.set()
        assert runner.drain(5)
        assert started == [1, 2]
    finally:
        release.set()
        runner.shutdown()


def test_submit_after_shutdown_is_rejected():
    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=1)
    runner.shutdown()
    with pytest.raises(RuntimeError):
        runner.submit("late", lambda: None)


def test_same_serial_key_runs_in_order_other_keys_proceed():
    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=3, name="test-serial")
    guard = threading.Lock()
    active = {"now": 0, "max": 0}
    entered = threading.Event()
    release = threading.Event()
    order = []

    def unit(*, n):
        with guard:
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
        order.append(n)
        entered.set()
        release.wait(5)
        with guard:
            active["now"] -= 1

    try:
        first = runner.submit("extract", unit, serial_key=7, n=1)
        assert entered.wait(5)
        second = runner.submit("extract", unit, serial_key=7, n=2)
        assert second != first
        # A different key is not held back.
        other = runner.submit("extract", unit, serial_key=8, n=3)
        release.set()
        assert runner.drain(5)

        assert active["max"] <= 2
        assert order.index(1) < order.index(2)
        for task_id in (first, second, other):
            assert runner.get_task(task_id)["status"] == "done"
    finally:
        release.set()
        runner.shutdown()


def test_same_serial_key_runs_one_at_a_time():
    import time

    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=2, name="test-serial-only")
    guard = threading.Lock()
    active = {"now": 0, "max": 0}
    started = threading.Event()

    def unit():
        with guard:
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
        started.set()
        time.sleep(0.2)
        with guard:
            active["now"] -= 1

    try:
        runner.submit("extract", unit, serial_key=1)
        assert started.wait(5)
        runner.submit("extract", unit, serial_key=1)
        assert runner.drain(5)
        assert active["max"] == 1
    finally:
        runner.shutdown()


def test_submit_reuses_a_still_queued_unit_for_the_same_key():
    from cvscreen.app.services.task_runner import BackgroundRunner

    runner = BackgroundRunner(max_workers=1, name="test-coalesce")
    release = threading.Event()
    calls = []

    def blocker():
        release.wait(5)

    def unit(*, n):
        calls.append(n)

    try:
        runner.submit("block", blocker)
        queued = runner.submit("extract", unit, serial_key=5, n=1)
        again = runner.submit("extract", unit, serial_key=5, n=2)
        assert again == queued
        assert len(runner.list_tasks(kind="extract")) == 1
        release.set()
        assert runner.drain(5)
        assert calls == [1]
        assert runner.get_task(queued)["status"] == "done"
    finally:
        release.set()
        runner.shutdown()
