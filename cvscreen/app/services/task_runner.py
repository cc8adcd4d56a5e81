"""
Bounded background execution for extraction and screening units.

Each submitted unit runs on a worker thread of a fixed-size pool and is
tracked in an in-memory registry (queued -> running -> done|error) so that
failures escaping a unit are logged and visible instead of disappearing.
Units are not cancellable once submitted.

Units submitted with the same `serial_key` (e.g. one document id) never run
at the same time: they run one after another, and a submit that finds a unit
for that key still queued is folded into it.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextlib import nullcontext
from typing import Any, Callable, Hashable
from uuid import uuid4

from ..config import BACKGROUND_WORKERS

logger = logging.getLogger(__name__)

# Finished tasks kept for inspection; oldest are dropped first.
_MAX_FINISHED_TASKS = 500


class BackgroundRunner:
    def __init__(self, *, max_workers: int, name: str = "cvscreen-worker"):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._lock = threading.Lock()
        self._tasks: dict[str, dict[str, Any]] = {}
        self._futures: dict[str, Future] = {}
        self._serial_locks: dict[tuple[str, Hashable], threading.Lock] = {}
        self._closed = False

    def submit(self, kind: str, fn: Callable[..., Any], *, serial_key: Hashable | None = None, **kwargs: Any) -> str:
        task_id = uuid4().hex
        now = time.time()
        with self._lock:
            if self._closed:
                raise RuntimeError("Background runner is shut down")
            if serial_key is not None:
                waiting = self._find_locked(kind, serial_key, statuses={"queued"})
                if waiting is not None:
                    # Has not started yet, so it will still see the latest state.
                    logger.info("Coalesced %s serial_key=%s into task_id=%s", kind, serial_key, waiting["task_id"])
                    return waiting["task_id"]
            self._tasks[task_id] = {
                "task_id": task_id,
                "kind": kind,
                "serial_key": serial_key,
                "params": dict(kwargs),
                "status": "queued",  # queued|running|done|error
                "error": None,
                "created_at": now,
                "updated_at": now,
            }
            serial_lock = None
            if serial_key is not None:
                serial_lock = self._serial_locks.setdefault((kind, serial_key), threading.Lock())
            future = self._executor.submit(self._run, task_id, fn, kwargs, serial_lock)
            self._futures[task_id] = future
        logger.debug("Queued %s task_id=%s params=%s", kind, task_id, kwargs)
        return task_id

    def _find_locked(self, kind: str, serial_key: Hashable, *, statuses: set[str]) -> dict[str, Any] | None:
        for t in self._tasks.values():
            if t["kind"] == kind and t["serial_key"] == serial_key and t["status"] in statuses:
                return t
        return None

    def _run(
        self,
        task_id: str,
        fn: Callable[..., Any],
        kwargs: dict[str, Any],
        serial_lock: "threading.Lock | None",
    ) -> None:
        try:
            with serial_lock or nullcontext():
                self._update(task_id, status="running")
                try:
                    fn(**kwargs)
                except Exception as e:
                    # Units are expected to record their own terminal state; reaching here is a bug.
                    logger.exception("Background task %s crashed", task_id)
                    self._update(task_id, status="error", error=str(e) or type(e).__name__)
                else:
                    self._update(task_id, status="done")
        finally:
            with self._lock:
                self._futures.pop(task_id, None)
                self._release_serial_lock_locked(task_id)
                self._prune_locked()

    def _release_serial_lock_locked(self, task_id: str) -> None:
        t = self._tasks.get(task_id)
        if not t or t["serial_key"] is None:
            return
        if self._find_locked(t["kind"], t["serial_key"], statuses={"queued", "running"}) is None:
            self._serial_locks.pop((t["kind"], t["serial_key"]), None)

    def _update(self, task_id: str, **fields: Any) -> None:
        with self._lock:
            t = self._tasks.get(task_id)
            if not t:
                return
            t.update(fields)
            t["updated_at"] = time.time()

    def _prune_locked(self) -> None:
        finished = [t for t in self._tasks.values() if t["status"] in {"done", "error"}]
        overflow = len(finished) - _MAX_FINISHED_TASKS
        if overflow <= 0:
            return
        for t in sorted(finished, key=lambda x: x["updated_at"])[:overflow]:
            self._tasks.pop(t["task_id"], None)

    def get_task(self, task_id: str) -> dict[str, Any] | None:
        with self._lock:
            t = self._tasks.get(task_id)
            return dict(t) if t else None

    def list_tasks(self, *, kind: str | None = None) -> list[dict[str, Any]]:
        with self._lock:
            rows = [dict(t) for t in self._tasks.values() if kind is None or t["kind"] == kind]
        return sorted(rows, key=lambda t: t["created_at"])

    def pending_count(self) -> int:
        with self._lock:
            return len(self._futures)

    def drain(self, timeout: float | None = None) -> bool:
        """
        Block until every unit submitted so far (and any unit those submit) has finished.
        Returns False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._futures.values())
            if not pending:
                return True
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            _, not_done = wait(pending, timeout=remaining)
            if not_done and deadline is not None and time.monotonic() >= deadline:
                return False

    def shutdown(self, *, wait_for_pending: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_pending)


_runner_lock = threading.Lock()
_runner: BackgroundRunner | None = None


def get_runner() -> BackgroundRunner:
    global _runner
    with _runner_lock:
        if _runner is None:
            _runner = BackgroundRunner(max_workers=BACKGROUND_WORKERS)
            logger.info("Background runner started workers=%s", BACKGROUND_WORKERS)
        return _runner


def shutdown_runner(*, wait_for_pending: bool = True) -> None:
    global _runner
    with _runner_lock:
        runner, _runner = _runner, None
    if runner is not None:
        runner.shutdown(wait_for_pending=wait_for_pending)
        logger.info("Background runner stopped")
