"""In-process background task runner.

Post-confirmation shipment creation and deferred tracking re-fetches run here
instead of inside the request that triggered them. Every task is named,
logged at start and finish, and its outcome is kept in a short history so a
dropped or failing task is visible rather than silent.

Two modes:

    thread  tasks run on a bounded thread pool; delayed tasks wait on a Timer
    eager   tasks run inline on submit (delay ignored), for tests and scripts

Tasks run inside the commerce domain context. A failing task is logged and
recorded; the exception never reaches the submitter.
"""

import threading
import time
from collections import deque
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)


class TaskMode(Enum):
    THREAD = "thread"
    EAGER = "eager"


class TaskState(Enum):
    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass
class TaskRecord:
    """Outcome of a submitted task."""

    name: str
    task_id: str = field(default_factory=lambda: uuid4().hex[:12])
    state: TaskState = TaskState.SCHEDULED
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    error: str | None = None
    result: object = None


class TaskRunner:
    """Runs fire-and-forget callables off the request path."""

    def __init__(self, mode: TaskMode = TaskMode.THREAD, max_workers: int = 4, history_size: int = 200) -> None:
        self.mode = mode
        self.max_workers = max_workers
        self.history: deque[TaskRecord] = deque(maxlen=history_size)
        self._executor: ThreadPoolExecutor | None = None
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="commerce-task")
            return self._executor

    def submit(self, name: str, fn: Callable, *args, delay: float = 0.0, **kwargs) -> TaskRecord:
        """Schedule ``fn(*args, **kwargs)``; returns the record tracking it."""
        record = TaskRecord(name=name)
        self.history.append(record)
        logger.info("Task scheduled", task=name, task_id=record.task_id, delay=delay, mode=self.mode.value)

        if self.mode == TaskMode.EAGER:
            self._run(record, fn, args, kwargs, push_context=False)
            return record

        if delay > 0:
            timer = threading.Timer(delay, self._dispatch, args=(record, fn, args, kwargs))
            timer.daemon = True
            with self._lock:
                self._timers.add(timer)
            timer.start()
        else:
            self._dispatch(record, fn, args, kwargs)
        return record

    def _dispatch(self, record: TaskRecord, fn: Callable, args: tuple, kwargs: dict) -> None:
        with self._lock:
            self._timers = {t for t in self._timers if t.is_alive()}
        self._pool().submit(self._run, record, fn, args, kwargs, True)

    def _run(self, record: TaskRecord, fn: Callable, args: tuple, kwargs: dict, push_context: bool) -> None:
        record.state = TaskState.RUNNING
        started = time.monotonic()
        try:
            if push_context:
                from commerce.domain import commerce

                with commerce.domain_context():
                    record.result = fn(*args, **kwargs)
            else:
                record.result = fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001
            record.state = TaskState.FAILED
            record.error = str(exc)
            logger.exception("Task failed", task=record.name, task_id=record.task_id)
        else:
            record.state = TaskState.SUCCEEDED
            logger.info(
                "Task finished",
                task=record.name,
                task_id=record.task_id,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
        finally:
            record.finished_at = datetime.now(UTC)

    def failures(self) -> list[TaskRecord]:
        return [r for r in self.history if r.state == TaskState.FAILED]

    def shutdown(self, wait: bool = True) -> None:
        """Cancel pending timers and stop the worker pool."""
        with self._lock:
            for timer in self._timers:
                timer.cancel()
            self._timers.clear()
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)


_runner: TaskRunner | None = None


def get_task_runner() -> TaskRunner:
    """Return the configured task runner (singleton)."""
    global _runner
    if _runner is None:
        from commerce.config import get_settings

        settings = get_settings()
        _runner = TaskRunner(mode=TaskMode(settings.task_mode), max_workers=settings.task_workers)
    return _runner


def set_task_runner(runner: TaskRunner) -> None:
    """Override the active task runner (useful for tests)."""
    global _runner
    _runner = runner


def reset_task_runner() -> None:
    """Shut down and forget the current runner."""
    global _runner
    if _runner is not None:
        _runner.shutdown(wait=False)
    _runner = None
