"""Worker pool shared by all job slots"""

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Protocol

from ..config import WORKER_POOL_SIZE, WORKER_THREAD_PREFIX
from ..telemetry import get_logger

logger = get_logger(__name__)


class Executor(Protocol):
    """What a job slot needs from its pool"""

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Any: ...


class WorkerPool:
    """Bounded thread pool; fire-and-forget from the caller's point of view

    Results travel back through the job slot and the notifier, never through
    the returned future.
    """

    def __init__(self, max_workers: int | None = None):
        self._max_workers = max_workers or WORKER_POOL_SIZE
        self._executor = ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix=WORKER_THREAD_PREFIX,
        )
        logger.info(f"[WorkerPool] started ({self._max_workers} workers)")

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Future:
        return self._executor.submit(fn, *args)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        logger.info("[WorkerPool] stopped")

    @property
    def max_workers(self) -> int:
        return self._max_workers


class InlineExecutor:
    """Runs submitted work immediately on the calling thread (tests)"""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn: Callable[..., Any], /, *args: Any) -> Future:
        self.submitted += 1
        future: Future = Future()
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)
        return future
