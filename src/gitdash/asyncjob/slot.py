"""JobSlot - single-outstanding-request cache cell

One slot per job kind. The control loop calls fetch() on every tick; the slot
decides whether to skip or to hand the query to the worker pool, keeps the last
completed (params, result) pair, and sends one notification per completed
fetch.

Rules:
1. While a worker is in flight, fetch() is a no-op (the request is dropped).
2. If the cached params equal the requested ones, fetch() is a no-op.
3. The cached pair is replaced as a whole tuple under the lock; the lock is
   never held across the provider call.
4. A failing provider leaves the cached pair untouched and produces a failure
   notification instead.
"""

import copy
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from ..config import LOG_MAX_ERROR_LEN, METRICS_ENABLED, SLOT_LOCK_TIMEOUT
from ..errors import ConcurrencyError
from ..telemetry import format_job_log, get_logger, metrics, one_line
from .notifier import JobKind, JobNotification, Notifier
from .pool import Executor

logger = get_logger(__name__)

P = TypeVar("P")
R = TypeVar("R")


class JobSlot(Generic[P, R]):
    """Generic async job slot

    Attributes:
        kind: job kind tag carried by notifications
    """

    def __init__(
        self,
        kind: JobKind,
        provider: Callable[[P], R],
        executor: Executor,
        notifier: Notifier,
        lock_timeout: float = SLOT_LOCK_TIMEOUT,
    ):
        self.kind = kind
        self._provider = provider
        self._executor = executor
        self._notifier = notifier
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._last: tuple[P, R] | None = None
        self._last_error: str | None = None
        self._pending = 0

    @contextmanager
    def _locked(self) -> Iterator[None]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            raise ConcurrencyError(f"job slot {self.kind.value}: lock not acquired")
        try:
            yield
        finally:
            self._lock.release()

    def _log(self, msg: str) -> str:
        return format_job_log("JobSlot", self.kind.value, msg)

    def current(self) -> tuple[P, R] | None:
        """Last completed (params, result), as a deep copy; None before the first"""
        with self._locked():
            last = self._last
        if last is None:
            return None
        params, result = last
        return params, copy.deepcopy(result)

    def is_pending(self) -> bool:
        """True while a worker runs for this slot"""
        with self._locked():
            return self._pending > 0

    def last_error(self) -> str | None:
        """One-line error of the latest failed fetch; cleared on success"""
        with self._locked():
            return self._last_error

    def fetch(self, params: P) -> None:
        """Request that the result for `params` becomes the cached value

        Returns immediately in every case.

        Raises:
            ConcurrencyError: the slot lock could not be acquired
        """
        with self._locked():
            if self._pending > 0:
                logger.debug(self._log(f"pending, dropping request {params!r}"))
                if METRICS_ENABLED:
                    metrics.inc("job.skipped", {"kind": self.kind.value})
                return
            if self._last is not None and self._last[0] == params:
                return
            self._pending += 1

        logger.debug(self._log(f"request: {params!r}"))
        if METRICS_ENABLED:
            metrics.inc("job.spawned", {"kind": self.kind.value})

        try:
            self._executor.submit(self._run, params)
        except RuntimeError:
            # pool already shut down
            with self._lock:
                self._pending -= 1
            raise

    def _run(self, params: P) -> None:
        """Worker body"""
        try:
            result = self._provider(params)
        except Exception as e:
            error = one_line(e, LOG_MAX_ERROR_LEN)
            logger.error(self._log(f"fetch failed for {params!r}: {error}"), exc_info=True)
            with self._lock:
                self._last_error = error
                self._pending -= 1
            if METRICS_ENABLED:
                metrics.inc("job.failed", {"kind": self.kind.value})
            self._notifier.send(JobNotification(self.kind, error=error))
            return

        with self._lock:
            self._last = (params, result)
            self._last_error = None
            self._pending -= 1
        if METRICS_ENABLED:
            metrics.inc("job.completed", {"kind": self.kind.value})
        self._notifier.send(JobNotification(self.kind))
