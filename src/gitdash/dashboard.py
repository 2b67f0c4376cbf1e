"""RepoDashboard - the control-loop side of gitdash

Owns the worker pool, the notifier and one job slot per JobKind for a single
repository. The UI layer talks to this class only:

- fetch / current / is_pending / last_error per job kind
- notifier.receive() / drain() for "a job finished" events
- poll(): periodic status refresh, usually registered on a Timer
- discard / stash / merge_upstream: synchronous mutations, errors raised to
  the caller
"""

from dataclasses import replace
from typing import Any

from .asyncjob import (
    JOB_FACTORIES,
    Executor,
    JobKind,
    JobNotification,
    JobSlot,
    Notifier,
    StatusParams,
    WorkerPool,
)
from .config import STATUS_POLL_INTERVAL
from .sync import (
    CommitId,
    RepoPath,
    StatusScope,
    UntrackedPolicy,
    discard_status,
    merge_upstream_fast_forward,
    stash_save,
)
from .telemetry import format_job_log, get_logger
from .timer import Timer

logger = get_logger(__name__)

STATUS_POLL_TASK = "status_poll"


class RepoDashboard:
    """Async query hub for one repository"""

    def __init__(
        self,
        repo_path: RepoPath,
        pool: Executor | None = None,
        notifier: Notifier | None = None,
        status_params: StatusParams | None = None,
    ):
        """
        Args:
            repo_path: repository path
            pool: executor shared by all slots; a WorkerPool is created (and
                owned) when omitted
            notifier: completion channel; created when omitted
            status_params: what poll() asks for
        """
        self.repo_path = repo_path
        self._owns_pool = pool is None
        self._pool = pool if pool is not None else WorkerPool()
        self.notifier = notifier if notifier is not None else Notifier()
        self._slots: dict[JobKind, JobSlot[Any, Any]] = {
            kind: factory(repo_path, self._pool, self.notifier)
            for kind, factory in JOB_FACTORIES.items()
        }
        self._status_params = status_params or StatusParams()
        self._tick = 0

    # === Job slots ===

    def slot(self, kind: JobKind) -> JobSlot[Any, Any]:
        return self._slots[kind]

    def fetch(self, kind: JobKind, params: Any) -> None:
        self._slots[kind].fetch(params)

    def current(self, kind: JobKind) -> tuple[Any, Any] | None:
        return self._slots[kind].current()

    def is_pending(self, kind: JobKind) -> bool:
        return self._slots[kind].is_pending()

    def last_error(self, kind: JobKind) -> str | None:
        return self._slots[kind].last_error()

    def is_any_pending(self) -> bool:
        return any(slot.is_pending() for slot in self._slots.values())

    # === Status polling ===

    def set_status_options(
        self,
        scope: StatusScope | None = None,
        untracked: UntrackedPolicy | None = None,
    ) -> None:
        params = self._status_params
        if scope is not None:
            params = replace(params, scope=scope)
        if untracked is not None:
            params = replace(params, untracked=untracked)
        self._status_params = params

    def poll(self) -> None:
        """Ask for a fresh status scan

        Each call bumps the tick so the request differs from the cached one.
        Dropped if a scan is still running; the next tick asks again.
        """
        self._tick += 1
        self.fetch(JobKind.STATUS, replace(self._status_params, tick=self._tick))

    def attach(self, timer: Timer, interval: float = STATUS_POLL_INTERVAL) -> None:
        """Register poll() as a periodic timer task"""
        timer.register_interval(STATUS_POLL_TASK, interval, self.poll)

    def process_notifications(self) -> list[JobNotification]:
        """Drain pending notifications, logging failures"""
        notifications = self.notifier.drain()
        for n in notifications:
            if not n.ok:
                logger.warning(format_job_log("Dashboard", n.kind.value, n.error or ""))
        return notifications

    # === Mutations ===

    def discard(self) -> bool:
        result = discard_status(self.repo_path)
        self.poll()
        return result

    def stash(
        self,
        message: str | None = None,
        include_untracked: bool = False,
        keep_index: bool = False,
    ) -> CommitId:
        stash_id = stash_save(self.repo_path, message, include_untracked, keep_index)
        self.poll()
        return stash_id

    def merge_upstream(self, branch: str) -> None:
        merge_upstream_fast_forward(self.repo_path, branch)
        self.poll()

    # === Lifecycle ===

    def close(self) -> None:
        self.notifier.close()
        if self._owns_pool and isinstance(self._pool, WorkerPool):
            self._pool.shutdown(wait=False)
