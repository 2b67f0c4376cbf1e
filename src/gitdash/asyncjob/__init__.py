"""Asynchronous job machinery

- notifier: JobKind, JobNotification, Notifier
- pool: WorkerPool, InlineExecutor
- slot: JobSlot (generic single-slot cache)
- jobs: per-kind params and slot factories
"""

from .jobs import (
    JOB_FACTORIES,
    CommitFilesParams,
    DiffParams,
    StatusParams,
    commit_files_job,
    diff_job,
    status_job,
)
from .notifier import JobKind, JobNotification, Notifier
from .pool import Executor, InlineExecutor, WorkerPool
from .slot import JobSlot

__all__ = [
    "JobKind",
    "JobNotification",
    "Notifier",
    "Executor",
    "WorkerPool",
    "InlineExecutor",
    "JobSlot",
    "StatusParams",
    "CommitFilesParams",
    "DiffParams",
    "status_job",
    "commit_files_job",
    "diff_job",
    "JOB_FACTORIES",
]
