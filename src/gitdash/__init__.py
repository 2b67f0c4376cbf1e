"""gitdash - non-blocking repository queries for a terminal dashboard"""

from .asyncjob import JobKind, JobNotification, JobSlot, Notifier, WorkerPool
from .dashboard import RepoDashboard
from .errors import (
    ConcurrencyError,
    ConfigurationError,
    GitDashError,
    MergeError,
    ProviderError,
)

__all__ = [
    "RepoDashboard",
    "JobKind",
    "JobNotification",
    "JobSlot",
    "Notifier",
    "WorkerPool",
    "GitDashError",
    "ProviderError",
    "MergeError",
    "ConcurrencyError",
    "ConfigurationError",
]
