"""gitdash configuration

Settings fall into these groups:
- worker pool: background execution units
- job slots: lock and dedup behaviour
- polling: control-loop tick rates
- repository queries: untracked-file fallback, merge reflog text
- logging and metrics
"""

import os

# === Worker pool ===
WORKER_POOL_SIZE = int(os.environ.get("GITDASH_WORKERS", "4"))  # background threads
WORKER_THREAD_PREFIX = "gitdash-worker"

# === Job slots ===
SLOT_LOCK_TIMEOUT = 1.0  # seconds; failing to get the slot lock is a ConcurrencyError

# === Polling ===
TIMER_TICK_INTERVAL = 1.0  # Timer tick (seconds)
STATUS_POLL_INTERVAL = 2.0  # how often the dashboard re-requests status (seconds)
NOTIFY_RECEIVE_TIMEOUT = 0.1  # demo loop wait per notification (seconds)

# === Repository queries ===
# Used when status.showUntrackedFiles is unset or holds an unknown value
DEFAULT_UNTRACKED_POLICY = "all"
STASH_REF = "refs/stash"
MERGE_REFLOG_MESSAGE = "merge: fast-forward to upstream"

# === Logging ===
LOG_LEVEL = os.environ.get("GITDASH_LOG_LEVEL", "INFO")
LOG_MAX_ERROR_LEN = 200  # truncate error text carried in notifications

# === Metrics ===
METRICS_ENABLED = True
