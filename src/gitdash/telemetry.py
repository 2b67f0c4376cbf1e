"""Telemetry - shared logger factory and metrics facade

Log format: [Component:kind] msg
Metric examples: job.spawned, job.skipped, job.completed, job.failed,
notifier.dropped, repo.lock_wait
"""

import logging
import threading

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the module logger

    Args:
        name: module name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(level: str | int = "INFO") -> None:
    """Install a root handler once, for scripts such as the demo watcher."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=_LOG_FORMAT)


def format_job_log(module: str, kind: str, msg: str) -> str:
    """Format a message tagged with a job kind

    Args:
        module: component name, e.g. "JobSlot"
        kind: job kind value, e.g. "status"
        msg: log message

    Returns:
        "[module:kind] msg"
    """
    return f"[{module}:{kind or 'unknown'}] {msg}"


def one_line(error: BaseException, max_len: int = 200) -> str:
    """Collapse an exception into a single display line."""
    text = str(error).strip().splitlines()
    first = text[0] if text else ""
    line = f"{type(error).__name__}: {first}" if first else type(error).__name__
    if len(line) > max_len:
        line = line[: max_len - 3] + "..."
    return line


class Metrics:
    """In-memory counters and gauges

    Workers update metrics from several threads, so writes go through a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter

        Args:
            name: metric name (e.g. "job.failed")
            labels: optional labels (e.g. {"kind": "status"})
            value: increment, default 1
        """
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set a gauge value"""
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Counter value (tests)"""
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Gauge value (tests)"""
        key = self._make_key(name, labels)
        with self._lock:
            return self._gauges.get(key, 0.0)

    def reset(self) -> None:
        """Clear everything (tests)"""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_all_counters(self) -> dict[str, int]:
        """All counters (debugging)"""
        with self._lock:
            return dict(self._counters)


# Process-wide metrics instance
metrics = Metrics()
