"""Repository access shared by all query algorithms

- CommitId: value type for object ids
- open_repo: open a git.Repo, mapping failures to ConfigurationError
- provider_errors: translate backend exceptions into ProviderError
- RepoLock: per-repository reader/writer lock; queries read, mutations write
"""

import os
import re
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from git import Commit, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo
from git.exc import BadName, BadObject

from ..config import LOG_MAX_ERROR_LEN, METRICS_ENABLED
from ..errors import ConcurrencyError, ConfigurationError, ProviderError
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)

RepoPath = str | os.PathLike

_HEX_ID_RE = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")


@dataclass(frozen=True, order=True)
class CommitId:
    """Full hex object id (sha1 or sha256)."""

    hex: str

    @classmethod
    def parse(cls, value: str) -> "CommitId":
        """Validate a full hex id

        Raises:
            ConfigurationError: value is not 40 or 64 hex characters
        """
        normalized = value.strip().lower()
        if not _HEX_ID_RE.match(normalized):
            raise ConfigurationError(f"invalid commit id: {value!r}")
        return cls(normalized)

    @classmethod
    def of(cls, commit: Commit) -> "CommitId":
        return cls(commit.hexsha)

    def short(self) -> str:
        return self.hex[:7]

    def __str__(self) -> str:
        return self.hex


def open_repo(repo_path: RepoPath) -> Repo:
    """Open the repository at repo_path

    Args:
        repo_path: working tree (or any directory inside it) or bare repo path

    Returns:
        git.Repo

    Raises:
        ConfigurationError: the path does not exist or is not a repository
    """
    try:
        return Repo(os.fspath(repo_path), search_parent_directories=True)
    except NoSuchPathError as e:
        raise ConfigurationError(f"repository path does not exist: {repo_path}") from e
    except InvalidGitRepositoryError as e:
        raise ConfigurationError(f"not a git repository: {repo_path}") from e


@contextmanager
def provider_errors(repo_path: RepoPath, action: str) -> Iterator[None]:
    """Re-raise backend failures inside the block as ProviderError."""
    try:
        yield
    except GitCommandError as e:
        stderr = (e.stderr or "").strip()
        detail = stderr.splitlines()[-1] if stderr else str(e)
        raise ProviderError(
            f"{action} failed: {detail[:LOG_MAX_ERROR_LEN]}",
            repo_path=os.fspath(repo_path),
        ) from e
    except (BadName, BadObject, ValueError) as e:
        raise ProviderError(f"{action} failed: {e}", repo_path=os.fspath(repo_path)) from e


def find_commit(repo: Repo, commit_id: CommitId) -> Commit:
    """Look up a commit object by id

    Raises:
        ProviderError: unknown object or not a commit
    """
    with provider_errors(repo.git_dir, f"find commit {commit_id.short()}"):
        # object lookups are lazy; check existence and type first
        repo.git.cat_file("-e", f"{commit_id.hex}^{{commit}}")
        return repo.commit(commit_id.hex)


# === Per-repository locking ===


class RepoLock:
    """Reader/writer lock for one repository

    Queries take the shared side, mutations (discard, stash, merge) the
    exclusive side. Both sides are reentrant per thread, and a thread holding
    the exclusive side may also read. Waiting writers block new readers so a
    steady poll cannot starve a mutation.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}  # thread id -> depth
        self._writer: int | None = None
        self._writer_depth = 0
        self._writers_waiting = 0

    def _contended(self) -> None:
        if METRICS_ENABLED:
            metrics.inc("repo.lock_wait")

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            if self._writer is not None or self._writers_waiting:
                self._contended()
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            depth = self._readers[me] - 1
            if depth:
                self._readers[me] = depth
            else:
                del self._readers[me]
                self._cond.notify_all()

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                raise ConcurrencyError("cannot upgrade a repository read lock to a write lock")
            if self._writer is not None or self._readers:
                self._contended()
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._writer_depth = 1

    def release_write(self) -> None:
        with self._cond:
            self._writer_depth -= 1
            if not self._writer_depth:
                self._writer = None
                self._cond.notify_all()


_locks_guard = threading.Lock()
_repo_locks: dict[str, RepoLock] = {}


def _lock_key(repo: Repo) -> str:
    return os.path.normcase(os.path.realpath(repo.git_dir))


def get_repo_lock(repo: Repo) -> RepoLock:
    """Return the process-wide lock of a repository, keyed by its git dir."""
    key = _lock_key(repo)
    with _locks_guard:
        lock = _repo_locks.get(key)
        if lock is None:
            lock = RepoLock()
            _repo_locks[key] = lock
        return lock


@contextmanager
def repo_read_lock(repo: Repo) -> Iterator[None]:
    """Shared access for queries; excluded while a mutation runs"""
    lock = get_repo_lock(repo)
    lock.acquire_read()
    try:
        yield
    finally:
        lock.release_read()


@contextmanager
def repo_write_lock(repo: Repo) -> Iterator[None]:
    """Exclusive access for discard, stash and merge"""
    lock = get_repo_lock(repo)
    lock.acquire_write()
    try:
        yield
    finally:
        lock.release_write()
