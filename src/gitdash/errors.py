"""Exception hierarchy

- GitDashError: root of everything raised by gitdash
- ProviderError: the repository query itself failed
- MergeError: fast-forward merge refused (diverged, unborn head, ...)
- ConcurrencyError: a job slot lock could not be acquired
- ConfigurationError: bad repository path, commit id, branch or upstream
"""


class GitDashError(Exception):
    """Base class for gitdash errors."""


class ProviderError(GitDashError):
    """A repository query or mutation failed in the git backend."""

    def __init__(self, message: str, *, repo_path: str | None = None):
        super().__init__(message)
        self.repo_path = repo_path


class MergeError(ProviderError):
    """Fast-forward merge is not possible."""


class ConcurrencyError(GitDashError):
    """Job slot lock acquisition failed."""


class ConfigurationError(GitDashError):
    """Malformed repository path or missing branch/upstream reference."""
