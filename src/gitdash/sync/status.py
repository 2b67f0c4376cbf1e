"""Working-copy status

- get_status: ordered status entries for a scope
- is_workdir_clean: no working-directory changes
- discard_status: reset the working copy to HEAD

Entries come from `git status --porcelain=v1 -z`. Each entry's XY code is split
into index-side and worktree-side StatusFlag bits, filtered by scope and then
collapsed into a single StatusKind.
"""

from dataclasses import dataclass
from enum import Enum, Flag, auto
from pathlib import PurePath

from git import GitCommandError, Repo

from ..config import DEFAULT_UNTRACKED_POLICY
from ..telemetry import get_logger
from .repository import RepoPath, open_repo, provider_errors, repo_read_lock, repo_write_lock

logger = get_logger(__name__)


class StatusFlag(Flag):
    """Backend-reported status bits for one path"""

    NONE = 0
    INDEX_NEW = auto()
    INDEX_MODIFIED = auto()
    INDEX_DELETED = auto()
    INDEX_RENAMED = auto()
    INDEX_TYPECHANGE = auto()
    WT_NEW = auto()
    WT_MODIFIED = auto()
    WT_DELETED = auto()
    WT_RENAMED = auto()
    WT_TYPECHANGE = auto()
    CONFLICTED = auto()


INDEX_FLAGS = (
    StatusFlag.INDEX_NEW
    | StatusFlag.INDEX_MODIFIED
    | StatusFlag.INDEX_DELETED
    | StatusFlag.INDEX_RENAMED
    | StatusFlag.INDEX_TYPECHANGE
)
WT_FLAGS = (
    StatusFlag.WT_NEW
    | StatusFlag.WT_MODIFIED
    | StatusFlag.WT_DELETED
    | StatusFlag.WT_RENAMED
    | StatusFlag.WT_TYPECHANGE
)

_INDEX_CODES = {
    "A": StatusFlag.INDEX_NEW,
    "C": StatusFlag.INDEX_NEW,
    "M": StatusFlag.INDEX_MODIFIED,
    "D": StatusFlag.INDEX_DELETED,
    "R": StatusFlag.INDEX_RENAMED,
    "T": StatusFlag.INDEX_TYPECHANGE,
}
_WT_CODES = {
    "A": StatusFlag.WT_NEW,
    "M": StatusFlag.WT_MODIFIED,
    "D": StatusFlag.WT_DELETED,
    "R": StatusFlag.WT_RENAMED,
    "T": StatusFlag.WT_TYPECHANGE,
}
_UNMERGED = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}


class StatusKind(Enum):
    """Status of one changed path"""

    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    TYPECHANGE = "typechange"
    CONFLICTED = "conflicted"

    @classmethod
    def from_flags(cls, flags: StatusFlag) -> "StatusKind":
        """First match wins: New > Deleted > Renamed > Typechange > Conflicted > Modified"""
        if flags & (StatusFlag.INDEX_NEW | StatusFlag.WT_NEW):
            return cls.NEW
        if flags & (StatusFlag.INDEX_DELETED | StatusFlag.WT_DELETED):
            return cls.DELETED
        if flags & (StatusFlag.INDEX_RENAMED | StatusFlag.WT_RENAMED):
            return cls.RENAMED
        if flags & (StatusFlag.INDEX_TYPECHANGE | StatusFlag.WT_TYPECHANGE):
            return cls.TYPECHANGE
        if flags & StatusFlag.CONFLICTED:
            return cls.CONFLICTED
        return cls.MODIFIED

    @classmethod
    def from_delta(cls, code: str) -> "StatusKind":
        """Map a diff delta letter (A/D/R/T/M/...) to a status kind"""
        match code[:1]:
            case "A":
                return cls.NEW
            case "D":
                return cls.DELETED
            case "R":
                return cls.RENAMED
            case "T":
                return cls.TYPECHANGE
            case _:
                return cls.MODIFIED


@dataclass(frozen=True)
class StatusItem:
    """One changed path"""

    path: str
    status: StatusKind


class StatusScope(Enum):
    """Which side of the working copy to report"""

    WORKING_DIR = "workdir"
    STAGE = "stage"
    BOTH = "both"

    @property
    def mask(self) -> StatusFlag:
        match self:
            case StatusScope.WORKING_DIR:
                return WT_FLAGS | StatusFlag.CONFLICTED
            case StatusScope.STAGE:
                return INDEX_FLAGS | StatusFlag.CONFLICTED
            case _:
                return INDEX_FLAGS | WT_FLAGS | StatusFlag.CONFLICTED


class UntrackedPolicy(Enum):
    """status.showUntrackedFiles"""

    NO = "no"
    NORMAL = "normal"
    ALL = "all"

    @property
    def include_untracked(self) -> bool:
        return self is not UntrackedPolicy.NO

    @property
    def recurse_untracked_dirs(self) -> bool:
        return self is UntrackedPolicy.ALL

    @classmethod
    def from_config_value(cls, value: str | None) -> "UntrackedPolicy":
        if value is None:
            return cls(DEFAULT_UNTRACKED_POLICY)
        value = value.strip().lower()
        if value in ("no", "false", "off", "0"):
            return cls.NO
        if value == "normal":
            return cls.NORMAL
        return cls.ALL


@dataclass(frozen=True)
class StatusEntry:
    """Raw porcelain entry before scope filtering"""

    path: str
    flags: StatusFlag
    orig_path: str | None = None


def untracked_policy_of(repo: Repo) -> UntrackedPolicy:
    """Read status.showUntrackedFiles from the repository configuration."""
    try:
        value = repo.git.config("--get", "status.showUntrackedFiles")
    except GitCommandError:
        # exit status 1: key not set
        value = None
    return UntrackedPolicy.from_config_value(value)


def parse_status_flags(code: str) -> StatusFlag:
    """Translate a porcelain XY code into StatusFlag bits"""
    if code == "??":
        return StatusFlag.WT_NEW
    if code in _UNMERGED:
        return StatusFlag.CONFLICTED
    x, y = code[0], code[1]
    flags = _INDEX_CODES.get(x, StatusFlag.NONE)
    flags |= _WT_CODES.get(y, StatusFlag.NONE)
    return flags


def parse_porcelain(output: str) -> list[StatusEntry]:
    """Parse NUL-separated `git status --porcelain=v1 -z` output

    Rename and copy records carry a second field holding the original path.
    """
    entries: list[StatusEntry] = []
    fields = output.split("\0")
    i = 0
    while i < len(fields):
        record = fields[i]
        i += 1
        if len(record) < 4:
            continue
        code, path = record[:2], record[3:]
        if code == "!!":
            continue
        orig_path = None
        if code[0] in "RC" or code[1] in "RC":
            orig_path = fields[i] if i < len(fields) else None
            i += 1
        entries.append(StatusEntry(path=path, flags=parse_status_flags(code), orig_path=orig_path))
    return entries


def _scan(repo: Repo, untracked: UntrackedPolicy) -> list[StatusEntry]:
    if untracked is UntrackedPolicy.NO:
        untracked_arg = "no"
    elif untracked.recurse_untracked_dirs:
        untracked_arg = "all"
    else:
        untracked_arg = "normal"
    with provider_errors(repo.working_tree_dir, "status"):
        output = repo.git.status(
            "--porcelain=v1",
            "-z",
            "--renames",
            f"--untracked-files={untracked_arg}",
        )
    return parse_porcelain(output)


def sort_by_path(items: list[StatusItem]) -> list[StatusItem]:
    """Sort component-wise with the platform path ordering"""
    return sorted(items, key=lambda item: PurePath(item.path))


def get_status(
    repo_path: RepoPath,
    scope: StatusScope = StatusScope.WORKING_DIR,
    untracked: UntrackedPolicy | None = None,
) -> list[StatusItem]:
    """Enumerate changed paths, sorted by path

    Args:
        repo_path: repository path
        scope: working dir, stage or both
        untracked: untracked-file policy; None reads the repository config

    Returns:
        StatusItem list; empty for bare repositories

    Raises:
        ConfigurationError: repo_path is not a repository
        ProviderError: git status failed
    """
    repo = open_repo(repo_path)
    if repo.bare:
        return []

    with repo_read_lock(repo):
        if untracked is None:
            untracked = untracked_policy_of(repo)
        entries = _scan(repo, untracked)

    mask = scope.mask
    items = []
    for entry in entries:
        flags = entry.flags & mask
        if not flags:
            continue
        items.append(StatusItem(path=entry.path, status=StatusKind.from_flags(flags)))

    logger.debug(f"[Status] {scope.value}: {len(items)} entries")
    return sort_by_path(items)


def is_workdir_clean(repo_path: RepoPath, untracked: UntrackedPolicy | None = None) -> bool:
    """True when a working-dir scan reports nothing (always True for bare repos)"""
    repo = open_repo(repo_path)
    if repo.bare:
        return True
    return not get_status(repo.working_tree_dir, StatusScope.WORKING_DIR, untracked)


def discard_status(repo_path: RepoPath) -> bool:
    """Reset working tree and index to HEAD

    Triggered when any entry is modified or new in the working tree. Untracked
    files are removed as well so the tree ends up equal to HEAD; ignored files
    are left alone.

    Returns:
        True; a bare repository has nothing to discard

    Raises:
        ProviderError: HEAD cannot be resolved or the reset failed
    """
    repo = open_repo(repo_path)
    if repo.bare:
        return True
    root = repo.working_tree_dir
    with repo_write_lock(repo):
        entries = _scan(repo, UntrackedPolicy.ALL)
        dirty = [e for e in entries if e.flags & (StatusFlag.WT_MODIFIED | StatusFlag.WT_NEW)]
        if not dirty:
            return True

        logger.info(f"[Status] discarding {len(dirty)} changed paths in {root}")
        with provider_errors(root, "discard"):
            repo.git.reset("--hard", "HEAD")
            repo.git.clean("-f", "-d")
    return True
