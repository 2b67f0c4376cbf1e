"""Synchronous repository queries

Blocking functions that talk to git. The async job slots call these from
worker threads; the UI may also call them directly (merge, discard, stash).
"""

from .commit_files import TreeDiff, compare_commits, get_commit_diff, get_commit_files
from .merge import merge_upstream_fast_forward
from .repository import (
    CommitId,
    RepoLock,
    RepoPath,
    open_repo,
    repo_read_lock,
    repo_write_lock,
)
from .stash import OrdinaryCommit, StashCommit, classify_commit, get_stashes, stash_save
from .status import (
    StatusItem,
    StatusKind,
    StatusScope,
    UntrackedPolicy,
    discard_status,
    get_status,
    is_workdir_clean,
)

__all__ = [
    # Types
    "CommitId",
    "RepoPath",
    "StatusItem",
    "StatusKind",
    "StatusScope",
    "UntrackedPolicy",
    "TreeDiff",
    "OrdinaryCommit",
    "StashCommit",
    # Repository
    "open_repo",
    "RepoLock",
    "repo_read_lock",
    "repo_write_lock",
    # Status
    "get_status",
    "is_workdir_clean",
    "discard_status",
    # Commits
    "get_commit_files",
    "get_commit_diff",
    "compare_commits",
    "classify_commit",
    # Stash
    "get_stashes",
    "stash_save",
    # Branch
    "merge_upstream_fast_forward",
]
