"""Stash commits

A stash is recorded as a commit whose parents are, in order, the HEAD commit,
a snapshot of the index and (optionally) a root commit holding the untracked
files. classify_commit turns that shape into an explicit StashCommit so the
diff code never indexes parents directly.
"""

from dataclasses import dataclass

from git import Repo, SymbolicReference

from ..config import STASH_REF
from ..errors import ProviderError
from ..telemetry import get_logger
from .repository import (
    CommitId,
    RepoPath,
    find_commit,
    open_repo,
    provider_errors,
    repo_read_lock,
    repo_write_lock,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class OrdinaryCommit:
    id: CommitId


@dataclass(frozen=True)
class StashCommit:
    id: CommitId
    head: CommitId
    index: CommitId
    untracked: CommitId | None = None


CommitShape = OrdinaryCommit | StashCommit


def _stash_ids(repo: Repo) -> list[CommitId]:
    ref = SymbolicReference(repo, STASH_REF)
    if not ref.is_valid():
        return []
    # reflog is oldest first; stash@{0} is the newest
    return [CommitId(entry.newhexsha) for entry in reversed(ref.log())]


def get_stashes(repo_path: RepoPath) -> list[CommitId]:
    """Stash commit ids, newest first"""
    repo = open_repo(repo_path)
    with repo_read_lock(repo):
        return _stash_ids(repo)


def classify_commit(repo: Repo, commit_id: CommitId) -> CommitShape:
    """Tell stash commits apart from ordinary ones

    A commit counts as a stash when the stash reflog lists it and it has two
    or three parents.
    """
    with repo_read_lock(repo):
        commit = find_commit(repo, commit_id)
        parents = [CommitId.of(p) for p in commit.parents]
        stashes = _stash_ids(repo)
    if commit_id not in stashes or not 2 <= len(parents) <= 3:
        return OrdinaryCommit(commit_id)
    return StashCommit(
        id=commit_id,
        head=parents[0],
        index=parents[1],
        untracked=parents[2] if len(parents) == 3 else None,
    )


def stash_save(
    repo_path: RepoPath,
    message: str | None = None,
    include_untracked: bool = False,
    keep_index: bool = False,
) -> CommitId:
    """Stash local changes

    Args:
        repo_path: repository path
        message: optional stash message
        include_untracked: also stash untracked files
        keep_index: leave staged changes in place

    Returns:
        id of the new stash commit

    Raises:
        ProviderError: nothing to stash, or git refused
    """
    repo = open_repo(repo_path)
    root = repo.working_tree_dir or repo.git_dir
    with repo_write_lock(repo):
        before = _stash_ids(repo)
        args = ["push"]
        if message:
            args += ["-m", message]
        if include_untracked:
            args.append("--include-untracked")
        if keep_index:
            args.append("--keep-index")
        with provider_errors(root, "stash"):
            repo.git.stash(*args)
        after = _stash_ids(repo)

    if not after or after[:1] == before[:1]:
        raise ProviderError("stash failed: no local changes to save", repo_path=root)

    logger.info(f"[Stash] saved {after[0].short()} in {root}")
    return after[0]
