"""Files touched by commits

- get_commit_files: flat file list of a commit, or of two commits compared
- get_commit_diff: commit against its first parent, stash aware
- compare_commits: two arbitrary commits, older one as base
"""

from dataclasses import dataclass, field

from git import Commit, Repo

from ..telemetry import get_logger
from .repository import (
    CommitId,
    RepoPath,
    find_commit,
    open_repo,
    provider_errors,
    repo_read_lock,
)
from .stash import StashCommit, classify_commit
from .status import StatusItem, StatusKind

logger = get_logger(__name__)


@dataclass(frozen=True)
class TreeDiff:
    """Deltas between two trees

    Attributes:
        base: older side; None means the empty tree
        target: newer side
        deltas: changed paths as seen on the target side, in git's path order
        patch: textual patch including binary content, only when requested
    """

    base: CommitId | None
    target: CommitId
    deltas: list[StatusItem] = field(default_factory=list)
    patch: str | None = None

    def merged(self, other: "TreeDiff") -> "TreeDiff":
        """Fold another diff's deltas into this one; this diff wins on equal paths"""
        by_path = {item.path: item for item in other.deltas}
        by_path.update({item.path: item for item in self.deltas})
        patch = None
        if self.patch is not None or other.patch is not None:
            patch = (self.patch or "") + (other.patch or "")
        return TreeDiff(
            base=self.base,
            target=self.target,
            deltas=[by_path[path] for path in sorted(by_path)],
            patch=patch,
        )


def parse_name_status(output: str) -> list[StatusItem]:
    """Parse `git diff-tree -z --name-status` output into status items"""
    fields = [f for f in output.split("\0") if f]
    items = []
    for code, path in zip(fields[0::2], fields[1::2]):
        items.append(StatusItem(path=path, status=StatusKind.from_delta(code)))
    return items


def _diff_trees(
    repo: Repo,
    base: str | None,
    target: str,
    path_filter: str | None,
    patch: bool,
) -> tuple[list[StatusItem], str | None]:
    revs = ["--root", target] if base is None else [base, target]
    pathspec = ["--", path_filter] if path_filter else []

    with provider_errors(repo.git_dir, f"diff {target[:7]}"):
        output = repo.git.diff_tree(
            "-r", "-z", "--name-status", "--no-commit-id", "--no-renames", *revs, *pathspec
        )
        text = None
        if patch:
            text = repo.git.diff_tree(
                "-r", "-p", "--binary", "--no-commit-id", "--no-renames", *revs, *pathspec
            )
    return parse_name_status(output), text


def get_commit_diff(
    repo: Repo,
    commit_id: CommitId,
    path_filter: str | None = None,
    patch: bool = False,
) -> TreeDiff:
    """Diff a commit against its first parent

    A root commit is compared with the empty tree. For a stash commit carrying
    an untracked-files parent, that parent's own diff is merged in so both the
    tracked and the untracked stash contents show up.
    """
    with repo_read_lock(repo):
        commit = find_commit(repo, commit_id)
        base = CommitId.of(commit.parents[0]) if commit.parents else None

        deltas, text = _diff_trees(
            repo, base.hex if base else None, commit_id.hex, path_filter, patch
        )
        diff = TreeDiff(base=base, target=commit_id, deltas=deltas, patch=text)

        shape = classify_commit(repo, commit_id)
        if isinstance(shape, StashCommit) and shape.untracked is not None:
            logger.debug(f"[CommitFiles] {commit_id.short()} is a stash with untracked files")
            diff = diff.merged(get_commit_diff(repo, shape.untracked, path_filter, patch))

    return diff


def _chronological(repo: Repo, a: Commit, b: Commit) -> tuple[Commit, Commit]:
    """Return (older, newer) by committer time

    Equal timestamps fall back to ancestry, then to the hex id.
    """
    if a.committed_date != b.committed_date:
        return (a, b) if a.committed_date < b.committed_date else (b, a)
    if a.hexsha == b.hexsha:
        return a, b
    if repo.is_ancestor(b.hexsha, a.hexsha):
        return b, a
    if repo.is_ancestor(a.hexsha, b.hexsha):
        return a, b
    return (a, b) if a.hexsha < b.hexsha else (b, a)


def compare_commits(
    repo: Repo,
    ids: tuple[CommitId, CommitId],
    path_filter: str | None = None,
    patch: bool = False,
) -> TreeDiff:
    """Diff two arbitrary commits, older one as base

    The result is the same whichever order the ids are passed in.
    """
    with repo_read_lock(repo):
        older, newer = _chronological(
            repo, find_commit(repo, ids[0]), find_commit(repo, ids[1])
        )
        base, target = CommitId.of(older), CommitId.of(newer)
        deltas, text = _diff_trees(repo, base.hex, target.hex, path_filter, patch)
    return TreeDiff(base=base, target=target, deltas=deltas, patch=text)


def get_commit_files(
    repo_path: RepoPath,
    commit_id: CommitId,
    other: CommitId | None = None,
) -> list[StatusItem]:
    """All files that are part of a commit

    Args:
        repo_path: repository path
        commit_id: commit to inspect
        other: when given, compare commit_id with this commit instead

    Returns:
        StatusItem list, paths from the newer side
    """
    repo = open_repo(repo_path)
    if other is not None:
        diff = compare_commits(repo, (commit_id, other))
    else:
        diff = get_commit_diff(repo, commit_id)

    logger.debug(f"[CommitFiles] {commit_id.short()}: {len(diff.deltas)} files")
    return list(diff.deltas)
