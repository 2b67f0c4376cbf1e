"""Job kinds: parameter types and slot factories

Each factory binds a repository path to one query function and returns a
JobSlot for it.
"""

from dataclasses import dataclass

from ..sync import (
    CommitId,
    RepoPath,
    StatusItem,
    StatusScope,
    TreeDiff,
    UntrackedPolicy,
    compare_commits,
    get_commit_files,
    get_status,
    open_repo,
)
from .notifier import JobKind, Notifier
from .pool import Executor
from .slot import JobSlot


@dataclass(frozen=True)
class StatusParams:
    """Status request

    `tick` takes part in equality so a periodic poller can force a rescan of an
    otherwise identical request.
    """

    scope: StatusScope = StatusScope.WORKING_DIR
    untracked: UntrackedPolicy | None = None
    tick: int = 0


@dataclass(frozen=True)
class CommitFilesParams:
    commit_id: CommitId
    other: CommitId | None = None


@dataclass(frozen=True)
class DiffParams:
    ids: tuple[CommitId, CommitId]
    path: str | None = None


StatusSlot = JobSlot[StatusParams, list[StatusItem]]
CommitFilesSlot = JobSlot[CommitFilesParams, list[StatusItem]]
DiffSlot = JobSlot[DiffParams, TreeDiff]


def status_job(repo_path: RepoPath, executor: Executor, notifier: Notifier) -> StatusSlot:
    def provider(params: StatusParams) -> list[StatusItem]:
        return get_status(repo_path, params.scope, params.untracked)

    return JobSlot(JobKind.STATUS, provider, executor, notifier)


def commit_files_job(
    repo_path: RepoPath, executor: Executor, notifier: Notifier
) -> CommitFilesSlot:
    def provider(params: CommitFilesParams) -> list[StatusItem]:
        return get_commit_files(repo_path, params.commit_id, params.other)

    return JobSlot(JobKind.COMMIT_FILES, provider, executor, notifier)


def diff_job(repo_path: RepoPath, executor: Executor, notifier: Notifier) -> DiffSlot:
    def provider(params: DiffParams) -> TreeDiff:
        return compare_commits(open_repo(repo_path), params.ids, params.path, patch=True)

    return JobSlot(JobKind.DIFF, provider, executor, notifier)


JOB_FACTORIES = {
    JobKind.STATUS: status_job,
    JobKind.COMMIT_FILES: commit_files_job,
    JobKind.DIFF: diff_job,
}
