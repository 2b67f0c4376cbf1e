"""Fast-forward merge from a branch's upstream"""

from ..config import MERGE_REFLOG_MESSAGE
from ..errors import ConfigurationError, MergeError
from ..telemetry import get_logger
from .repository import RepoPath, open_repo, provider_errors, repo_write_lock

logger = get_logger(__name__)


def merge_upstream_fast_forward(repo_path: RepoPath, branch: str) -> None:
    """Advance a checked-out local branch to its upstream commit

    Only a strict fast-forward is performed: HEAD has to be an ancestor of the
    upstream commit. Divergence is an error, never a partial merge.

    Args:
        repo_path: repository path
        branch: local branch name

    Raises:
        ConfigurationError: unknown branch, no upstream configured, or the
            upstream ref does not exist
        MergeError: HEAD is unborn, the branch is not checked out, or the
            merge is not a fast-forward
        ProviderError: updating the working tree failed
    """
    repo = open_repo(repo_path)
    root = repo.working_tree_dir or repo.git_dir

    with repo_write_lock(repo):
        try:
            local = repo.heads[branch]
        except IndexError as e:
            raise ConfigurationError(f"unknown local branch: {branch}") from e

        upstream = local.tracking_branch()
        if upstream is None:
            raise ConfigurationError(f"branch {branch} has no upstream")
        if not upstream.is_valid():
            raise ConfigurationError(f"upstream {upstream.name} of {branch} does not exist")

        if not repo.head.is_valid():
            raise MergeError("head is unborn", repo_path=root)
        if repo.head.is_detached or repo.head.reference.name != branch:
            raise MergeError(f"branch {branch} is not checked out", repo_path=root)

        head_commit = repo.head.commit
        upstream_commit = upstream.commit
        if head_commit == upstream_commit or not repo.is_ancestor(
            head_commit.hexsha, upstream_commit.hexsha
        ):
            raise MergeError("fast forward merge not possible", repo_path=root)

        logger.info(
            f"[Merge] {branch}: {head_commit.hexsha[:7]} -> {upstream_commit.hexsha[:7]}"
        )
        with provider_errors(root, "fast-forward"):
            # two-tree merge: refuses to clobber conflicting local edits
            repo.git.read_tree("-m", "-u", head_commit.hexsha, upstream_commit.hexsha)
            local.set_commit(upstream_commit, logmsg=MERGE_REFLOG_MESSAGE)
