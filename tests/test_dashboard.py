"""Tests for dashboard.py"""

import pytest

from conftest import commit_file, write_file
from gitdash.asyncjob import (
    CommitFilesParams,
    DiffParams,
    InlineExecutor,
    JobKind,
    StatusParams,
)
from gitdash.dashboard import STATUS_POLL_TASK, RepoDashboard
from gitdash.errors import ConfigurationError
from gitdash.sync import (
    CommitId,
    StatusItem,
    StatusKind,
    StatusScope,
    UntrackedPolicy,
    get_stashes,
)
from gitdash.timer import Timer


@pytest.fixture
def dashboard(repo_path):
    dash = RepoDashboard(repo_path, pool=InlineExecutor())
    yield dash
    dash.close()


def _items(dashboard, kind):
    current = dashboard.current(kind)
    assert current is not None
    return current[1]


class TestStatusPolling:
    def test_poll_fetches_status(self, repo, dashboard):
        write_file(repo, "foo", "x")

        dashboard.poll()

        params, items = dashboard.current(JobKind.STATUS)
        assert params.tick == 1
        assert items == [StatusItem("foo", StatusKind.NEW)]
        assert [n.kind for n in dashboard.process_notifications()] == [JobKind.STATUS]

    def test_repeated_poll_rescans(self, repo, dashboard):
        dashboard.poll()
        assert _items(dashboard, JobKind.STATUS) == []

        write_file(repo, "foo", "x")
        dashboard.poll()

        assert _items(dashboard, JobKind.STATUS) == [StatusItem("foo", StatusKind.NEW)]
        assert len(dashboard.process_notifications()) == 2

    def test_set_status_options(self, repo, dashboard):
        write_file(repo, "foo", "x")
        dashboard.set_status_options(untracked=UntrackedPolicy.NO)

        dashboard.poll()

        params, items = dashboard.current(JobKind.STATUS)
        assert params.untracked is UntrackedPolicy.NO
        assert params.scope is StatusScope.WORKING_DIR
        assert items == []

    def test_status_params_passed_through(self, repo, repo_path):
        commit_file(repo, "file.txt", "v1")
        write_file(repo, "file.txt", "v2")
        repo.index.add(["file.txt"])
        dash = RepoDashboard(
            repo_path,
            pool=InlineExecutor(),
            status_params=StatusParams(scope=StatusScope.STAGE),
        )

        dash.poll()

        assert _items(dash, JobKind.STATUS) == [StatusItem("file.txt", StatusKind.MODIFIED)]
        dash.close()

    def test_attach_registers_poll_task(self, dashboard):
        timer = Timer()

        dashboard.attach(timer, interval=0.5)

        assert timer.get_interval_tasks() == [STATUS_POLL_TASK]

    @pytest.mark.asyncio
    async def test_timer_tick_polls(self, dashboard):
        timer = Timer()
        dashboard.attach(timer)

        await timer.tick()

        assert dashboard.current(JobKind.STATUS) is not None


class TestCommitQueries:
    def test_commit_files(self, repo, dashboard):
        commit = CommitId(commit_file(repo, "file1.txt", "content"))

        dashboard.fetch(JobKind.COMMIT_FILES, CommitFilesParams(commit))

        assert _items(dashboard, JobKind.COMMIT_FILES) == [
            StatusItem("file1.txt", StatusKind.NEW)
        ]
        assert dashboard.is_pending(JobKind.COMMIT_FILES) is False
        assert dashboard.is_any_pending() is False

    def test_diff(self, repo, dashboard):
        c1 = CommitId(commit_file(repo, "a.txt", "1\n", timestamp=1_700_000_000))
        c2 = CommitId(commit_file(repo, "a.txt", "2\n", timestamp=1_700_000_100))

        dashboard.fetch(JobKind.DIFF, DiffParams((c2, c1)))

        diff = _items(dashboard, JobKind.DIFF)
        assert diff.base == c1
        assert diff.deltas == [StatusItem("a.txt", StatusKind.MODIFIED)]
        assert "+2" in diff.patch

    def test_unknown_commit_reports_failure(self, dashboard):
        dashboard.fetch(JobKind.COMMIT_FILES, CommitFilesParams(CommitId("0" * 40)))

        notifications = dashboard.process_notifications()

        assert len(notifications) == 1
        assert not notifications[0].ok
        assert dashboard.current(JobKind.COMMIT_FILES) is None
        assert dashboard.last_error(JobKind.COMMIT_FILES) == notifications[0].error


class TestMutations:
    def test_discard_refreshes_status(self, repo, dashboard):
        write_file(repo, "foo", "x")
        dashboard.poll()

        assert dashboard.discard() is True

        assert _items(dashboard, JobKind.STATUS) == []

    def test_stash(self, repo, repo_path, dashboard):
        write_file(repo, "foo", "x")

        stash = dashboard.stash("wip", include_untracked=True)

        assert get_stashes(repo_path) == [stash]
        assert _items(dashboard, JobKind.STATUS) == []

    def test_merge_errors_propagate(self, dashboard):
        with pytest.raises(ConfigurationError):
            dashboard.merge_upstream("no-such-branch")

        assert dashboard.current(JobKind.STATUS) is None


class TestLifecycle:
    def test_close_owned_pool(self, repo_path):
        dash = RepoDashboard(repo_path)

        dash.close()

        assert dash.notifier.is_closed is True
        with pytest.raises(RuntimeError):
            dash.poll()
