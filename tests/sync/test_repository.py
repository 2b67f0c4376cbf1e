"""Tests for sync/repository.py locking"""

import threading

import pytest
from git import Repo

from gitdash.errors import ConcurrencyError
from gitdash.sync import RepoLock, open_repo, repo_read_lock, repo_write_lock
from gitdash.sync.repository import get_repo_lock
from gitdash.telemetry import metrics


def _in_thread(fn) -> tuple[threading.Thread, threading.Event]:
    """Run fn on a thread; the event is set once fn returns"""
    done = threading.Event()

    def target():
        fn()
        done.set()

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, done


class TestRepoLock:
    def test_readers_share(self):
        lock = RepoLock()
        lock.acquire_read()
        try:
            thread, done = _in_thread(lambda: (lock.acquire_read(), lock.release_read()))
            assert done.wait(timeout=5)
            thread.join()
        finally:
            lock.release_read()

    def test_writer_waits_for_reader(self):
        lock = RepoLock()
        lock.acquire_read()

        thread, done = _in_thread(lambda: (lock.acquire_write(), lock.release_write()))
        assert not done.wait(timeout=0.1)

        lock.release_read()
        assert done.wait(timeout=5)
        thread.join()
        assert metrics.get_counter("repo.lock_wait") == 1

    def test_reader_waits_for_writer(self):
        lock = RepoLock()
        lock.acquire_write()

        thread, done = _in_thread(lambda: (lock.acquire_read(), lock.release_read()))
        assert not done.wait(timeout=0.1)

        lock.release_write()
        assert done.wait(timeout=5)
        thread.join()

    def test_waiting_writer_blocks_new_readers(self):
        lock = RepoLock()
        lock.acquire_read()
        writer, writer_done = _in_thread(lambda: (lock.acquire_write(), lock.release_write()))
        # let the writer register as waiting
        assert not writer_done.wait(timeout=0.1)

        reader, reader_done = _in_thread(lambda: (lock.acquire_read(), lock.release_read()))
        assert not reader_done.wait(timeout=0.1)

        lock.release_read()
        assert writer_done.wait(timeout=5)
        assert reader_done.wait(timeout=5)
        writer.join()
        reader.join()

    def test_reentrant(self):
        lock = RepoLock()
        lock.acquire_write()
        lock.acquire_write()
        lock.acquire_read()
        lock.release_read()
        lock.release_write()
        lock.release_write()

        lock.acquire_read()
        lock.acquire_read()
        lock.release_read()
        lock.release_read()

        thread, done = _in_thread(lambda: (lock.acquire_write(), lock.release_write()))
        assert done.wait(timeout=5)
        thread.join()

    def test_read_to_write_upgrade_refused(self):
        lock = RepoLock()
        lock.acquire_read()
        try:
            with pytest.raises(ConcurrencyError):
                lock.acquire_write()
        finally:
            lock.release_read()


class TestRepoLockRegistry:
    def test_same_lock_for_subdirectory(self, repo, repo_path, tmp_path):
        sub = tmp_path / "repo" / "sub"
        sub.mkdir()

        assert get_repo_lock(open_repo(sub)) is get_repo_lock(open_repo(repo_path))

    def test_distinct_repositories(self, repo, tmp_path):
        other = Repo.init(tmp_path / "other")

        assert get_repo_lock(repo) is not get_repo_lock(other)

    def test_context_managers_release(self, repo):
        with repo_write_lock(repo):
            with repo_read_lock(repo):
                pass

        def write():
            with repo_write_lock(repo):
                pass

        thread, done = _in_thread(write)
        assert done.wait(timeout=5)
        thread.join()
