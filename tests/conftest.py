"""Pytest configuration and shared git fixtures"""

from pathlib import Path

import pytest
from git import Actor, Repo

from gitdash.telemetry import metrics

AUTHOR = Actor("gitdash test", "test@example.com")


@pytest.fixture
def anyio_backend():
    """Run anyio tests on asyncio only"""
    return "asyncio"


@pytest.fixture(autouse=True)
def reset_metrics():
    """Reset metrics around every test"""
    metrics.reset()
    yield
    metrics.reset()


def configure_identity(repo: Repo) -> None:
    with repo.config_writer() as cw:
        cw.set_value("user", "name", AUTHOR.name)
        cw.set_value("user", "email", AUTHOR.email)
        cw.set_value("commit", "gpgsign", "false")


def repo_init(path: Path) -> Repo:
    """Non-bare repository with an empty initial commit"""
    repo = Repo.init(path)
    configure_identity(repo)
    repo.index.commit("initial", author=AUTHOR, committer=AUTHOR)
    return repo


def write_file(repo: Repo, name: str, content: str | bytes) -> Path:
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content)
    return path


def commit_file(
    repo: Repo,
    name: str,
    content: str | bytes,
    message: str = "commit",
    timestamp: int | None = None,
) -> str:
    """Write, stage and commit one file; returns the commit hex id"""
    write_file(repo, name, content)
    repo.index.add([name])
    dates = {}
    if timestamp is not None:
        dates = {"author_date": f"{timestamp} +0000", "commit_date": f"{timestamp} +0000"}
    commit = repo.index.commit(message, author=AUTHOR, committer=AUTHOR, **dates)
    return commit.hexsha


@pytest.fixture
def repo(tmp_path) -> Repo:
    """Fresh repository under tmp_path"""
    return repo_init(tmp_path / "repo")


@pytest.fixture
def repo_path(repo) -> str:
    return repo.working_tree_dir
