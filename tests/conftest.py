from __future__ import annotations

import pytest

from tests.backlog_helpers import BacklogRepo, FakeGitBackend, run_git


@pytest.fixture(name="_git_identity")
def git_identity_fixture(monkeypatch):
    """Ensure git commands can commit even if the user has no global config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Backlog Tester")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "backlog@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Backlog Tester")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "backlog@example.com")
    monkeypatch.delenv("BACKLOG_REMOTE_OPERATIONS", raising=False)


@pytest.fixture
def backlog_repo(tmp_path, _git_identity) -> BacklogRepo:
    """Fresh repository on ``main`` with a committed ``backlog/config.yml``."""
    root = tmp_path / "project"
    root.mkdir()
    run_git(root, "init", "-q", "--initial-branch=main")
    repo = BacklogRepo(root)
    repo.write_config()
    repo.commit("Initial backlog")
    return repo


@pytest.fixture
def fake_backend() -> FakeGitBackend:
    return FakeGitBackend()
