from pathlib import Path

import pytest
from git import Repo

from UncsKit import git_ops


@pytest.fixture(autouse=True)
def git_identity(monkeypatch):
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Test")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@example.com")


def commit(repo: Repo, name: str, content: str) -> None:
    Path(repo.working_tree_dir, name).write_text(content, encoding="utf-8")
    repo.git.add(A=True)
    repo.git.commit(m=f"add {name}")


@pytest.fixture
def remote(tmp_path):
    """A bare origin plus the working copy that pushes to it."""
    origin = Repo.init(tmp_path / "origin.git", bare=True)
    origin.git.symbolic_ref("HEAD", "refs/heads/main")
    upstream = Repo.init(tmp_path / "upstream")
    commit(upstream, "README.md", "hello\n")
    upstream.git.branch("-M", "main")
    upstream.create_remote("origin", origin.git_dir)
    upstream.git.push("origin", "main")
    return origin, upstream


@pytest.fixture
def clone(remote, tmp_path):
    origin, _ = remote
    return Repo.clone_from(origin.git_dir, tmp_path / "clone", branch="main")


def test_is_git_repo(clone, tmp_path):
    assert git_ops.is_git_repo(clone.working_tree_dir)
    assert not git_ops.is_git_repo(tmp_path)


def test_current_branch(clone, tmp_path):
    assert git_ops.current_branch(clone.working_tree_dir) == "main"
    clone.git.checkout("-b", "feature/x")
    assert git_ops.current_branch(clone.working_tree_dir) == "feature/x"
    assert git_ops.current_branch(tmp_path) is None


def test_is_main_branch():
    assert git_ops.is_main_branch("main")
    assert git_ops.is_main_branch("master")
    assert not git_ops.is_main_branch("develop")
    assert not git_ops.is_main_branch(None)


def test_pull_up_to_date_then_updated(remote, clone):
    _, upstream = remote
    outcome = git_ops.pull(clone.working_tree_dir)
    assert outcome.success
    assert not outcome.updated

    commit(upstream, "CHANGELOG.md", "v2\n")
    upstream.git.push("origin", "main")

    outcome = git_ops.pull(clone.working_tree_dir)
    assert outcome.success
    assert outcome.updated
    assert (Path(clone.working_tree_dir) / "CHANGELOG.md").exists()


def test_pull_without_remote_fails(tmp_path):
    repo = Repo.init(tmp_path / "lonely")
    commit(repo, "a.txt", "a\n")
    outcome = git_ops.pull(repo.working_tree_dir)
    assert not outcome.success
    assert outcome.output


def test_fetch_main_updates_local_main_from_feature_branch(remote, clone):
    _, upstream = remote
    clone.git.checkout("-b", "feature")
    commit(upstream, "NEW.md", "new\n")
    upstream.git.push("origin", "main")

    outcome = git_ops.fetch_main(clone.working_tree_dir)

    assert outcome.success
    assert clone.heads.main.commit.hexsha == upstream.head.commit.hexsha
    assert clone.active_branch.name == "feature"
    assert not (Path(clone.working_tree_dir) / "NEW.md").exists()


def test_fetch_main_without_origin_fails(tmp_path):
    repo = Repo.init(tmp_path / "lonely")
    commit(repo, "a.txt", "a\n")
    repo.git.checkout("-b", "feature")
    outcome = git_ops.fetch_main(repo.working_tree_dir)
    assert not outcome.success
    assert outcome.output
