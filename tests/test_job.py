import sys
from pathlib import Path

import pytest

from srcdeps.container import DockerExecutor
from srcdeps.data import SRCFILE_NAME, RepositoryConfig
from srcdeps.job import JobConfig, JobContext, normalize_repo_uri


@pytest.mark.parametrize(
    "clone_url, uri",
    [
        ("https://github.com/user/repo.git", "github.com/user/repo"),
        ("https://github.com/user/repo/", "github.com/user/repo"),
        ("git@github.com:user/repo.git", "github.com/user/repo"),
        ("ssh://git@example.org:2222/team/repo.git", "example.org/team/repo"),
        ("github.com/user/repo", "github.com/user/repo"),
    ],
)
def test_normalize_repo_uri(clone_url, uri):
    assert normalize_repo_uri(clone_url) == uri


def test_job_config_defaults_and_validation():
    config = JobConfig()
    assert config.concurrency == 4
    assert config.coalesce_resolutions is False
    with pytest.raises(ValueError):
        JobConfig(concurrency=0)
    with pytest.raises(ValueError):
        JobConfig(resolve_concurrency=-1)
    with pytest.raises(ValueError):
        JobConfig(container_timeout=0)
    with pytest.raises(ValueError):
        JobConfig(log_level="VERBOSE")
    assert JobConfig(container_timeout=None).container_timeout is None


def test_context_validation(repo_dir: Path):
    with pytest.raises(ValueError, match="commit_id"):
        JobContext(repo_dir=repo_dir, repo_uri="github.com/acme/app", commit_id="")
    with pytest.raises(ValueError, match="repo_uri"):
        JobContext(repo_dir=repo_dir, repo_uri="", commit_id="abc")


def test_context_syncs_repo_config_uri(repo_dir: Path):
    ctx = JobContext(
        repo_dir=repo_dir,
        repo_uri="github.com/acme/app",
        commit_id="abc",
        repo_config=RepositoryConfig(uri="", scan_ignore=["vendor"]),
    )
    assert ctx.repo_config.uri == "github.com/acme/app"
    assert ctx.repo_config.scan_ignore == ["vendor"]
    assert isinstance(ctx.executor, DockerExecutor)


def test_from_dir_uses_srcfile(repo_dir: Path, fake_executor):
    (repo_dir / SRCFILE_NAME).write_text('{"uri": "example.org/team/app"}')
    executor = fake_executor()
    ctx = JobContext.from_dir(repo_dir, commit_id="abc", executor=executor)
    assert ctx.repo_uri == "example.org/team/app"
    assert ctx.commit_id == "abc"
    assert ctx.executor is executor
    assert ctx.repo_dir == repo_dir.resolve()


def test_from_dir_uses_git(repo_dir: Path, monkeypatch: pytest.MonkeyPatch):
    answers = {
        ("config", "--get", "remote.origin.url"): "git@github.com:acme/app.git",
        ("rev-parse", "HEAD"): "0123abcd",
    }
    monkeypatch.setattr("srcdeps.job._git", lambda dir, *args: answers.get(args))
    ctx = JobContext.from_dir(repo_dir)
    assert ctx.repo_uri == "github.com/acme/app"
    assert ctx.commit_id == "0123abcd"


def test_from_dir_without_git(repo_dir: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("srcdeps.job._git", lambda dir, *args: None)
    with pytest.raises(ValueError, match="commit"):
        JobContext.from_dir(repo_dir)
    ctx = JobContext.from_dir(repo_dir, commit_id="abc")
    assert ctx.repo_uri == "repo"


if __name__ == "__main__":
    pytest.main(sys.argv)
