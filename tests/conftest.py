from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest

from srcdeps.container import ContainerCommand
from srcdeps.data import RepositoryConfig
from srcdeps.job import JobConfig, JobContext

CommandOutput = Union[bytes, BaseException]


class FakeExecutor:
    """Executor double: answers container commands from a handler instead of docker.

    The handler receives the command and returns the raw standard output, or an exception to
    raise. The command's transform is applied to the output like DockerExecutor does.
    """

    def __init__(self, handler: Optional[Callable[[ContainerCommand], CommandOutput]] = None):
        self.commands: List[ContainerCommand] = []
        self._handler = handler or (lambda command: b"[]")

    def run(self, command: ContainerCommand, timeout: Optional[float] = None):
        self.commands.append(command)
        out = self._handler(command)
        if isinstance(out, BaseException):
            raise out
        return command.transform(out)


@pytest.fixture(autouse=True)
def tmp_build_data_dir(monkeypatch: pytest.MonkeyPatch) -> str:
    """Use a fixed build store directory name, whatever the environment says."""
    name = ".srcdeps-test-data"
    monkeypatch.setenv("SRCDEPS_BUILD_DATA_DIR", name)
    return name


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    return path


@pytest.fixture
def make_ctx(repo_dir: Path) -> Callable[..., JobContext]:
    """Factory of job contexts over ``repo_dir`` that never touch docker or git."""

    def factory(
        repo_config: Optional[RepositoryConfig] = None,
        executor: Optional[FakeExecutor] = None,
        uri: str = "github.com/acme/app",
        commit_id: str = "test-commit",
        config: Optional[JobConfig] = None,
    ) -> JobContext:
        return JobContext(
            repo_dir=repo_dir,
            repo_uri=uri,
            commit_id=commit_id,
            repo_config=repo_config or RepositoryConfig(uri=uri),
            config=config or JobConfig(concurrency=4),
            executor=executor or FakeExecutor(),
        )

    return factory


@pytest.fixture
def fake_executor() -> Callable[..., FakeExecutor]:
    """Factory of FakeExecutors: ``fake_executor(handler)``."""
    return FakeExecutor
