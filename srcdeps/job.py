"""Job configuration and the context threaded through every pipeline stage."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, Union

from srcdeps.container import DockerExecutor
from srcdeps.data import RepositoryConfig
from srcdeps.logging import get_logger

logger = get_logger("Job")


@dataclass
class JobConfig:
    """Configuration for pipeline runs.

    All fields have default values to make configuration optional.
    """

    concurrency: int = field(default=4)
    """Maximum number of build rules run at the same time."""
    resolve_concurrency: int = field(default=8)
    """Maximum number of dependencies of one unit resolved at the same time."""
    container_timeout: Optional[float] = field(default=600.0)
    """Timeout in seconds of each container command. None disables the timeout."""
    docker_bin: Optional[str] = field(default=None)
    """The docker client executable. Defaults to SRCDEPS_DOCKER or 'docker'."""
    coalesce_resolutions: bool = field(default=False)
    """Whether concurrent resolutions of the same reference share one index lookup."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = field(default="INFO")

    def __post_init__(self):
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.resolve_concurrency <= 0:
            raise ValueError("resolve_concurrency must be > 0")
        if self.container_timeout is not None and self.container_timeout <= 0:
            raise ValueError("container_timeout must be > 0 or None")
        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError(f"Invalid log_level: {self.log_level}")


def _git(dir: Path, *args: str) -> Optional[str]:
    try:
        proc = subprocess.run(["git", *args], cwd=dir, capture_output=True, text=True)
    except FileNotFoundError:
        return None
    if proc.returncode != 0:
        return None
    return proc.stdout.strip() or None


def normalize_repo_uri(clone_url: str) -> str:
    """Turn a clone URL into a repository URI.

    The scheme, user info, port and '.git' suffix are dropped, as are trailing slashes.

    Examples
    --------
    >>> normalize_repo_uri("https://github.com/user/repo.git")
    'github.com/user/repo'
    >>> normalize_repo_uri("git@github.com:user/repo.git")
    'github.com/user/repo'
    """
    uri = clone_url.strip()
    uri = re.sub(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://", "", uri)
    uri = re.sub(r"^[^@/]+@", "", uri)
    # scp-like syntax: host:path
    uri = re.sub(r"^([^/:]+):(?!\d+/)", r"\1/", uri)
    uri = re.sub(r"^([^/:]+):\d+/", r"\1/", uri)
    uri = uri.rstrip("/")
    if uri.endswith(".git"):
        uri = uri[: -len(".git")]
    return uri


@dataclass(frozen=True)
class JobContext:
    """Identifies one run of the pipeline over a repository at a commit.

    Created once per invocation and read-only afterwards.
    """

    repo_dir: Path
    """Absolute path of the repository checkout."""
    repo_uri: str
    """URI of the repository, e.g. 'github.com/user/repo'."""
    commit_id: str
    """The commit being analyzed."""
    repo_config: RepositoryConfig = field(default_factory=RepositoryConfig)
    """Configuration read from the repository's Srcfile. Its uri always equals repo_uri."""
    config: JobConfig = field(default_factory=JobConfig)
    """Run configuration."""
    executor: Any = None
    """Runs container commands; a DockerExecutor unless overridden."""

    def __post_init__(self):
        object.__setattr__(self, "repo_dir", Path(self.repo_dir).resolve())
        if not self.commit_id:
            raise ValueError("commit_id must not be empty")
        if not self.repo_uri:
            raise ValueError("repo_uri must not be empty")
        if self.repo_config.uri != self.repo_uri:
            object.__setattr__(
                self, "repo_config", self.repo_config.model_copy(update={"uri": self.repo_uri})
            )
        if self.executor is None:
            object.__setattr__(
                self,
                "executor",
                DockerExecutor(
                    docker_bin=self.config.docker_bin, timeout=self.config.container_timeout
                ),
            )

    @classmethod
    def from_dir(
        cls,
        dir: Union[str, Path],
        config: Optional[JobConfig] = None,
        commit_id: Optional[str] = None,
        executor: Any = None,
    ) -> "JobContext":
        """Create the context for the repository checked out at ``dir``.

        The repository URI comes from the Srcfile, then the ``origin`` remote, then the
        directory name. The commit defaults to ``git rev-parse HEAD``.

        Parameters
        ----------
        dir : Union[str, Path]
            The repository checkout.
        config : Optional[JobConfig]
            Run configuration; defaults to ``JobConfig()``.
        commit_id : Optional[str]
            Commit to record results under. Required when ``dir`` is not a git checkout.
        executor : Any
            Container command executor; defaults to a DockerExecutor.

        Returns
        -------
        JobContext
            The new context.

        Raises
        ------
        ValueError
            If no commit id is given and none can be determined.
        """
        repo_dir = Path(dir).resolve()
        repo_config = RepositoryConfig.from_dir(repo_dir)

        uri = repo_config.uri
        if not uri:
            remote = _git(repo_dir, "config", "--get", "remote.origin.url")
            uri = normalize_repo_uri(remote) if remote else repo_dir.name

        if commit_id is None:
            commit_id = _git(repo_dir, "rev-parse", "HEAD")
            if commit_id is None:
                raise ValueError(f"Cannot determine the commit of {repo_dir}; pass commit_id")

        logger.info(f"Job for {uri} at commit {commit_id} in {repo_dir}")
        return cls(
            repo_dir=repo_dir,
            repo_uri=uri,
            commit_id=commit_id,
            repo_config=repo_config,
            config=config or JobConfig(),
            executor=executor,
        )
