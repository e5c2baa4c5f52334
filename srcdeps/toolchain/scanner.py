"""Scanners discover the source units of a repository."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, List

from srcdeps.container import ContainerCommand
from srcdeps.data import RepositoryConfig, SourceUnit

if TYPE_CHECKING:
    from srcdeps.job import JobContext


class Scanner(ABC):
    """Abstract base class of per-toolchain source unit scanners."""

    @abstractmethod
    def scan(self, dir: Path, repo_config: RepositoryConfig, ctx: "JobContext") -> List[SourceUnit]:
        """Find the source units in the repository checked out at ``dir``.

        Parameters
        ----------
        dir : Path
            The repository root on the host.
        repo_config : RepositoryConfig
            The repository configuration.
        ctx : JobContext
            The job being run.

        Returns
        -------
        List[SourceUnit]
            The units found. Unit paths are relative to ``dir``.
        """
        ...


class ContainerScanner(Scanner):
    """A scanner that inspects the repository inside a container."""

    @abstractmethod
    def build_scanner(
        self, dir: Path, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[SourceUnit]]:
        """Build the container command whose transformed output is the list of units."""
        ...

    def scan(self, dir: Path, repo_config: RepositoryConfig, ctx: "JobContext") -> List[SourceUnit]:
        cmd = self.build_scanner(dir, repo_config, ctx)
        return ctx.executor.run(cmd, timeout=ctx.config.container_timeout)
