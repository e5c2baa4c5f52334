"""Listers enumerate the raw dependencies declared by a source unit."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, List, Tuple

from srcdeps.container import ContainerCommand
from srcdeps.data import RawDependency, RepositoryConfig, SourceUnit

if TYPE_CHECKING:
    from srcdeps.job import JobContext


class Lister(ABC):
    """Abstract base class of dependency listers.

    Each toolchain registers exactly one Lister per unit kind it scans.
    """

    target_types: ClassVar[Tuple[str, ...]] = ()
    """Target types of the raw dependencies this lister emits. Each must have a resolver."""

    @abstractmethod
    def list(
        self, unit: SourceUnit, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> List[RawDependency]:
        """List the raw dependencies declared by ``unit``.

        Parameters
        ----------
        unit : SourceUnit
            The unit to list dependencies for.
        repo_config : RepositoryConfig
            The repository configuration.
        ctx : JobContext
            The job being run.

        Returns
        -------
        List[RawDependency]
            The unresolved dependencies of the unit.
        """
        ...


class ContainerLister(Lister):
    """A lister whose only access to the unit's declarations is a container command.

    Subclasses build the command; running it and decoding its output into RawDependency
    records is left to the executor and the command's transform.
    """

    @abstractmethod
    def build_lister(
        self, dir: Path, unit: SourceUnit, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[RawDependency]]:
        """Build the container command that lists the dependencies of ``unit``.

        Parameters
        ----------
        dir : Path
            The repository root on the host, to be mounted into the container.
        unit : SourceUnit
            The unit to list dependencies for.
        repo_config : RepositoryConfig
            The repository configuration.
        ctx : JobContext
            The job being run.

        Returns
        -------
        ContainerCommand[List[RawDependency]]
            The command, whose transform yields the raw dependencies.
        """
        ...

    def list(
        self, unit: SourceUnit, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> List[RawDependency]:
        cmd = self.build_lister(ctx.repo_dir, unit, repo_config, ctx)
        return ctx.executor.run(cmd, timeout=ctx.config.container_timeout)
