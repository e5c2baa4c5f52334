"""Container command specification and the errors raised when running one."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from .recipe import ImageRecipe, Mount

T = TypeVar("T")


class ContainerError(RuntimeError):
    """Base class of errors raised while running a container command."""


class ExecutionError(ContainerError):
    """The containerized process exited with a non-zero status.

    The captured standard output is kept verbatim in ``output`` for diagnostics.
    """

    def __init__(
        self,
        message: str,
        output: bytes = b"",
        stderr: bytes = b"",
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.output = output
        self.stderr = stderr
        self.returncode = returncode

    def __str__(self) -> str:
        msg = super().__str__()
        detail = (self.output or self.stderr).decode("utf-8", errors="replace").strip()
        if detail:
            msg += f"\n{detail}"
        return msg


class ExecutionTimeout(ExecutionError):
    """The containerized process did not finish within the allowed time and was killed."""


class TransformError(ContainerError):
    """The process succeeded but its output could not be decoded by the command's transform."""

    def __init__(self, message: str, output: bytes = b"") -> None:
        super().__init__(message)
        self.output = output


@dataclass
class ContainerCommand(Generic[T]):
    """Declarative description of one isolated execution.

    A ContainerCommand is built per invocation (e.g. by a lister for one unit) and consumed once
    by an executor, which builds the image from ``recipe``, runs ``cmd`` with ``mounts`` and
    passes the captured standard output to ``transform``.
    """

    recipe: ImageRecipe
    """Recipe of the image the command runs in."""
    cmd: List[str]
    """Argument vector of the command."""
    transform: Callable[[bytes], T]
    """Decodes the raw standard output into the typed result."""
    mounts: List[Mount] = field(default_factory=list)
    """Host directories bound into the container."""
    workdir: Optional[str] = None
    """Working directory inside the container."""
    env: Dict[str, str] = field(default_factory=dict)
    """Extra environment variables for the process."""

    def run_options(self) -> List[str]:
        """The ``docker run`` options (excluding the image and argv) for this command."""
        opts: List[str] = []
        for mount in self.mounts:
            opts.extend(mount.as_run_options())
        if self.workdir:
            opts.extend(["-w", self.workdir])
        for key in sorted(self.env):
            opts.extend(["-e", f"{key}={self.env[key]}"])
        return opts
