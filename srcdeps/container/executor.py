"""Docker-based executor for container commands."""

from __future__ import annotations

import subprocess
import threading
import uuid
from typing import Dict, List, Optional, Set, TypeVar

from srcdeps.env import get_docker_bin
from srcdeps.logging import get_logger

from .command import (
    ContainerCommand,
    ContainerError,
    ExecutionError,
    ExecutionTimeout,
    TransformError,
)
from .recipe import ImageRecipe

logger = get_logger("DockerExecutor")

T = TypeVar("T")


class ImageBuildError(ContainerError):
    """Building the image of a container command failed."""


class DockerExecutor:
    """Runs ContainerCommands in ephemeral Docker containers.

    Each run starts a fresh ``docker run --rm`` container from the image described by the
    command's recipe. Built images are tracked by tag so each recipe is built at most once per
    executor; since tags are digests of the recipe, an image left over from an earlier process is
    reused as well. The image cache only saves time: removing images never changes results.

    No retries happen here. Failures propagate to the caller as ExecutionError,
    ExecutionTimeout, TransformError or ImageBuildError.
    """

    def __init__(self, docker_bin: Optional[str] = None, timeout: Optional[float] = None) -> None:
        """Initialize the executor.

        Parameters
        ----------
        docker_bin : Optional[str]
            The docker client executable. Defaults to ``SRCDEPS_DOCKER`` or ``docker``.
        timeout : Optional[float]
            Default timeout in seconds applied to every run. None means no timeout.
        """
        self._docker_bin = docker_bin or get_docker_bin()
        self._timeout = timeout
        self._built: Set[str] = set()
        self._build_lock = threading.Lock()
        self._tag_locks: Dict[str, threading.Lock] = {}

    def ensure_image(self, recipe: ImageRecipe, timeout: Optional[float] = None) -> str:
        """Build the image for ``recipe`` unless it is already available.

        Concurrent calls for the same recipe wait for a single build; builds of different
        recipes don't wait for each other.

        Parameters
        ----------
        recipe : ImageRecipe
            The image recipe.
        timeout : Optional[float]
            Timeout in seconds of ``docker build``. None means no timeout.

        Returns
        -------
        str
            The tag of the image.

        Raises
        ------
        ImageBuildError
            If ``docker build`` fails or does not finish within ``timeout``.
        """
        tag = recipe.tag()
        with self._build_lock:
            if tag in self._built:
                return tag
            tag_lock = self._tag_locks.setdefault(tag, threading.Lock())

        with tag_lock:
            with self._build_lock:
                if tag in self._built:
                    return tag
            if not self._image_exists(tag, timeout):
                self._build(recipe, tag, timeout)
            else:
                logger.debug(f"Reusing image {tag}")
            with self._build_lock:
                self._built.add(tag)
            return tag

    def _build(self, recipe: ImageRecipe, tag: str, timeout: Optional[float]) -> None:
        logger.info(f"Building image {tag} from {recipe.base_image}")
        try:
            proc = subprocess.run(
                [self._docker_bin, "build", "-t", tag, "-"],
                input=recipe.dockerfile().encode("utf-8"),
                capture_output=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ImageBuildError(f"docker build of {tag} timed out after {timeout} seconds") from e
        if proc.returncode != 0:
            raise ImageBuildError(
                f"docker build of {tag} failed with exit status {proc.returncode}:\n"
                + proc.stderr.decode("utf-8", errors="replace")
            )

    def _image_exists(self, tag: str, timeout: Optional[float] = None) -> bool:
        try:
            proc = subprocess.run(
                [self._docker_bin, "image", "inspect", tag],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ImageBuildError(f"docker image inspect {tag} timed out") from e
        return proc.returncode == 0

    def run_argv(self, command: ContainerCommand, image: str, name: str) -> List[str]:
        """The full ``docker run`` argument vector for ``command``."""
        return [
            self._docker_bin,
            "run",
            "--rm",
            "--name",
            name,
            *command.run_options(),
            image,
            *command.cmd,
        ]

    def run(self, command: ContainerCommand[T], timeout: Optional[float] = None) -> T:
        """Run ``command`` in a fresh container and transform its output.

        Parameters
        ----------
        command : ContainerCommand
            The command to run.
        timeout : Optional[float]
            Timeout in seconds; overrides the executor's default timeout.

        Returns
        -------
        T
            The result of ``command.transform`` applied to the captured standard output.

        Raises
        ------
        ExecutionError
            If the process exits with a non-zero status.
        ExecutionTimeout
            If the process does not finish within the timeout. The container is removed.
        TransformError
            If the process succeeds but ``command.transform`` raises.
        ImageBuildError
            If the image cannot be built. The build is bounded by the same timeout.
        """
        if timeout is None:
            timeout = self._timeout
        image = self.ensure_image(command.recipe, timeout)
        name = f"srcdeps-{uuid.uuid4().hex[:12]}"
        argv = self.run_argv(command, image, name)
        logger.debug(f"Running: {' '.join(argv)}")

        try:
            proc = subprocess.run(argv, capture_output=True, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            self._kill(name)
            raise ExecutionTimeout(
                f"Command {command.cmd!r} timed out after {timeout} seconds",
                output=e.stdout or b"",
                stderr=e.stderr or b"",
            ) from e

        if proc.returncode != 0:
            raise ExecutionError(
                f"Command {command.cmd!r} exited with status {proc.returncode}",
                output=proc.stdout,
                stderr=proc.stderr,
                returncode=proc.returncode,
            )

        try:
            return command.transform(proc.stdout)
        except Exception as e:
            raise TransformError(
                f"Failed to decode output of {command.cmd!r}: {e}", output=proc.stdout
            ) from e

    def _kill(self, name: str) -> None:
        try:
            proc = subprocess.run(
                [self._docker_bin, "rm", "-f", name], capture_output=True, timeout=60
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Timed out removing container {name}")
            return
        if proc.returncode != 0:
            logger.warning(
                f"Failed to remove timed out container {name}: "
                + proc.stderr.decode("utf-8", errors="replace").strip()
            )
