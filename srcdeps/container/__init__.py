"""Containerized execution of toolchain commands.

- ImageRecipe / Mount: structured description of the execution environment
- ContainerCommand: one isolated execution with an output transform
- DockerExecutor: builds images and runs commands in ephemeral containers
"""

from .command import (
    ContainerCommand,
    ContainerError,
    ExecutionError,
    ExecutionTimeout,
    TransformError,
)
from .executor import DockerExecutor, ImageBuildError
from .recipe import ImageRecipe, Mount

__all__ = [
    "ContainerCommand",
    "ContainerError",
    "DockerExecutor",
    "ExecutionError",
    "ExecutionTimeout",
    "ImageBuildError",
    "ImageRecipe",
    "Mount",
    "TransformError",
]
