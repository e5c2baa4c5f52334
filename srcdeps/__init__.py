from srcdeps.buildstore import ArtifactNotFound, BuildStore, StoreKey
from srcdeps.container import (
    ContainerCommand,
    DockerExecutor,
    ExecutionError,
    ExecutionTimeout,
    ImageRecipe,
    Mount,
    TransformError,
)
from srcdeps.data import (
    RawDependency,
    RepositoryConfig,
    ResolvedDependency,
    ResolvedTarget,
    SourceUnit,
    make_unit_id,
)
from srcdeps.graph import AggregateError, BuildGraph, BuildRule, GraphCompiler, RunResult
from srcdeps.job import JobConfig, JobContext
from srcdeps.logging import configure_logging, get_logger
from srcdeps.toolchain import (
    ConfigurationError,
    Lister,
    ResolutionError,
    Resolver,
    Scanner,
    ToolchainRegistry,
)

__all__ = [
    # Pipeline
    "GraphCompiler",
    "BuildGraph",
    "BuildRule",
    "RunResult",
    "JobConfig",
    "JobContext",
    # Toolchain SPI
    "ToolchainRegistry",
    "Scanner",
    "Lister",
    "Resolver",
    # Data types
    "SourceUnit",
    "RawDependency",
    "ResolvedTarget",
    "ResolvedDependency",
    "RepositoryConfig",
    "make_unit_id",
    # Containers
    "ContainerCommand",
    "DockerExecutor",
    "ImageRecipe",
    "Mount",
    # Build store
    "BuildStore",
    "StoreKey",
    "ArtifactNotFound",
    # Errors
    "AggregateError",
    "ConfigurationError",
    "ExecutionError",
    "ExecutionTimeout",
    "ResolutionError",
    "TransformError",
    "configure_logging",
    "get_logger",
]
