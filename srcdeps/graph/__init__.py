"""Build graph compilation and incremental execution.

The typical workflow is:
1. Build a registry: registry = ToolchainRegistry.with_defaults()
2. Compile the job: graph = GraphCompiler(registry).compile(ctx)
3. Run it: GraphCompiler(registry).run(graph)
"""

from .compiler import GraphCompiler
from .maker import AggregateError, DependencyFailed, Maker, RuleFailure, RunCancelled, RunResult
from .rule import BuildGraph, BuildRule

__all__ = [
    "AggregateError",
    "BuildGraph",
    "BuildRule",
    "DependencyFailed",
    "GraphCompiler",
    "Maker",
    "RuleFailure",
    "RunCancelled",
    "RunResult",
]
