import argparse
import sys
from typing import List, Optional

from srcdeps.buildstore import ArtifactNotFound, BuildStore
from srcdeps.data import ResolvedDependency
from srcdeps.graph import AggregateError, GraphCompiler, RunCancelled, stages
from srcdeps.job import JobConfig, JobContext
from srcdeps.logging import configure_logging, get_logger
from srcdeps.toolchain import ConfigurationError, ToolchainRegistry

logger = get_logger("CLI")


def make(args: argparse.Namespace) -> int:
    """Compile and run the dependency graph pipeline of a repository."""
    try:
        config = JobConfig(
            concurrency=args.concurrency,
            container_timeout=args.timeout,
            coalesce_resolutions=args.coalesce,
            log_level=args.log_level,
        )
        ctx = JobContext.from_dir(args.dir, config=config, commit_id=args.commit)
        registry = ToolchainRegistry.with_defaults(coalesce=config.coalesce_resolutions)
        compiler = GraphCompiler(registry)
        graph = compiler.compile(ctx)
        result = compiler.run(graph)
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except AggregateError as e:
        print(str(e), file=sys.stderr)
        print(f"Partial results are in {BuildStore.open(ctx).root}", file=sys.stderr)
        return 1
    except RunCancelled as e:
        print(str(e), file=sys.stderr)
        return 1

    print(
        f"{len(result.executed)} rule(s) run, {len(result.skipped)} up to date. "
        f"Results in {BuildStore.open(ctx).root}"
    )
    return 0


def show(args: argparse.Namespace) -> int:
    """Print the persisted dependency graph of a repository."""
    ctx = JobContext.from_dir(args.dir, commit_id=args.commit)
    store = BuildStore.open(ctx)
    try:
        edges = store.read_models(stages.depgraph_key(), ResolvedDependency)
    except ArtifactNotFound:
        print(f"No dependency graph in {store.root}; run 'srcdeps make' first.", file=sys.stderr)
        return 1
    for edge in edges:
        target = edge.target
        version = f" @ {target.to_rev_spec}" if target.to_rev_spec else ""
        print(
            f"{edge.from_unit_type} {edge.from_unit_id or '.'} -> "
            f"{target.to_repo_clone_url} {target.to_unit_type} {target.to_unit_id or '.'}{version}"
        )
    return 0


def cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="srcdeps", description="Cross-repository dependency graphs of source trees"
    )
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    make_parser = subparsers.add_parser("make", help="Scan, list, resolve and persist")
    make_parser.add_argument("dir", nargs="?", default=".", help="Repository directory")
    make_parser.add_argument("--commit", default=None, help="Commit id (default: git HEAD)")
    make_parser.add_argument("--concurrency", type=int, default=4)
    make_parser.add_argument(
        "--timeout", type=float, default=600.0, help="Container command timeout in seconds"
    )
    make_parser.add_argument(
        "--coalesce",
        action="store_true",
        help="Share one index lookup between concurrent resolutions of the same reference",
    )
    make_parser.set_defaults(func=make)

    show_parser = subparsers.add_parser("show", help="Print the persisted dependency graph")
    show_parser.add_argument("dir", nargs="?", default=".", help="Repository directory")
    show_parser.add_argument("--commit", default=None, help="Commit id (default: git HEAD)")
    show_parser.set_defaults(func=show)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


def main():
    sys.exit(cli())


if __name__ == "__main__":
    main()
