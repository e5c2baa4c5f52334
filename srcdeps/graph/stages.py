"""Actions of the pipeline stages: scan, list, resolve and merge."""

from __future__ import annotations

import fnmatch
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from srcdeps.buildstore import (
    DEPGRAPH_STAGE,
    RAW_DEPS_STAGE,
    RESOLVED_DEPS_STAGE,
    UNITS_STAGE,
    BuildStore,
    StoreKey,
)
from srcdeps.data import (
    RawDependency,
    ResolvedDependency,
    SourceUnit,
    UnitEnvelope,
    dump_json_list,
)
from srcdeps.logging import get_logger
from srcdeps.toolchain import ResolutionError, Resolver, Scanner, ToolchainRegistry

if TYPE_CHECKING:
    from srcdeps.job import JobContext

logger = get_logger("Stages")


def units_key() -> StoreKey:
    return StoreKey(UNITS_STAGE)


def raw_deps_key(unit: SourceUnit) -> StoreKey:
    return StoreKey(RAW_DEPS_STAGE, unit.kind, unit.id)


def resolved_deps_key(unit: SourceUnit) -> StoreKey:
    return StoreKey(RESOLVED_DEPS_STAGE, unit.kind, unit.id)


def depgraph_key() -> StoreKey:
    return StoreKey(DEPGRAPH_STAGE)


def scanner_units_key(scanner_name: str) -> StoreKey:
    return StoreKey(f"{UNITS_STAGE}.{scanner_name}")


def _is_ignored(unit: SourceUnit, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        pattern = pattern.strip("/")
        if fnmatch.fnmatch(unit.dir, pattern) or fnmatch.fnmatch(unit.dir, pattern + "/*"):
            return True
    return False


def scan_with(ctx: "JobContext", name: str, scanner: Scanner, store: BuildStore) -> None:
    """Run one scanner and persist the units it found outside ignored directories."""
    found = scanner.scan(ctx.repo_dir, ctx.repo_config, ctx)
    kept = []
    for unit in found:
        if _is_ignored(unit, ctx.repo_config.scan_ignore):
            logger.debug(f"Ignoring {unit.kind} {unit.name} in {unit.dir!r}")
            continue
        kept.append(unit.to_envelope())
    logger.info(f"Scanner {name} found {len(kept)} unit(s)")
    store.write_models(scanner_units_key(name), kept)


def merge_units(
    registry: ToolchainRegistry, store: BuildStore, scanner_names: Sequence[str]
) -> List[SourceUnit]:
    """Merge the units of the scanners that have an artifact into the repository's unit list.

    When two scanners report the same unit (same kind and identifier) the one of the scanner
    listed first is kept. The merged artifact is rewritten only when it changed.

    Raises
    ------
    ConfigurationError
        If a scanned unit kind has no registered unit type.
    """
    units: Dict[Tuple[str, str], SourceUnit] = {}
    for name in scanner_names:
        key = scanner_units_key(name)
        if not store.exists(key):
            continue
        for envelope in store.read_models(key, UnitEnvelope):
            unit = registry.decode_unit(envelope)
            if (unit.kind, unit.id) in units:
                logger.warning(f"Duplicate unit {unit.kind} {unit.id!r}, keeping the first one")
                continue
            units[(unit.kind, unit.id)] = unit
    merged = [units[key] for key in sorted(units)]
    data = dump_json_list([unit.to_envelope() for unit in merged])
    if not store.exists(units_key()) or store.read(units_key()) != data:
        store.write(units_key(), data)
    return merged


def replay_failure(cause: BaseException) -> None:
    """Action of a rule whose work already failed during compilation."""
    raise cause


def list_dependencies(
    ctx: "JobContext", registry: ToolchainRegistry, store: BuildStore, unit: SourceUnit
) -> None:
    """Run the lister of ``unit`` and persist its raw dependencies."""
    lister = registry.lister_for(unit.kind)
    deps = lister.list(unit, ctx.repo_config, ctx)
    logger.info(f"Listed {len(deps)} dependencies of {unit.kind} {unit.name}")
    store.write_models(raw_deps_key(unit), deps)


def _resolve_one(
    ctx: "JobContext", resolver: Resolver, unit: SourceUnit, dep: RawDependency
) -> ResolvedDependency:
    record = {"from_unit_type": unit.kind, "from_unit_id": unit.id, "raw": dep}
    try:
        target = resolver.resolve(dep, ctx.repo_config, ctx)
    except ResolutionError as e:
        logger.warning(f"{unit.kind} {unit.name}: {e}")
        return ResolvedDependency(error=str(e), **record)
    return ResolvedDependency(target=target, **record)


def resolve_dependencies(
    ctx: "JobContext", registry: ToolchainRegistry, store: BuildStore, unit: SourceUnit
) -> None:
    """Resolve the raw dependencies of ``unit`` and persist all outcomes as one artifact.

    Dependencies are resolved concurrently. A ResolutionError is recorded on the dependency
    it concerns; any other error fails the whole unit. The artifact is written only after
    every resolution has finished.
    """
    deps = store.read_models(raw_deps_key(unit), RawDependency)
    # Fail before resolving anything if a target type has no resolver.
    resolvers = [registry.resolver_for(dep.target_type) for dep in deps]

    results: List[ResolvedDependency] = []
    if deps:
        workers = min(ctx.config.resolve_concurrency, len(deps))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(
                pool.map(lambda rd: _resolve_one(ctx, rd[0], unit, rd[1]), zip(resolvers, deps))
            )

    unresolved = sum(1 for r in results if not r.is_resolved())
    logger.info(
        f"Resolved {len(results) - unresolved}/{len(results)} dependencies of "
        f"{unit.kind} {unit.name}"
    )
    store.write_models(resolved_deps_key(unit), results)


def merge_depgraph(store: BuildStore, units: Sequence[SourceUnit]) -> None:
    """Merge the resolved dependencies of every unit into the repository's dependency graph."""
    edges: List[ResolvedDependency] = []
    for unit in units:
        for record in store.read_models(resolved_deps_key(unit), ResolvedDependency):
            if record.is_resolved():
                edges.append(record)
    store.write_models(depgraph_key(), edges)
