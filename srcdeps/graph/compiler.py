"""Compiles a job into the build graph of the scan, list, resolve and merge stages."""

from __future__ import annotations

import dataclasses
import functools
import threading
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from srcdeps.buildstore import BuildStore
from srcdeps.data import SRCFILE_NAME, SourceUnit
from srcdeps.logging import get_logger
from srcdeps.toolchain import ConfigurationError, ToolchainRegistry

from . import stages
from .maker import Maker, RunResult
from .rule import BuildGraph, BuildRule

if TYPE_CHECKING:
    from srcdeps.job import JobContext

logger = get_logger("GraphCompiler")


def _unit_label(unit: SourceUnit) -> str:
    return f"{unit.kind}:{unit.id or '.'}"


class GraphCompiler:
    """Expands the fixed pipeline into build rules over the build store.

    The generated graph contains:

    - ``scan:<scanner>`` per scanner; output: the units it found. Run during compilation when
      stale, because the remaining rules depend on which units exist. A scanner that fails
      there only fails its own rule: the graph is built from the other scanners' units.
    - ``list:<kind>:<id>`` per unit; inputs: the unit's files; output: its raw dependencies.
    - ``resolve:<kind>:<id>`` per unit; input: the raw dependencies; output: the resolution
      outcomes.
    - ``depgraph``; inputs: every scanner's units and every unit's resolution outcomes; output:
      the merged graph.

    The repository's Srcfile, when present, is an input of the scan, list and resolve rules.
    """

    def __init__(self, registry: ToolchainRegistry) -> None:
        self.registry = registry

    def compile(self, ctx: "JobContext") -> BuildGraph:
        """Compile the build graph of ``ctx``.

        Parameters
        ----------
        ctx : JobContext
            The job to compile.

        Returns
        -------
        BuildGraph
            The graph, ready to be run.

        Raises
        ------
        ConfigurationError
            If the registry lacks a lister for a scanned unit kind, or a resolver for a target
            type a lister emits, or a scanner raised one. Nothing is listed or resolved in
            that case.
        """
        self.registry.freeze()
        self.registry.validate()

        store = BuildStore.open(ctx)
        srcfile = ctx.repo_dir / SRCFILE_NAME
        config_inputs: List[Path] = [srcfile] if srcfile.is_file() else []

        scan_rules: List[BuildRule] = []
        scanner_names: List[str] = []
        for name, scanner in sorted(self.registry.scanners().items()):
            scan_rule = BuildRule(
                name=f"scan:{name}",
                inputs=list(config_inputs),
                outputs=[store.path(stages.scanner_units_key(name))],
                action=functools.partial(stages.scan_with, ctx, name, scanner, store),
            )
            if scan_rule.is_stale():
                scan_rule = self._scan(scan_rule)
            scan_rules.append(scan_rule)
            scanner_names.append(name)

        units = stages.merge_units(self.registry, store, scanner_names)
        for unit in units:
            self.registry.lister_for(unit.kind)

        rules: List[BuildRule] = list(scan_rules)
        resolved_paths: List[Path] = []
        for unit in units:
            raw_path = store.path(stages.raw_deps_key(unit))
            resolved_path = store.path(stages.resolved_deps_key(unit))
            rules.append(
                BuildRule(
                    name=f"list:{_unit_label(unit)}",
                    inputs=[ctx.repo_dir / f for f in unit.files] + config_inputs,
                    outputs=[raw_path],
                    action=functools.partial(
                        stages.list_dependencies, ctx, self.registry, store, unit
                    ),
                )
            )
            rules.append(
                BuildRule(
                    name=f"resolve:{_unit_label(unit)}",
                    inputs=[raw_path] + config_inputs,
                    outputs=[resolved_path],
                    action=functools.partial(
                        stages.resolve_dependencies, ctx, self.registry, store, unit
                    ),
                )
            )
            resolved_paths.append(resolved_path)

        rules.append(
            BuildRule(
                name="depgraph",
                inputs=[p for r in scan_rules for p in r.outputs] + resolved_paths,
                outputs=[store.path(stages.depgraph_key())],
                action=functools.partial(stages.merge_depgraph, store, units),
            )
        )
        logger.info(f"Compiled {len(rules)} rules for {len(units)} unit(s)")
        return BuildGraph(rules, ctx=ctx)

    @staticmethod
    def _scan(rule: BuildRule) -> BuildRule:
        """Run a stale scan rule now; a failed scan becomes a rule that fails when run."""
        logger.info(f"Running {rule.name}")
        try:
            rule.action()
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Rule {rule.name} failed: {e}")
            for out in rule.outputs:
                out.unlink(missing_ok=True)
            return dataclasses.replace(rule, action=functools.partial(stages.replay_failure, e))
        return rule

    def run(self, graph: BuildGraph, cancel: Optional[threading.Event] = None) -> RunResult:
        """Run ``graph`` with the concurrency of its job. See :class:`Maker`."""
        concurrency = graph.ctx.config.concurrency if graph.ctx is not None else 4
        return Maker(graph, concurrency=concurrency, cancel=cancel).run()
