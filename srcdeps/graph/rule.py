"""Build rules and the dependency graph they form."""

from __future__ import annotations

import graphlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Set

if TYPE_CHECKING:
    from srcdeps.job import JobContext


@dataclass
class BuildRule:
    """A named graph node producing ``outputs`` from ``inputs`` by running ``action``."""

    name: str
    """Unique name of the rule, e.g. 'list:GoPackage:internal'."""
    outputs: List[Path]
    """Files the action writes. A rule must have at least one output."""
    action: Callable[[], None]
    """Produces the outputs. Raises on failure."""
    inputs: List[Path] = field(default_factory=list)
    """Files the outputs are computed from: sources or other rules' outputs."""

    def __post_init__(self):
        if not self.name:
            raise ValueError("BuildRule name must not be empty")
        if not self.outputs:
            raise ValueError(f"BuildRule {self.name!r} must have at least one output")

    def missing_outputs(self) -> List[Path]:
        return [p for p in self.outputs if not p.is_file()]

    def is_stale(self) -> bool:
        """Whether the action must run.

        A rule is up to date when every output exists and the oldest output is not older than
        the newest existing input. Inputs that don't exist are ignored.
        """
        if self.missing_outputs():
            return True
        input_mtimes = [p.stat().st_mtime_ns for p in self.inputs if p.exists()]
        if not input_mtimes:
            return False
        oldest_output = min(p.stat().st_mtime_ns for p in self.outputs)
        return max(input_mtimes) > oldest_output


class BuildGraph:
    """A directed acyclic graph of build rules.

    Rule A depends on rule B when one of A's inputs is one of B's outputs. Each output may be
    produced by only one rule, and the graph must be acyclic.
    """

    def __init__(self, rules: Iterable[BuildRule], ctx: Optional["JobContext"] = None) -> None:
        """Build the graph.

        Parameters
        ----------
        rules : Iterable[BuildRule]
            The rules. Their order is kept as the scheduling order among ready rules.
        ctx : Optional[JobContext]
            The job the graph was compiled for.

        Raises
        ------
        ValueError
            If rule names or outputs are duplicated, or the rules form a cycle.
        """
        self.ctx = ctx
        self._rules: Dict[str, BuildRule] = {}
        self._producers: Dict[Path, str] = {}
        for rule in rules:
            if rule.name in self._rules:
                raise ValueError(f"Duplicate rule name: {rule.name}")
            self._rules[rule.name] = rule
            for out in rule.outputs:
                if out in self._producers:
                    raise ValueError(
                        f"Output {out} is produced by both {self._producers[out]!r} and "
                        f"{rule.name!r}"
                    )
                self._producers[out] = rule.name

        self._deps: Dict[str, Set[str]] = {name: set() for name in self._rules}
        self._dependents: Dict[str, Set[str]] = {name: set() for name in self._rules}
        for rule in self._rules.values():
            for inp in rule.inputs:
                producer = self._producers.get(inp)
                if producer is not None and producer != rule.name:
                    self._deps[rule.name].add(producer)
                    self._dependents[producer].add(rule.name)

        try:
            self._order = list(graphlib.TopologicalSorter(self._deps).static_order())
        except graphlib.CycleError as e:
            raise ValueError(f"Build rules form a cycle: {e.args[1]}") from e

    @property
    def rules(self) -> List[BuildRule]:
        return list(self._rules.values())

    def rule(self, name: str) -> BuildRule:
        return self._rules[name]

    def dependencies(self, name: str) -> Set[str]:
        """Names of the rules producing inputs of rule ``name``."""
        return set(self._deps[name])

    def dependents(self, name: str) -> Set[str]:
        """Names of the rules consuming outputs of rule ``name``."""
        return set(self._dependents[name])

    def producer(self, path: Path) -> Optional[str]:
        return self._producers.get(path)

    def topological_order(self) -> List[str]:
        return list(self._order)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: str) -> bool:
        return name in self._rules
