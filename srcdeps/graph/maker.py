"""Incremental, parallel execution of a build graph."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Set

from srcdeps.logging import get_logger
from srcdeps.toolchain import ConfigurationError

from .rule import BuildGraph, BuildRule

logger = get_logger("Maker")


class DependencyFailed(RuntimeError):
    """A rule was not run because a rule producing one of its inputs failed."""


@dataclass
class RuleFailure:
    """A failed rule and the exception that made it fail."""

    rule: str
    cause: BaseException

    def __str__(self) -> str:
        return f"{self.rule}: {type(self.cause).__name__}: {self.cause}"


@dataclass
class RunResult:
    """Outcome of running a build graph."""

    executed: List[str] = field(default_factory=list)
    """Rules whose action ran and succeeded."""
    skipped: List[str] = field(default_factory=list)
    """Rules whose outputs were up to date."""
    failed: List[RuleFailure] = field(default_factory=list)
    """Rules that failed, including the dependents of failed rules."""
    cancelled: List[str] = field(default_factory=list)
    """Rules never scheduled because the run was cancelled."""

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled


class AggregateError(RuntimeError):
    """Raised by a run in which at least one rule failed. Lists every failed rule."""

    def __init__(self, failures: List[RuleFailure], result: Optional[RunResult] = None) -> None:
        self.failures = list(failures)
        self.result = result
        lines = [f"{len(self.failures)} rule(s) failed:"]
        lines.extend(f"  {failure}" for failure in self.failures)
        super().__init__("\n".join(lines))


class RunCancelled(RuntimeError):
    """Raised by a run that was cancelled before all rules were scheduled."""

    def __init__(self, result: RunResult) -> None:
        super().__init__(f"Run cancelled; {len(result.cancelled)} rule(s) not run")
        self.result = result


class Maker:
    """Runs the stale rules of a build graph on a bounded thread pool.

    - A rule is scheduled once every rule producing one of its inputs has completed.
    - A rule whose outputs are up to date is skipped.
    - Independent rules run concurrently, at most ``concurrency`` at a time.
    - A failed rule has its outputs removed; its dependents fail with DependencyFailed and lose
      their outputs too, while unrelated rules still run.
    - A ConfigurationError raised by an action stops scheduling and is re-raised once the
      running actions finish.
    - Setting ``cancel`` stops scheduling; running actions are allowed to finish.
    """

    def __init__(
        self,
        graph: BuildGraph,
        concurrency: int = 4,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        self._graph = graph
        self._concurrency = concurrency
        self._cancel = cancel or threading.Event()

    def run(self) -> RunResult:
        """Run the graph.

        Returns
        -------
        RunResult
            The executed and skipped rules, when no rule failed.

        Raises
        ------
        AggregateError
            If any rule failed. Outputs of successful rules are kept.
        RunCancelled
            If the run was cancelled before every rule was scheduled.
        ConfigurationError
            If an action raised a ConfigurationError.
        """
        graph = self._graph
        result = RunResult()
        pending: Dict[str, Set[str]] = {
            rule.name: graph.dependencies(rule.name) for rule in graph.rules
        }
        ready: Deque[str] = deque(name for name, deps in pending.items() if not deps)
        done: Set[str] = set()
        failed: Set[str] = set()
        running: Dict[Future, str] = {}
        fatal: Optional[ConfigurationError] = None

        def complete(name: str) -> None:
            done.add(name)
            for dependent in sorted(graph.dependents(name)):
                pending[dependent].discard(name)
                if not pending[dependent] and dependent not in failed:
                    ready.append(dependent)

        def fail(name: str, cause: BaseException) -> None:
            failed.add(name)
            done.add(name)
            result.failed.append(RuleFailure(name, cause))
            self._remove_outputs(graph.rule(name))
            queue = deque([name])
            while queue:
                for dependent in sorted(graph.dependents(queue.popleft())):
                    if dependent in failed:
                        continue
                    failed.add(dependent)
                    done.add(dependent)
                    result.failed.append(
                        RuleFailure(dependent, DependencyFailed(f"dependency {name} failed"))
                    )
                    self._remove_outputs(graph.rule(dependent))
                    queue.append(dependent)

        with ThreadPoolExecutor(max_workers=self._concurrency) as pool:
            while ready or running:
                while ready and fatal is None and not self._cancel.is_set():
                    name = ready.popleft()
                    rule = graph.rule(name)
                    if not rule.is_stale():
                        logger.info(f"Skipping {name} (up to date)")
                        result.skipped.append(name)
                        complete(name)
                        continue
                    running[pool.submit(self._run_rule, rule)] = name

                if not running:
                    break

                finished, _ = wait(running, return_when=FIRST_COMPLETED)
                for fut in finished:
                    name = running.pop(fut)
                    exc = fut.exception()
                    if exc is None:
                        result.executed.append(name)
                        complete(name)
                        continue
                    logger.error(f"Rule {name} failed: {exc}")
                    if isinstance(exc, ConfigurationError) and fatal is None:
                        fatal = exc
                    fail(name, exc)

        if fatal is not None:
            raise fatal

        result.cancelled = [r.name for r in graph.rules if r.name not in done]
        if result.failed:
            raise AggregateError(result.failed, result)
        if result.cancelled:
            raise RunCancelled(result)
        return result

    @staticmethod
    def _run_rule(rule: BuildRule) -> None:
        logger.info(f"Running {rule.name}")
        rule.action()
        missing = rule.missing_outputs()
        if missing:
            raise RuntimeError(f"Rule {rule.name} did not produce {', '.join(map(str, missing))}")
        logger.debug(f"Finished {rule.name}")

    @staticmethod
    def _remove_outputs(rule: BuildRule) -> None:
        for out in rule.outputs:
            out.unlink(missing_ok=True)
