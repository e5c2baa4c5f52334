import os
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from srcdeps.graph import (
    AggregateError,
    BuildGraph,
    BuildRule,
    DependencyFailed,
    Maker,
    RunCancelled,
)
from srcdeps.toolchain import ConfigurationError


class Recorder:
    """Builds rule actions that write their output and record that they ran."""

    def __init__(self) -> None:
        self.ran: List[str] = []
        self._lock = threading.Lock()

    def action(
        self, name: str, out: Path, before: Optional[Callable[[], None]] = None
    ) -> Callable[[], None]:
        def run() -> None:
            if before is not None:
                before()
            out.write_text(name)
            with self._lock:
                self.ran.append(name)

        return run


def _chain(tmp_path: Path, recorder: Recorder) -> BuildGraph:
    src = tmp_path / "src.txt"
    if not src.exists():
        src.write_text("source")
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    return BuildGraph(
        [
            BuildRule(name="a", inputs=[src], outputs=[a], action=recorder.action("a", a)),
            BuildRule(name="b", inputs=[a], outputs=[b], action=recorder.action("b", b)),
        ]
    )


def test_runs_rules_in_dependency_order(tmp_path: Path):
    recorder = Recorder()
    result = Maker(_chain(tmp_path, recorder)).run()

    assert recorder.ran == ["a", "b"]
    assert result.executed == ["a", "b"]
    assert result.skipped == []
    assert result.ok


def test_second_run_executes_nothing(tmp_path: Path):
    Maker(_chain(tmp_path, Recorder())).run()

    recorder = Recorder()
    result = Maker(_chain(tmp_path, recorder)).run()

    assert recorder.ran == []
    assert sorted(result.skipped) == ["a", "b"]
    assert result.executed == []


def test_missing_output_reruns_only_affected_rules(tmp_path: Path):
    Maker(_chain(tmp_path, Recorder())).run()
    (tmp_path / "b.json").unlink()

    recorder = Recorder()
    result = Maker(_chain(tmp_path, recorder)).run()

    assert recorder.ran == ["b"]
    assert result.skipped == ["a"]


def test_independent_rules_run_concurrently(tmp_path: Path):
    barrier = threading.Barrier(2, timeout=5)
    recorder = Recorder()
    rules = [
        BuildRule(
            name=name,
            outputs=[tmp_path / f"{name}.json"],
            action=recorder.action(name, tmp_path / f"{name}.json", before=barrier.wait),
        )
        for name in ("x", "y")
    ]
    result = Maker(BuildGraph(rules), concurrency=2).run()
    assert sorted(result.executed) == ["x", "y"]


def test_failure_is_isolated_and_aggregated(tmp_path: Path):
    recorder = Recorder()
    a, b, c = tmp_path / "a.json", tmp_path / "b.json", tmp_path / "c.json"

    def fail_after_writing():
        a.write_text("partial")
        raise RuntimeError("lister crashed")

    graph = BuildGraph(
        [
            BuildRule(name="a", outputs=[a], action=fail_after_writing),
            BuildRule(name="b", inputs=[a], outputs=[b], action=recorder.action("b", b)),
            BuildRule(name="c", outputs=[c], action=recorder.action("c", c)),
        ]
    )

    with pytest.raises(AggregateError) as exc_info:
        Maker(graph).run()

    failures = {f.rule: f.cause for f in exc_info.value.failures}
    assert set(failures) == {"a", "b"}
    assert isinstance(failures["a"], RuntimeError)
    assert isinstance(failures["b"], DependencyFailed)
    assert "lister crashed" in str(exc_info.value)

    assert recorder.ran == ["c"]
    assert c.exists()
    assert not a.exists()
    assert exc_info.value.result.executed == ["c"]


def test_dependents_of_failed_rule_lose_stale_outputs(tmp_path: Path):
    Maker(_chain(tmp_path, Recorder())).run()
    src, a, b = tmp_path / "src.txt", tmp_path / "a.json", tmp_path / "b.json"
    later = b.stat().st_mtime_ns + 10_000_000_000
    src.write_text("changed")
    os.utime(src, ns=(later, later))

    def broken() -> None:
        raise RuntimeError("cannot build a")

    graph = BuildGraph(
        [
            BuildRule(name="a", inputs=[src], outputs=[a], action=broken),
            BuildRule(name="b", inputs=[a], outputs=[b], action=Recorder().action("b", b)),
        ]
    )
    with pytest.raises(AggregateError) as exc_info:
        Maker(graph).run()

    assert [f.rule for f in exc_info.value.failures] == ["a", "b"]
    assert not a.exists()
    assert not b.exists()


def test_rule_that_does_not_produce_its_output_fails(tmp_path: Path):
    graph = BuildGraph([BuildRule(name="lazy", outputs=[tmp_path / "out"], action=lambda: None)])
    with pytest.raises(AggregateError, match="did not produce"):
        Maker(graph).run()


def test_configuration_error_is_fatal(tmp_path: Path):
    def misconfigured():
        raise ConfigurationError("no resolver for 'x'")

    recorder = Recorder()
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    graph = BuildGraph(
        [
            BuildRule(name="a", outputs=[a], action=misconfigured),
            BuildRule(name="b", inputs=[a], outputs=[b], action=recorder.action("b", b)),
        ]
    )
    with pytest.raises(ConfigurationError, match="no resolver"):
        Maker(graph, concurrency=1).run()
    assert recorder.ran == []


def test_cancelled_run(tmp_path: Path):
    cancel = threading.Event()
    cancel.set()
    recorder = Recorder()

    with pytest.raises(RunCancelled) as exc_info:
        Maker(_chain(tmp_path, recorder), cancel=cancel).run()

    assert recorder.ran == []
    assert sorted(exc_info.value.result.cancelled) == ["a", "b"]


def test_cancel_during_run_lets_running_rules_finish(tmp_path: Path):
    cancel = threading.Event()
    recorder = Recorder()
    src = tmp_path / "src.txt"
    src.write_text("source")
    a, b = tmp_path / "a.json", tmp_path / "b.json"
    graph = BuildGraph(
        [
            BuildRule(
                name="a", inputs=[src], outputs=[a], action=recorder.action("a", a, cancel.set)
            ),
            BuildRule(name="b", inputs=[a], outputs=[b], action=recorder.action("b", b)),
        ]
    )

    with pytest.raises(RunCancelled) as exc_info:
        Maker(graph, cancel=cancel).run()

    assert recorder.ran == ["a"]
    assert exc_info.value.result.executed == ["a"]
    assert exc_info.value.result.cancelled == ["b"]


def test_concurrency_must_be_positive(tmp_path: Path):
    with pytest.raises(ValueError):
        Maker(_chain(tmp_path, Recorder()), concurrency=0)


if __name__ == "__main__":
    pytest.main(sys.argv)
