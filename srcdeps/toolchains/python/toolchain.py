"""Scanner, lister and resolver of the Python toolchain."""

from __future__ import annotations

import json
import posixpath
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Dict, FrozenSet, List, Optional, Tuple

from srcdeps.buildstore import UNITS_STAGE, ArtifactNotFound, BuildStore, StoreKey
from srcdeps.container import ContainerCommand, ImageRecipe, Mount
from srcdeps.data import (
    RawDependency,
    RepositoryConfig,
    ResolvedTarget,
    SourceUnit,
    UnitEnvelope,
    make_unit_id,
)
from srcdeps.index import IndexEntry, PackageIndex, normalize_project_name
from srcdeps.toolchain import ContainerLister, ContainerScanner, IndexResolver

from .package import PYTHON_REQUIREMENT_TARGET_TYPE, PipPackage
from .scripts import LIST_SCRIPT, SCAN_SCRIPT

if TYPE_CHECKING:
    from srcdeps.job import JobContext

CONTAINER_SRC_DIR = "/src"


@dataclass(frozen=True)
class PythonEnv:
    """The Python interpreter image the toolchain runs in."""

    base_image: str = "python:3.12-slim"
    packaging_version: str = "24.1"

    def recipe(self) -> ImageRecipe:
        return ImageRecipe(
            base_image=self.base_image,
            steps=[f"pip install --no-cache-dir packaging=={self.packaging_version}"],
            env={"PYTHONDONTWRITEBYTECODE": "1"},
        )


DEFAULT_PYTHON_ENV = PythonEnv()


def _parse_scan_output(orig: bytes) -> List[SourceUnit]:
    units: List[SourceUnit] = []
    for line in orig.decode("utf-8").splitlines():
        line = line.strip()
        if line:
            units.append(PipPackage.model_validate(json.loads(line)))
    return units


def _parse_requirement_names(orig: bytes) -> List[RawDependency]:
    names = json.loads(orig.decode("utf-8"))
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ValueError("expected a JSON list of distribution names")
    return [RawDependency(target_type=PYTHON_REQUIREMENT_TARGET_TYPE, target=n) for n in names]


@dataclass(frozen=True)
class PipScanner(ContainerScanner):
    """Finds Python projects by their pyproject.toml, setup.cfg or setup.py."""

    env: PythonEnv = DEFAULT_PYTHON_ENV

    def build_scanner(
        self, dir: Path, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[SourceUnit]]:
        return ContainerCommand(
            recipe=self.env.recipe(),
            mounts=[Mount(host_path=str(dir), container_path=CONTAINER_SRC_DIR, read_only=True)],
            cmd=["python", "-c", SCAN_SCRIPT, CONTAINER_SRC_DIR, *repo_config.scan_ignore],
            transform=_parse_scan_output,
        )


@dataclass(frozen=True)
class PipLister(ContainerLister):
    """Lists the requirements a Python project declares."""

    target_types: ClassVar[Tuple[str, ...]] = (PYTHON_REQUIREMENT_TARGET_TYPE,)

    env: PythonEnv = DEFAULT_PYTHON_ENV

    def build_lister(
        self, dir: Path, unit: SourceUnit, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[RawDependency]]:
        return ContainerCommand(
            recipe=self.env.recipe(),
            mounts=[Mount(host_path=str(dir), container_path=CONTAINER_SRC_DIR, read_only=True)],
            cmd=["python", "-c", LIST_SCRIPT, posixpath.join(CONTAINER_SRC_DIR, unit.dir)],
            transform=_parse_requirement_names,
        )


def _pip_target(repo_url: str, name: str) -> ResolvedTarget:
    return ResolvedTarget(
        to_repo_clone_url=repo_url,
        to_unit_type=PipPackage.kind,
        to_unit_id=make_unit_id(PipPackage(name=name)),
    )


class PipResolver(IndexResolver):
    """Resolves distribution names.

    Names of projects scanned in the same repository resolve locally; the scanned units are
    read from the job's build store. Other names are looked up in the package index.
    """

    def __init__(self, index: PackageIndex, coalesce: bool = False) -> None:
        super().__init__(index, coalesce=coalesce)
        self._local_names: Dict[Tuple[Path, int], FrozenSet[str]] = {}
        self._local_lock = threading.Lock()

    def _local_projects(self, ctx: "JobContext") -> FrozenSet[str]:
        store = BuildStore.open(ctx)
        key = StoreKey(UNITS_STAGE)
        try:
            cache_key = (store.root, store.path(key).stat().st_mtime_ns)
        except FileNotFoundError:
            return frozenset()
        with self._local_lock:
            names = self._local_names.get(cache_key)
            if names is not None:
                return names
            try:
                envelopes = store.read_models(key, UnitEnvelope)
            except ArtifactNotFound:
                envelopes = []
            names = frozenset(
                normalize_project_name(e.data.get("name", ""))
                for e in envelopes
                if e.type == PipPackage.kind
            )
            self._local_names[cache_key] = names
            return names

    def resolve_local(
        self, reference: str, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> Optional[ResolvedTarget]:
        if normalize_project_name(reference) not in self._local_projects(ctx):
            return None
        return _pip_target(repo_config.uri, reference)

    def target_from_entry(self, reference: str, entry: IndexEntry) -> ResolvedTarget:
        return _pip_target(entry.project_url, entry.import_path)
