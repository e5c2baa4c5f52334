from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, List, Tuple

from srcdeps.container import ContainerCommand, Mount
from srcdeps.data import RawDependency, RepositoryConfig, SourceUnit
from srcdeps.toolchain import ContainerLister

from .package import GO_IMPORT_PATH_TARGET_TYPE, go_config
from .version import GoVersion

if TYPE_CHECKING:
    from srcdeps.job import JobContext


_JSON_LIST_TEMPLATE = '[{{range $i, $p := .FIELD}}{{if $i}},{{end}}{{printf "%q" $p}}{{end}}]'


def _json_list_template(field: str) -> str:
    return _JSON_LIST_TEMPLATE.replace("FIELD", field)


_IMPORTS_TEMPLATE = _json_list_template("Imports")
_ALL_IMPORTS_TEMPLATE = "\n".join(
    _json_list_template(field) for field in ("Imports", "TestImports", "XTestImports")
)

# Pseudo-package used by cgo; it has no source to resolve.
_IGNORED_IMPORTS = frozenset(["C"])


def parse_import_lists(orig: bytes) -> List[RawDependency]:
    """Decode the output of the lister command into raw dependencies.

    The output holds one JSON array of import paths per line. Duplicates across lines are
    dropped, keeping the first occurrence.
    """
    seen = set()
    deps: List[RawDependency] = []
    for line in orig.decode("utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        import_paths = json.loads(line)
        if not isinstance(import_paths, list):
            raise ValueError(f"expected a JSON list of import paths, got {line!r}")
        for import_path in import_paths:
            if not isinstance(import_path, str):
                raise ValueError(f"import path must be a string, got {import_path!r}")
            if import_path in _IGNORED_IMPORTS or import_path in seen:
                continue
            seen.add(import_path)
            deps.append(RawDependency(target_type=GO_IMPORT_PATH_TARGET_TYPE, target=import_path))
    return deps


@dataclass(frozen=True)
class GoLister(ContainerLister):
    """Lists the imports of a Go package with ``go list``."""

    target_types: ClassVar[Tuple[str, ...]] = (GO_IMPORT_PATH_TARGET_TYPE,)

    version: GoVersion

    def build_lister(
        self, dir: Path, unit: SourceUnit, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[RawDependency]]:
        config = go_config(repo_config)
        container_dir = self.version.container_dir(config.base_import_path)
        template = _ALL_IMPORTS_TEMPLATE if config.include_test_imports else _IMPORTS_TEMPLATE

        return ContainerCommand(
            recipe=self.version.recipe(),
            mounts=[Mount(host_path=str(dir), container_path=container_dir, read_only=True)],
            workdir=container_dir,
            cmd=["go", "list", "-e", "-f", template, unit.name],
            transform=parse_import_lists,
        )
