from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List

from srcdeps.container import ContainerCommand, Mount
from srcdeps.data import RepositoryConfig, SourceUnit
from srcdeps.toolchain import ContainerScanner

from .package import GoPackage, go_config
from .version import GoVersion

if TYPE_CHECKING:
    from srcdeps.job import JobContext

# One JSON object per package; %q quoting of Go strings is valid JSON for import paths and
# file names.
_SCAN_TEMPLATE = (
    '{"ImportPath":{{printf "%q" .ImportPath}},"Dir":{{printf "%q" .Dir}},'
    '"GoFiles":[{{range $i, $f := .GoFiles}}{{if $i}},{{end}}{{printf "%q" $f}}{{end}}],'
    '"TestGoFiles":[{{range $i, $f := .TestGoFiles}}{{if $i}},{{end}}{{printf "%q" $f}}{{end}}]}'
)


@dataclass(frozen=True)
class GoScanner(ContainerScanner):
    """Finds the Go packages of a repository with ``go list ./...``."""

    version: GoVersion

    def build_scanner(
        self, dir: Path, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ContainerCommand[List[SourceUnit]]:
        container_dir = self.version.container_dir(go_config(repo_config).base_import_path)

        def transform(orig: bytes) -> List[SourceUnit]:
            units: List[SourceUnit] = []
            for line in orig.decode("utf-8").splitlines():
                line = line.strip()
                if not line:
                    continue
                pkg = json.loads(line)
                rel_dir = posixpath.relpath(pkg["Dir"], container_dir)
                if rel_dir == ".":
                    rel_dir = ""
                if rel_dir.startswith(".."):
                    # Packages outside the repository (e.g. vendored GOPATH entries).
                    continue
                files = [
                    posixpath.join(rel_dir, f)
                    for f in pkg.get("GoFiles", []) + pkg.get("TestGoFiles", [])
                ]
                units.append(GoPackage(name=pkg["ImportPath"], dir=rel_dir, files=sorted(files)))
            return units

        return ContainerCommand(
            recipe=self.version.recipe(),
            mounts=[Mount(host_path=str(dir), container_path=container_dir, read_only=True)],
            workdir=container_dir,
            cmd=["go", "list", "-e", "-f", _SCAN_TEMPLATE, "./..."],
            transform=transform,
        )
