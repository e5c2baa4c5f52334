from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING, Optional

from srcdeps.data import RepositoryConfig, ResolvedTarget, make_unit_id
from srcdeps.index import IndexEntry, PackageIndex
from srcdeps.toolchain import IndexResolver

from .package import GoPackage, go_config
from .version import GoVersion

if TYPE_CHECKING:
    from srcdeps.job import JobContext


def _package_target(repo_url: str, import_path: str, root: str) -> ResolvedTarget:
    dir = posixpath.relpath(import_path, root) if root else import_path
    unit = GoPackage(name=import_path, dir=dir)
    return ResolvedTarget(
        to_repo_clone_url=repo_url, to_unit_type=GoPackage.kind, to_unit_id=make_unit_id(unit)
    )


class GoResolver(IndexResolver):
    """Resolves Go import paths.

    Import paths under the repository's base import path resolve to packages of the same
    repository. Other import paths are looked up in the package index; standard library packages
    are pinned to the Go version of this resolver.
    """

    def __init__(self, index: PackageIndex, version: GoVersion, coalesce: bool = False) -> None:
        super().__init__(
            index,
            version_string=version.version_string,
            rev_spec=version.vcs_revision,
            coalesce=coalesce,
        )
        self.version = version

    def resolve_local(
        self, reference: str, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> Optional[ResolvedTarget]:
        base = go_config(repo_config).base_import_path
        if not base or not (reference == base or reference.startswith(base + "/")):
            return None
        return _package_target(repo_config.uri, reference, base)

    def target_from_entry(self, reference: str, entry: IndexEntry) -> ResolvedTarget:
        return _package_target(entry.project_url, entry.import_path, entry.project_root)
