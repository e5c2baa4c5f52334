"""Go toolchain: scans Go packages, lists their imports and resolves Go import paths."""

from __future__ import annotations

from typing import Optional

from srcdeps.index import GoImportIndex, PackageIndex
from srcdeps.toolchain import ToolchainRegistry

from .lister import GoLister, parse_import_lists
from .package import GO_IMPORT_PATH_TARGET_TYPE, GoConfig, GoPackage, go_config
from .resolver import GoResolver
from .scanner import GoScanner
from .version import DEFAULT_GO_VERSION, GoVersion

TOOLCHAIN_NAME = "go"


def register(
    registry: ToolchainRegistry,
    version: GoVersion = DEFAULT_GO_VERSION,
    index: Optional[PackageIndex] = None,
    coalesce: bool = False,
) -> GoResolver:
    """Register the Go toolchain in ``registry``.

    Parameters
    ----------
    registry : ToolchainRegistry
        The registry to fill.
    version : GoVersion
        The Go version used by the scanner, lister and resolver.
    index : Optional[PackageIndex]
        The index for remote import paths. Defaults to a GoImportIndex.
    coalesce : bool
        Whether concurrent resolutions of the same import path share one lookup.

    Returns
    -------
    GoResolver
        The registered resolver.
    """
    resolver = GoResolver(index or GoImportIndex(), version, coalesce=coalesce)
    registry.register_unit_type(GoPackage)
    registry.register_scanner(TOOLCHAIN_NAME, GoScanner(version))
    registry.register_lister(GoPackage.kind, GoLister(version))
    registry.register_resolver(GO_IMPORT_PATH_TARGET_TYPE, resolver)
    return resolver


__all__ = [
    "DEFAULT_GO_VERSION",
    "GO_IMPORT_PATH_TARGET_TYPE",
    "GoConfig",
    "GoLister",
    "GoPackage",
    "GoResolver",
    "GoScanner",
    "GoVersion",
    "TOOLCHAIN_NAME",
    "go_config",
    "parse_import_lists",
    "register",
]
