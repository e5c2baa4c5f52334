"""Python toolchain: scans Python projects, lists their requirements and resolves them."""

from __future__ import annotations

from typing import Optional

from srcdeps.index import PackageIndex, PyPIIndex
from srcdeps.toolchain import ToolchainRegistry

from .package import PYTHON_REQUIREMENT_TARGET_TYPE, PipPackage
from .toolchain import DEFAULT_PYTHON_ENV, PipLister, PipResolver, PipScanner, PythonEnv

TOOLCHAIN_NAME = "python"


def register(
    registry: ToolchainRegistry,
    env: PythonEnv = DEFAULT_PYTHON_ENV,
    index: Optional[PackageIndex] = None,
    coalesce: bool = False,
) -> PipResolver:
    """Register the Python toolchain in ``registry`` and return its resolver."""
    resolver = PipResolver(index or PyPIIndex(), coalesce=coalesce)
    registry.register_unit_type(PipPackage)
    registry.register_scanner(TOOLCHAIN_NAME, PipScanner(env))
    registry.register_lister(PipPackage.kind, PipLister(env))
    registry.register_resolver(PYTHON_REQUIREMENT_TARGET_TYPE, resolver)
    return resolver


__all__ = [
    "DEFAULT_PYTHON_ENV",
    "PYTHON_REQUIREMENT_TARGET_TYPE",
    "PipLister",
    "PipPackage",
    "PipResolver",
    "PipScanner",
    "PythonEnv",
    "TOOLCHAIN_NAME",
    "register",
]
