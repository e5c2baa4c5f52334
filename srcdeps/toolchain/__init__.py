"""Toolchain plugin framework.

- ToolchainRegistry: explicit table of unit types, scanners, listers and resolvers
- Scanner / ContainerScanner: discover source units
- Lister / ContainerLister: enumerate raw dependencies of a unit inside a container
- Resolver / IndexResolver: resolve raw dependencies, memoized by ResolveCache
"""

from .lister import ContainerLister, Lister
from .registry import ConfigurationError, ToolchainRegistry
from .resolver import IndexResolver, ResolutionError, ResolveCache, Resolver, cache_key
from .scanner import ContainerScanner, Scanner

__all__ = [
    "ConfigurationError",
    "ContainerLister",
    "ContainerScanner",
    "IndexResolver",
    "Lister",
    "ResolutionError",
    "ResolveCache",
    "Resolver",
    "Scanner",
    "ToolchainRegistry",
    "cache_key",
]
