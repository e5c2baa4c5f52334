"""Toolchain registry mapping unit kinds and target types to their implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, TypeVar

from srcdeps.data import SourceUnit, UnitEnvelope

if TYPE_CHECKING:
    from srcdeps.index import PackageIndex

    from .lister import Lister
    from .resolver import Resolver
    from .scanner import Scanner

V = TypeVar("V")


class ConfigurationError(RuntimeError):
    """Raised when the registry is missing an entry or is registered inconsistently.

    Configuration errors are fatal: they abort a run before any build rule executes.
    """


class ToolchainRegistry:
    """Table of the toolchain implementations available to a pipeline run.

    Each toolchain plugin fills the registry through its ``register(registry)`` function:

    - unit types: SourceUnit subclasses, keyed by ``kind``
    - scanners: keyed by toolchain name
    - listers: exactly one per unit kind
    - resolvers: exactly one per raw dependency target type

    Registration is idempotent per (key, implementation) pair. Registering a different
    implementation under a taken key is a ConfigurationError. Once frozen (the graph compiler
    freezes the registry before compiling) the registry is read-only, so lookups need no locking.
    """

    def __init__(self) -> None:
        self._unit_types: Dict[str, Type[SourceUnit]] = {}
        self._scanners: Dict[str, "Scanner"] = {}
        self._listers: Dict[str, "Lister"] = {}
        self._resolvers: Dict[str, "Resolver"] = {}
        self._frozen = False

    @classmethod
    def with_defaults(
        cls,
        go_index: Optional["PackageIndex"] = None,
        pypi_index: Optional["PackageIndex"] = None,
        coalesce: bool = False,
    ) -> "ToolchainRegistry":
        """Create a registry with all built-in toolchains registered.

        Parameters
        ----------
        go_index : Optional[PackageIndex]
            Package index used by the Go resolver. Defaults to a GoImportIndex.
        pypi_index : Optional[PackageIndex]
            Package index used by the Python resolver. Defaults to a PyPIIndex.
        coalesce : bool
            Whether concurrent resolutions of the same reference share one index lookup.

        Returns
        -------
        ToolchainRegistry
            A new, unfrozen registry.
        """
        from srcdeps.toolchains import golang, python

        registry = cls()
        golang.register(registry, index=go_index, coalesce=coalesce)
        python.register(registry, index=pypi_index, coalesce=coalesce)
        return registry

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the registry read-only."""
        self._frozen = True

    def _register(self, table: Dict[str, V], what: str, key: str, impl: V) -> None:
        if self._frozen:
            raise ConfigurationError(f"Cannot register {what} {key!r}: registry is frozen")
        if not key:
            raise ConfigurationError(f"Cannot register {what} under an empty key")
        existing = table.get(key)
        if existing is None:
            table[key] = impl
        elif existing is not impl and existing != impl:
            raise ConfigurationError(
                f"A different {what} is already registered for {key!r}: {existing!r}"
            )

    def register_unit_type(self, unit_cls: Type[SourceUnit]) -> None:
        self._register(self._unit_types, "unit type", unit_cls.kind, unit_cls)

    def register_scanner(self, name: str, scanner: "Scanner") -> None:
        self._register(self._scanners, "scanner", name, scanner)

    def register_lister(self, unit_kind: str, lister: "Lister") -> None:
        self._register(self._listers, "lister", unit_kind, lister)

    def register_resolver(self, target_type: str, resolver: "Resolver") -> None:
        self._register(self._resolvers, "resolver", target_type, resolver)

    def unit_type(self, kind: str) -> Type[SourceUnit]:
        try:
            return self._unit_types[kind]
        except KeyError:
            raise ConfigurationError(f"No unit type registered for kind {kind!r}") from None

    def lister_for(self, unit_kind: str) -> "Lister":
        try:
            return self._listers[unit_kind]
        except KeyError:
            raise ConfigurationError(f"No lister registered for unit kind {unit_kind!r}") from None

    def resolver_for(self, target_type: str) -> "Resolver":
        try:
            return self._resolvers[target_type]
        except KeyError:
            raise ConfigurationError(
                f"No resolver registered for target type {target_type!r}"
            ) from None

    def scanners(self) -> Dict[str, "Scanner"]:
        return dict(self._scanners)

    def listers(self) -> Dict[str, "Lister"]:
        return dict(self._listers)

    def target_types(self) -> List[str]:
        return sorted(self._resolvers)

    def decode_unit(self, envelope: UnitEnvelope) -> SourceUnit:
        """Rebuild a SourceUnit of the registered class from its kind-tagged form."""
        return self.unit_type(envelope.type).model_validate(envelope.data)

    def validate(self) -> None:
        """Check that every lister's unit kind and declared target types are fully registered.

        Raises
        ------
        ConfigurationError
            If a lister's unit kind has no unit type, or a target type a lister emits has no
            resolver.
        """
        for kind, lister in self._listers.items():
            self.unit_type(kind)
            for target_type in lister.target_types:
                self.resolver_for(target_type)

    def __repr__(self) -> str:
        info: Dict[str, Any] = {
            "units": sorted(self._unit_types),
            "scanners": sorted(self._scanners),
            "listers": sorted(self._listers),
            "resolvers": sorted(self._resolvers),
        }
        return f"ToolchainRegistry({info})"
