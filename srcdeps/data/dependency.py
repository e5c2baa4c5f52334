"""Strong-typed data definitions for raw and resolved dependencies."""

from typing import Any, Optional

from pydantic import Field, model_validator

from .utils import BaseModelWithDocstrings, FrozenModel, NonEmptyString


class RawDependency(FrozenModel):
    """An unresolved reference extracted from a unit's declarations by a lister."""

    target_type: NonEmptyString
    """Tag identifying the resolver that understands ``target`` (e.g. 'go-import-path')."""
    target: Any
    """Toolchain-specific, JSON-serializable payload, e.g. an import path string."""


class ResolvedTarget(FrozenModel):
    """The fully resolved destination of a RawDependency.

    ``to_version_string`` and ``to_rev_spec`` are only set when the target belongs to an
    immutable standard distribution (e.g. a language's standard library), pinning the
    reference to the toolchain version that resolved it.
    """

    to_repo_clone_url: str
    """Clone URL (or URI for same-repository targets) of the repository owning the target."""
    to_unit_type: str = Field(default="")
    """Kind of the target unit."""
    to_unit_id: str = Field(default="")
    """Identifier of the target unit, computed like SourceUnit identifiers."""
    to_version_string: Optional[str] = Field(default=None)
    """Toolchain version string for pinned standard-distribution targets."""
    to_rev_spec: Optional[str] = Field(default=None)
    """Revision specifier for pinned standard-distribution targets."""


class ResolvedDependency(BaseModelWithDocstrings):
    """One resolution outcome as persisted by the resolve stage.

    Exactly one of ``target`` and ``error`` is set.
    """

    from_unit_type: NonEmptyString
    """Kind of the unit declaring the dependency."""
    from_unit_id: str
    """Identifier of the unit declaring the dependency."""
    raw: RawDependency
    """The raw dependency that was resolved."""
    target: Optional[ResolvedTarget] = Field(default=None)
    """The resolved target, if resolution succeeded."""
    error: Optional[str] = Field(default=None)
    """The resolution error message, if resolution failed."""

    @model_validator(mode="after")
    def _validate_outcome(self) -> "ResolvedDependency":
        if (self.target is None) == (self.error is None):
            raise ValueError("Exactly one of 'target' and 'error' must be set")
        return self

    def is_resolved(self) -> bool:
        return self.target is not None
