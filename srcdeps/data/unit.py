"""Source units: the nodes of the dependency graph."""

from __future__ import annotations

import posixpath
from typing import Any, ClassVar, Dict, List, Tuple

from pydantic import Field

from .utils import BaseModelWithDocstrings, FrozenModel, NonEmptyString


class SourceUnit(FrozenModel):
    """A named, typed collection of source files forming one importable module.

    Each toolchain subclasses SourceUnit, sets the ``kind`` class tag and overrides
    ``id_fields`` to return the fields that distinguish two units of the same kind. Two units
    with the same kind and the same distinguishing fields have the same identifier, regardless
    of the files they contain.
    """

    kind: ClassVar[str] = ""
    """Tag selecting the toolchain (lister) responsible for this unit."""

    name: NonEmptyString
    """Human-readable name of the unit, e.g. a package import path or project name."""
    dir: str = Field(default="")
    """Directory of the unit relative to the repository root, in POSIX form."""
    files: List[str] = Field(default_factory=list)
    """Files belonging to the unit, relative to the repository root."""

    def id_fields(self) -> Tuple[str, ...]:
        """The fields the unit identifier is derived from. Defaults to the unit name."""
        return (self.name,)

    @property
    def id(self) -> str:
        """The stable identifier of the unit. See :func:`make_unit_id`."""
        return make_unit_id(self)

    def to_envelope(self) -> "UnitEnvelope":
        return UnitEnvelope(type=self.kind, data=self.model_dump(mode="json"))


def _normalize_id_part(part: str) -> str:
    part = posixpath.normpath(part.replace("\\", "/")) if part else ""
    return "" if part == "." else part


def make_unit_id(unit: SourceUnit) -> str:
    """Compute the identifier of a unit from its distinguishing fields.

    The identifier is a pure function of ``unit.id_fields()``: relative paths are normalized
    (``"."`` becomes the empty string) and multiple fields are joined with ``"@"``. Resolvers
    compute target identifiers with this same function so that resolved targets can be joined
    against scanned units.

    Parameters
    ----------
    unit : SourceUnit
        The unit to compute the identifier for.

    Returns
    -------
    str
        The unit identifier. May be empty for a unit at a repository's root.
    """
    return "@".join(_normalize_id_part(str(f)) for f in unit.id_fields())


class UnitEnvelope(BaseModelWithDocstrings):
    """Kind-tagged serialized form of a SourceUnit, as persisted by the scan stage."""

    type: NonEmptyString
    """The unit kind, used to pick the registered unit class when decoding."""
    data: Dict[str, Any]
    """The unit fields."""
