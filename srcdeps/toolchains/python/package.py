"""Python distributions as source units."""

from __future__ import annotations

from typing import ClassVar, Tuple

from srcdeps.data import SourceUnit
from srcdeps.index import normalize_project_name

PYTHON_REQUIREMENT_TARGET_TYPE = "python-requirement"
"""Target type of raw dependencies whose payload is a distribution name."""


class PipPackage(SourceUnit):
    """A Python distribution declared by a pyproject.toml, setup.cfg or setup.py.

    ``name`` is the distribution name; the unit is identified by its normalized name.
    ``files`` holds the metadata files declaring its requirements.
    """

    kind: ClassVar[str] = "PipPackage"

    def id_fields(self) -> Tuple[str, ...]:
        return (normalize_project_name(self.name),)
