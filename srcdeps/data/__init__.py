"""Data layer with strongly-typed pydantic models for srcdeps."""

from .config import SRCFILE_NAME, RepositoryConfig
from .dependency import RawDependency, ResolvedDependency, ResolvedTarget
from .json_utils import (
    atomic_write_bytes,
    dump_json_list,
    load_json_list,
    parse_json_list,
    save_json_list,
)
from .unit import SourceUnit, UnitEnvelope, make_unit_id

__all__ = [
    # Unit types
    "SourceUnit",
    "UnitEnvelope",
    "make_unit_id",
    # Dependency types
    "RawDependency",
    "ResolvedTarget",
    "ResolvedDependency",
    # Config
    "RepositoryConfig",
    "SRCFILE_NAME",
    # JSON functions
    "atomic_write_bytes",
    "dump_json_list",
    "parse_json_list",
    "save_json_list",
    "load_json_list",
]
