from .store import (
    DEPGRAPH_STAGE,
    RAW_DEPS_STAGE,
    RESOLVED_DEPS_STAGE,
    UNITS_STAGE,
    ArtifactNotFound,
    BuildStore,
    StoreKey,
)

__all__ = [
    "ArtifactNotFound",
    "BuildStore",
    "StoreKey",
    "UNITS_STAGE",
    "RAW_DEPS_STAGE",
    "RESOLVED_DEPS_STAGE",
    "DEPGRAPH_STAGE",
]
