"""Per-commit, addressable persistence of pipeline artifacts."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel

from srcdeps.data import atomic_write_bytes, load_json_list, save_json_list
from srcdeps.env import get_build_data_dir_name

if TYPE_CHECKING:
    from srcdeps.job import JobContext

M = TypeVar("M", bound=BaseModel)

UNITS_STAGE = "units"
"""Repository-wide list of scanned units."""
RAW_DEPS_STAGE = "raw_deps"
"""Per-unit raw dependencies produced by the lister."""
RESOLVED_DEPS_STAGE = "resolved_deps"
"""Per-unit resolution outcomes."""
DEPGRAPH_STAGE = "depgraph"
"""Repository-wide merged dependency graph."""


class ArtifactNotFound(KeyError):
    """Raised when reading a build store key that has no artifact."""


def _safe_parts(value: str, what: str) -> List[str]:
    parts = [p for p in PurePosixPath(value.replace("\\", "/")).parts if p not in ("", ".", "/")]
    if ".." in parts:
        raise ValueError(f"Invalid {what} (parent directory traversal not allowed): {value!r}")
    return parts


@dataclass(frozen=True)
class StoreKey:
    """Address of one artifact within a commit's build store.

    Repository-wide artifacts (e.g. the scanned unit list) have no unit; per-unit artifacts are
    stored under ``<unit_type>/<unit_id>/``.
    """

    stage: str
    """Stage that produced the artifact, e.g. 'units', 'raw_deps', 'resolved_deps'."""
    unit_type: Optional[str] = None
    """Kind of the unit the artifact belongs to."""
    unit_id: Optional[str] = None
    """Identifier of the unit the artifact belongs to. May be empty."""

    def relative_path(self) -> Path:
        if not self.stage or "/" in self.stage:
            raise ValueError(f"Invalid stage name: {self.stage!r}")
        parts: List[str] = []
        if self.unit_type is not None:
            parts.extend(_safe_parts(self.unit_type, "unit type"))
            parts.extend(_safe_parts(self.unit_id or "", "unit id"))
        parts.append(f"{self.stage}.json")
        return Path(*parts)


class BuildStore:
    """Build store rooted at ``<repo_dir>/<build data dir>/<repo uri>/<commit id>/``.

    Every write is atomic, so readers never see partial artifacts. There is no expiry: artifacts
    stay until removed by the caller.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    @classmethod
    def open(cls, ctx: "JobContext") -> "BuildStore":
        """Open the build store of the commit identified by ``ctx``."""
        root = ctx.repo_dir / get_build_data_dir_name()
        root = root.joinpath(*_safe_parts(ctx.repo_uri, "repository URI"))
        root = root.joinpath(*_safe_parts(ctx.commit_id, "commit id"))
        return cls(root)

    def path(self, key: StoreKey) -> Path:
        return self.root / key.relative_path()

    def exists(self, key: StoreKey) -> bool:
        return self.path(key).is_file()

    def write(self, key: StoreKey, data: bytes) -> Path:
        """Atomically write ``data`` as the artifact for ``key``. Returns the artifact path."""
        path = self.path(key)
        atomic_write_bytes(path, data)
        return path

    def read(self, key: StoreKey) -> bytes:
        """Read the artifact for ``key``.

        Raises
        ------
        ArtifactNotFound
            If there is no artifact for ``key``.
        """
        try:
            return self.path(key).read_bytes()
        except FileNotFoundError:
            raise ArtifactNotFound(key) from None

    def write_models(self, key: StoreKey, objects: List[BaseModel]) -> Path:
        path = self.path(key)
        save_json_list(objects, path)
        return path

    def read_models(self, key: StoreKey, model_cls: Type[M]) -> List[M]:
        """Read the artifact for ``key`` as a list of ``model_cls``. Raises ArtifactNotFound."""
        try:
            return load_json_list(model_cls, self.path(key))
        except FileNotFoundError:
            raise ArtifactNotFound(key) from None

    def remove(self, key: StoreKey) -> None:
        self.path(key).unlink(missing_ok=True)

    def artifacts(self) -> Iterator[Path]:
        """All artifact paths in the store, in sorted order."""
        if not self.root.is_dir():
            return iter(())
        return iter(
            sorted(
                p
                for p in self.root.rglob("*.json")
                if p.is_file() and not p.name.startswith(".")
            )
        )

    def __repr__(self) -> str:
        return f"BuildStore({os.fspath(self.root)!r})"
