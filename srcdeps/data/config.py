"""Repository configuration read from the ``Srcfile`` at a repository root."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError

from .utils import BaseModelWithDocstrings

SRCFILE_NAME = "Srcfile"
"""Name of the optional JSON configuration file at the repository root."""

T = TypeVar("T", bound=BaseModel)


class RepositoryConfig(BaseModelWithDocstrings):
    """Per-repository configuration shared by every toolchain."""

    uri: str = Field(default="")
    """The repository URI, e.g. 'github.com/user/repo'. Filled from the git remote when empty."""
    scan_ignore: List[str] = Field(default_factory=list)
    """Directory glob patterns (relative to the repository root) excluded from scanning."""
    toolchains: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    """Toolchain-specific settings keyed by toolchain name (e.g. 'go')."""

    @classmethod
    def from_dir(cls, dir: Union[str, Path]) -> "RepositoryConfig":
        """Load the Srcfile in ``dir``, or return a default config if there is none."""
        path = Path(dir) / SRCFILE_NAME
        if not path.is_file():
            return cls()
        return cls.model_validate_json(path.read_text(encoding="utf-8"))

    def toolchain_config(self, name: str, model_cls: Type[T]) -> T:
        """Validate the settings of toolchain ``name`` into ``model_cls``.

        Parameters
        ----------
        name : str
            The toolchain name used as key under ``toolchains``.
        model_cls : Type[BaseModel]
            The toolchain's config model. Must be constructible with no arguments.

        Returns
        -------
        BaseModel
            The validated toolchain config.

        Raises
        ------
        ValueError
            If the settings don't match the toolchain's config model.
        """
        raw: Optional[Dict[str, Any]] = self.toolchains.get(name)
        try:
            return model_cls.model_validate(raw or {})
        except ValidationError as e:
            raise ValueError(f"Invalid '{name}' toolchain config in {SRCFILE_NAME}: {e}") from e
