"""Go packages as source units, and the Go toolchain configuration."""

from __future__ import annotations

from typing import ClassVar, Tuple

from pydantic import BaseModel, Field

from srcdeps.data import RepositoryConfig, SourceUnit
from srcdeps.toolchain import ConfigurationError

GO_IMPORT_PATH_TARGET_TYPE = "go-import-path"
"""Target type of raw dependencies whose payload is a Go import path."""


class GoPackage(SourceUnit):
    """A Go package. ``name`` is its import path; the package is identified by its directory."""

    kind: ClassVar[str] = "GoPackage"

    def id_fields(self) -> Tuple[str, ...]:
        return (self.dir,)

    @property
    def import_path(self) -> str:
        return self.name


class GoConfig(BaseModel):
    """Settings of the 'go' entry of a repository's Srcfile."""

    base_import_path: str = Field(default="")
    """Import path of the repository root. Defaults to the repository URI."""
    include_test_imports: bool = Field(default=False)
    """Whether imports of _test.go files are listed as dependencies."""


def go_config(repo_config: RepositoryConfig) -> GoConfig:
    """The Go settings of ``repo_config``, with ``base_import_path`` defaulted.

    Raises
    ------
    ConfigurationError
        If the 'go' settings are invalid.
    """
    try:
        config = repo_config.toolchain_config("go", GoConfig)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    base_import_path = (config.base_import_path or repo_config.uri).strip("/")
    return config.model_copy(update={"base_import_path": base_import_path})
