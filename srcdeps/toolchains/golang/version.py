"""Go toolchain versions and their container environment."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass

from srcdeps.container import ImageRecipe

CONTAINER_GOPATH = "/go"


@dataclass(frozen=True)
class GoVersion:
    """A Go release used to scan, list and resolve Go packages.

    Standard library targets resolved with this version are pinned to ``version_string`` and
    ``vcs_revision``.
    """

    version_string: str
    """The Go version, e.g. '1.22.5'."""
    vcs_revision: str
    """The tag of this version in the Go repository, e.g. 'go1.22.5'."""
    base_image: str
    """The docker image providing this version."""

    def recipe(self) -> ImageRecipe:
        """Image recipe of the Go environment, in GOPATH mode."""
        return ImageRecipe(
            base_image=self.base_image,
            env={"GOPATH": CONTAINER_GOPATH, "GO111MODULE": "off", "CGO_ENABLED": "0"},
        )

    def container_dir(self, base_import_path: str) -> str:
        """Where the repository is mounted inside the container."""
        return posixpath.join(CONTAINER_GOPATH, "src", base_import_path)


DEFAULT_GO_VERSION = GoVersion(
    version_string="1.22.5", vcs_revision="go1.22.5", base_image="golang:1.22.5"
)
