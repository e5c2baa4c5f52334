"""Structured image recipes and mount bindings for container commands."""

from __future__ import annotations

import hashlib
import json
from typing import Dict, List

from pydantic import Field

from srcdeps.data.utils import FrozenModel, NonEmptyString


class ImageRecipe(FrozenModel):
    """Build recipe for a container image: a base image plus ordered setup steps.

    Two recipes with equal fields render the same Dockerfile and have the same digest, so a
    built image can be reused by tag. The recipe alone is enough to rebuild the image.
    """

    base_image: NonEmptyString
    """The base image reference, e.g. 'golang:1.22.5'."""
    steps: List[str] = Field(default_factory=list)
    """Shell commands run in order at image build time, one RUN instruction each."""
    env: Dict[str, str] = Field(default_factory=dict)
    """Environment variables baked into the image."""
    workdir: str = Field(default="")
    """Default working directory of the image, if any."""

    def dockerfile(self) -> str:
        """Render the recipe as a Dockerfile."""
        lines = [f"FROM {self.base_image}"]
        for key in sorted(self.env):
            lines.append(f"ENV {key}={json.dumps(self.env[key])}")
        for step in self.steps:
            lines.append(f"RUN {step}")
        if self.workdir:
            lines.append(f"WORKDIR {self.workdir}")
        return "\n".join(lines) + "\n"

    def digest(self) -> str:
        """The sha256 hex digest of the rendered Dockerfile."""
        return hashlib.sha256(self.dockerfile().encode("utf-8")).hexdigest()

    def tag(self, prefix: str = "srcdeps") -> str:
        """Image tag derived from the recipe digest."""
        return f"{prefix}-{self.digest()[:16]}"


class Mount(FrozenModel):
    """A host directory bound into the container."""

    host_path: NonEmptyString
    """Absolute path on the host."""
    container_path: NonEmptyString
    """Absolute path inside the container."""
    read_only: bool = Field(default=False)
    """Whether the container may only read the mounted directory."""

    def as_run_options(self) -> List[str]:
        spec = f"{self.host_path}:{self.container_path}"
        if self.read_only:
            spec += ":ro"
        return ["-v", spec]
