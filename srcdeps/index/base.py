"""Package index collaborator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import Field

from srcdeps.data.utils import FrozenModel


class IndexLookupError(RuntimeError):
    """Raised when a package index cannot answer a lookup (network error, unknown reference)."""


class IndexEntry(FrozenModel):
    """What a package index knows about one reference."""

    project_url: str
    """Canonical URL of the repository owning the reference."""
    project_root: str = Field(default="")
    """The reference prefix corresponding to the repository root (e.g. 'github.com/u/r')."""
    import_path: str
    """The reference in its resolved absolute form."""
    standard: bool = Field(default=False)
    """Whether the reference belongs to a pinned standard distribution."""

    def normalized(self) -> "IndexEntry":
        """Copy of the entry with trailing path separators stripped from the project URL."""
        url = self.project_url.rstrip("/")
        if url == self.project_url:
            return self
        return self.model_copy(update={"project_url": url})


class PackageIndex(ABC):
    """An external index mapping references to the repositories that own them."""

    @abstractmethod
    def lookup(self, reference: str) -> IndexEntry:
        """Look up ``reference``.

        Parameters
        ----------
        reference : str
            The opaque reference, e.g. a Go import path or a Python distribution name.

        Returns
        -------
        IndexEntry
            The owning repository and the reference's place in it.

        Raises
        ------
        IndexLookupError
            If the index cannot resolve the reference.
        """
        ...
