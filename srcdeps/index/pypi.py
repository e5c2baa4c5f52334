"""Package index for Python distributions backed by the PyPI JSON API."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import httpx

from srcdeps.logging import get_logger

from .base import IndexEntry, IndexLookupError, PackageIndex

logger = get_logger("PyPIIndex")

PYPI_URL = "https://pypi.org/pypi"

_SOURCE_URL_KEYS = ("Source", "Source Code", "Repository", "Code", "Homepage", "Home")


def normalize_project_name(name: str) -> str:
    """Normalize a distribution name as defined by PEP 503."""
    return re.sub(r"[-_.]+", "-", name).lower()


class PyPIIndex(PackageIndex):
    """Resolves Python distribution names to their source repositories through PyPI.

    The repository URL is taken from the project's ``project_urls`` (the first of 'Source',
    'Source Code', 'Repository', 'Code', 'Homepage', 'Home') or, failing that, ``home_page``.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        base_url: str = PYPI_URL,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._base_url = base_url.rstrip("/")

    def lookup(self, reference: str) -> IndexEntry:
        name = normalize_project_name(reference.strip())
        if not name:
            raise IndexLookupError(f"invalid distribution name {reference!r}")

        url = f"{self._base_url}/{name}/json"
        logger.debug(f"Fetching {url}")
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise IndexLookupError(f"fetching {url}: {e}") from e
        if response.status_code == 404:
            raise IndexLookupError(f"distribution {name!r} not found on PyPI")
        if response.status_code >= 400:
            raise IndexLookupError(f"fetching {url}: HTTP {response.status_code}")

        try:
            info: Dict[str, Any] = response.json()["info"]
        except (ValueError, KeyError, TypeError) as e:
            raise IndexLookupError(f"malformed PyPI response for {name!r}") from e

        repo_url = self._source_url(info)
        if not repo_url:
            raise IndexLookupError(f"distribution {name!r} declares no source repository")
        return IndexEntry(project_url=repo_url, project_root=name, import_path=name)

    @staticmethod
    def _source_url(info: Dict[str, Any]) -> Optional[str]:
        project_urls = info.get("project_urls") or {}
        lowered = {k.lower(): v for k, v in project_urls.items() if v}
        for key in _SOURCE_URL_KEYS:
            if key.lower() in lowered:
                return lowered[key.lower()]
        return info.get("home_page") or None

    def close(self) -> None:
        self._client.close()
