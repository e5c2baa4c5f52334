"""Package index for Go import paths, based on the ``go get`` discovery protocol."""

from __future__ import annotations

import re
import threading
from typing import Dict, List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from srcdeps.logging import get_logger

from .base import IndexEntry, IndexLookupError, PackageIndex

logger = get_logger("GoImportIndex")

GO_REPO_URL = "https://go.googlesource.com/go"
"""Clone URL of the Go distribution, owner of all standard library packages."""

# Hosts whose repository root is always the first N path elements.
_STATIC_HOSTS: Dict[str, Tuple[int, str]] = {
    "github.com": (3, "https://{root}"),
    "bitbucket.org": (3, "https://{root}"),
    "gitlab.com": (3, "https://{root}"),
}

_PATH_ELEM_RE = re.compile(r"^[A-Za-z0-9_.~+\-]+$")


def is_standard_import_path(import_path: str) -> bool:
    """Whether ``import_path`` names a package of the Go standard distribution.

    Standard library paths have no dot in their first element (e.g. 'net/http'), while every
    remote import path starts with a host name.
    """
    first = import_path.split("/", 1)[0]
    return bool(first) and "." not in first


def parse_go_import_meta(html: str) -> List[Tuple[str, str, str]]:
    """The (prefix, vcs, repo URL) triples of the ``go-import`` meta tags of ``html``."""
    soup = BeautifulSoup(html, "html.parser")
    imports = []
    for meta in soup.find_all("meta", attrs={"name": "go-import"}):
        fields = (meta.get("content") or "").split()
        if len(fields) == 3:
            imports.append((fields[0], fields[1], fields[2]))
    return imports


class GoImportIndex(PackageIndex):
    """Resolves Go import paths to their repositories.

    - Standard library packages belong to the Go distribution and are flagged ``standard``.
    - Import paths on well-known hosts (GitHub, Bitbucket, GitLab) are resolved statically.
    - Any other import path is resolved by fetching ``https://<path>?go-get=1`` and reading the
      ``go-import`` meta tag whose prefix matches the path.

    Meta lookups are memoized per import path for the lifetime of the index.
    """

    def __init__(self, client: Optional[httpx.Client] = None, timeout: float = 10.0) -> None:
        """Initialize the index.

        Parameters
        ----------
        client : Optional[httpx.Client]
            HTTP client to use. A client with ``timeout`` and redirect following is created when
            not provided.
        timeout : float
            Timeout in seconds of each HTTP request, used when ``client`` is not provided.
        """
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._meta_cache: Dict[str, Tuple[str, str]] = {}
        self._lock = threading.Lock()

    def lookup(self, reference: str) -> IndexEntry:
        import_path = reference.strip().rstrip("/")
        if not import_path or not all(
            _PATH_ELEM_RE.match(elem) for elem in import_path.split("/")
        ):
            raise IndexLookupError(f"invalid Go import path {reference!r}")

        if is_standard_import_path(import_path):
            return IndexEntry(
                project_url=GO_REPO_URL, project_root="", import_path=import_path, standard=True
            )

        host = import_path.split("/", 1)[0]
        if host in _STATIC_HOSTS:
            n, url_template = _STATIC_HOSTS[host]
            elems = import_path.split("/")
            if len(elems) < n:
                raise IndexLookupError(f"import path {import_path!r} has no repository")
            root = "/".join(elems[:n])
            return IndexEntry(
                project_url=url_template.format(root=root),
                project_root=root,
                import_path=import_path,
            )

        root, repo_url = self._discover(import_path)
        return IndexEntry(project_url=repo_url, project_root=root, import_path=import_path)

    def _discover(self, import_path: str) -> Tuple[str, str]:
        with self._lock:
            cached = self._meta_cache.get(import_path)
        if cached is not None:
            return cached

        url = f"https://{import_path}"
        logger.debug(f"Fetching go-import meta tags from {url}")
        try:
            response = self._client.get(url, params={"go-get": "1"})
        except httpx.HTTPError as e:
            raise IndexLookupError(f"fetching {url}: {e}") from e
        if response.status_code >= 400:
            raise IndexLookupError(f"fetching {url}: HTTP {response.status_code}")

        for prefix, _vcs, repo_url in parse_go_import_meta(response.text):
            if import_path == prefix or import_path.startswith(prefix + "/"):
                result = (prefix, repo_url)
                with self._lock:
                    self._meta_cache[import_path] = result
                return result
        raise IndexLookupError(f"no go-import meta tag matching {import_path!r} at {url}")

    def close(self) -> None:
        self._client.close()
