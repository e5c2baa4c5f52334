import sys
from typing import List

import httpx
import pytest

from srcdeps.index import GoImportIndex, IndexLookupError, is_standard_import_path
from srcdeps.index.goget import GO_REPO_URL, parse_go_import_meta

_META_PAGE = """<!DOCTYPE html>
<html><head>
<meta name="go-import" content="golang.org/x/net git https://go.googlesource.com/net">
<meta name="go-source" content="golang.org/x/net https://github.com/golang/net/ x y">
</head><body>Nothing to see here.</body></html>
"""


def _index(handler) -> GoImportIndex:
    return GoImportIndex(client=httpx.Client(transport=httpx.MockTransport(handler)))


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


def test_is_standard_import_path():
    assert is_standard_import_path("fmt")
    assert is_standard_import_path("net/http")
    assert not is_standard_import_path("github.com/user/repo")
    assert not is_standard_import_path("example.org/lib")


def test_standard_library_lookup():
    entry = _index(_no_network).lookup("net/http")
    assert entry.standard
    assert entry.project_url == GO_REPO_URL
    assert entry.project_root == ""
    assert entry.import_path == "net/http"


def test_static_host_lookup():
    entry = _index(_no_network).lookup("github.com/user/repo/sub/pkg")
    assert not entry.standard
    assert entry.project_url == "https://github.com/user/repo"
    assert entry.project_root == "github.com/user/repo"
    assert entry.import_path == "github.com/user/repo/sub/pkg"


def test_static_host_without_repository():
    with pytest.raises(IndexLookupError):
        _index(_no_network).lookup("github.com/user")


def test_meta_tag_discovery():
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=_META_PAGE)

    index = _index(handler)
    entry = index.lookup("golang.org/x/net/html")
    assert entry.project_url == "https://go.googlesource.com/net"
    assert entry.project_root == "golang.org/x/net"
    assert entry.import_path == "golang.org/x/net/html"

    assert requests[0].url.host == "golang.org"
    assert requests[0].url.path == "/x/net/html"
    assert requests[0].url.params["go-get"] == "1"

    index.lookup("golang.org/x/net/html")
    assert len(requests) == 1


def test_meta_tag_prefix_must_match_path_elements():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=_META_PAGE)

    with pytest.raises(IndexLookupError, match="no go-import meta tag"):
        _index(handler).lookup("golang.org/x/network")


def test_http_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with pytest.raises(IndexLookupError, match="404"):
        _index(handler).lookup("example.org/lib")


def test_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(IndexLookupError, match="connection refused"):
        _index(handler).lookup("example.org/lib")


def test_invalid_import_path():
    with pytest.raises(IndexLookupError, match="invalid"):
        _index(_no_network).lookup("example.org/has space")
    with pytest.raises(IndexLookupError):
        _index(_no_network).lookup("")


def test_parse_go_import_meta_keeps_only_well_formed_go_import_tags():
    html = _META_PAGE.replace(
        "</head>",
        '<META NAME="go-import" content="example.org/a hg https://hg.example.org/a">\n'
        '<meta name="go-import" content="too few">\n'
        '<meta name="go-import">\n</head>',
    )
    assert parse_go_import_meta(html) == [
        ("golang.org/x/net", "git", "https://go.googlesource.com/net"),
        ("example.org/a", "hg", "https://hg.example.org/a"),
    ]
    assert parse_go_import_meta("not html at all") == []


if __name__ == "__main__":
    pytest.main(sys.argv)
