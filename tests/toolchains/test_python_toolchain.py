import sys
from unittest.mock import MagicMock

import pytest

from srcdeps.buildstore import BuildStore, StoreKey
from srcdeps.data import RawDependency, RepositoryConfig, ResolvedTarget
from srcdeps.index import IndexEntry, PackageIndex
from srcdeps.toolchain import ResolutionError
from srcdeps.toolchains.python import (
    PYTHON_REQUIREMENT_TARGET_TYPE,
    PipLister,
    PipPackage,
    PipResolver,
    PipScanner,
    PythonEnv,
)


def _dep(name: str) -> RawDependency:
    return RawDependency(target_type=PYTHON_REQUIREMENT_TARGET_TYPE, target=name)


@pytest.fixture
def index() -> MagicMock:
    return MagicMock(spec=PackageIndex)


def test_scanner_command_and_transform(make_ctx, repo_dir):
    ctx = make_ctx(
        repo_config=RepositoryConfig(uri="github.com/acme/app", scan_ignore=["third_party"])
    )
    command = PipScanner().build_scanner(repo_dir, ctx.repo_config, ctx)

    assert command.cmd[:2] == ["python", "-c"]
    assert command.cmd[3:] == ["/src", "third_party"]
    assert command.mounts[0].container_path == "/src"
    assert command.mounts[0].read_only

    output = (
        b'{"name": "my_lib", "dir": "", "files": ["pyproject.toml"]}\n'
        b'{"name": "plugin", "dir": "plugins/one", "files": ["plugins/one/setup.py"]}\n'
    )
    units = command.transform(output)
    assert units == [
        PipPackage(name="my_lib", dir="", files=["pyproject.toml"]),
        PipPackage(name="plugin", dir="plugins/one", files=["plugins/one/setup.py"]),
    ]
    assert [u.id for u in units] == ["my-lib", "plugin"]


def test_lister_command_and_transform(make_ctx, repo_dir):
    ctx = make_ctx()
    unit = PipPackage(name="plugin", dir="plugins/one")
    command = PipLister().build_lister(repo_dir, unit, ctx.repo_config, ctx)

    assert command.cmd[-1] == "/src/plugins/one"
    assert command.transform(b'["requests", "PyYAML"]') == [_dep("requests"), _dep("PyYAML")]
    with pytest.raises(ValueError):
        command.transform(b'{"requests": "*"}')


def test_env_recipe_pins_packaging():
    recipe = PythonEnv(base_image="python:3.11-slim", packaging_version="23.2").recipe()
    assert recipe.base_image == "python:3.11-slim"
    assert "pip install --no-cache-dir packaging==23.2" in recipe.steps


def test_resolver_resolves_scanned_projects_locally(index, make_ctx):
    ctx = make_ctx()
    store = BuildStore.open(ctx)
    store.write_models(
        StoreKey("units"), [PipPackage(name="My_Lib", files=["pyproject.toml"]).to_envelope()]
    )
    resolver = PipResolver(index)

    target = resolver.resolve(_dep("my-lib"), ctx.repo_config, ctx)

    assert target == ResolvedTarget(
        to_repo_clone_url="github.com/acme/app", to_unit_type="PipPackage", to_unit_id="my-lib"
    )
    index.lookup.assert_not_called()


def test_resolver_looks_up_other_projects(index, make_ctx):
    index.lookup.return_value = IndexEntry(
        project_url="https://github.com/psf/requests/",
        project_root="requests",
        import_path="requests",
    )
    ctx = make_ctx()
    resolver = PipResolver(index)

    target = resolver.resolve(_dep("Requests"), ctx.repo_config, ctx)

    assert target == ResolvedTarget(
        to_repo_clone_url="https://github.com/psf/requests",
        to_unit_type="PipPackage",
        to_unit_id="requests",
    )
    assert target.to_version_string is None
    resolver.resolve(_dep("Requests"), ctx.repo_config, ctx)
    index.lookup.assert_called_once_with("Requests")


def test_resolver_rejects_empty_name(index, make_ctx):
    ctx = make_ctx()
    with pytest.raises(ResolutionError):
        PipResolver(index).resolve(_dep(""), ctx.repo_config, ctx)


if __name__ == "__main__":
    pytest.main(sys.argv)
