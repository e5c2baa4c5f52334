import sys
from pathlib import Path

import pytest
from pydantic import BaseModel

from srcdeps.data import SRCFILE_NAME, RepositoryConfig


class _ToolConfig(BaseModel):
    flag: bool = False


def test_missing_srcfile_gives_defaults(tmp_path: Path):
    config = RepositoryConfig.from_dir(tmp_path)
    assert config == RepositoryConfig()
    assert config.uri == ""
    assert config.scan_ignore == []


def test_srcfile_is_loaded(tmp_path: Path):
    (tmp_path / SRCFILE_NAME).write_text(
        '{"uri": "github.com/acme/app", "scan_ignore": ["vendor"], '
        '"toolchains": {"go": {"base_import_path": "app/util"}}}'
    )
    config = RepositoryConfig.from_dir(tmp_path)
    assert config.uri == "github.com/acme/app"
    assert config.scan_ignore == ["vendor"]
    assert config.toolchains["go"] == {"base_import_path": "app/util"}


def test_invalid_srcfile_raises(tmp_path: Path):
    (tmp_path / SRCFILE_NAME).write_text('{"scan_ignore": "vendor"}')
    with pytest.raises(ValueError):
        RepositoryConfig.from_dir(tmp_path)


def test_toolchain_config():
    config = RepositoryConfig(toolchains={"tool": {"flag": True}})
    assert config.toolchain_config("tool", _ToolConfig).flag is True
    assert config.toolchain_config("other", _ToolConfig).flag is False

    bad = RepositoryConfig(toolchains={"tool": {"flag": "not-a-bool"}})
    with pytest.raises(ValueError, match="Invalid 'tool' toolchain config"):
        bad.toolchain_config("tool", _ToolConfig)


if __name__ == "__main__":
    pytest.main(sys.argv)
