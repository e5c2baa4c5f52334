"""Environment variables recognized by srcdeps."""

import os

DEFAULT_BUILD_DATA_DIR = ".srcdeps-data"
DEFAULT_DOCKER_BIN = "docker"


def get_build_data_dir_name() -> str:
    """Name of the build store directory created at the repository root.

    Controlled by ``SRCDEPS_BUILD_DATA_DIR``; defaults to ``.srcdeps-data``.
    """
    return os.environ.get("SRCDEPS_BUILD_DATA_DIR") or DEFAULT_BUILD_DATA_DIR


def get_docker_bin() -> str:
    """The docker client executable, controlled by ``SRCDEPS_DOCKER``."""
    return os.environ.get("SRCDEPS_DOCKER") or DEFAULT_DOCKER_BIN
