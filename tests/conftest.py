"""
Shared fixtures: a throwaway pyenv root, a managed root and fake pythons.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from pyenv_uv.environment import HostLayout
from pyenv_uv.logging_config import setup_logging


FAKE_PYTHON = """#!/bin/sh
# Supports only: python -c '<introspection>'
if [ "$1" = "-c" ]; then
  echo "{version}"
  exit 0
fi
echo "fake-python: unsupported args: $*" >&2
exit 2
"""


def write_executable(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


def make_fake_python(exe: Path, version: str) -> Path:
    return write_executable(exe, FAKE_PYTHON.format(version=version))


@pytest.fixture(autouse=True)
def _logs_to_caplog():
    """Route pyenv_uv log records to caplog."""
    setup_logging(verbose=True, propagate=True)
    yield


@pytest.fixture
def layout(tmp_path) -> HostLayout:
    pyenv_root = tmp_path / "pyenvroot"
    (pyenv_root / "versions").mkdir(parents=True)
    managed = tmp_path / "uvpy"
    managed.mkdir()
    return HostLayout.from_roots(str(pyenv_root), str(managed))


@pytest.fixture
def versions(layout) -> Path:
    return Path(layout.versions_dir)


@pytest.fixture
def install(layout):
    """Create a managed installation reporting a version and register it."""

    def _install(name: str, version: str, register: bool = True) -> str:
        prefix_dir = Path(layout.managed_root) / name
        make_fake_python(prefix_dir / "bin" / "python3", version)
        if register:
            os.symlink(prefix_dir, os.path.join(layout.versions_dir, f"{layout.prefix}{name}"))
        return str(prefix_dir)

    return _install


@pytest.fixture
def rehash():
    return MagicMock(name="rehash")


