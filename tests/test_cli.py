"""
Tests for the command line surface (pyenv_uv/cli.py).
"""

import os

import pytest

from pyenv_uv.cli import build_parser, main


@pytest.fixture
def cli_env(layout, monkeypatch, tmp_path):
    """Point the CLI at the test layout with a no-op rehash hook."""
    monkeypatch.setattr("pyenv_uv.config.CONFIG_LOCATIONS", [])
    monkeypatch.setenv("PYENV_ROOT", layout.pyenv_root)
    monkeypatch.setenv("PYENV_UV_PYTHON_DIR", layout.managed_root)
    monkeypatch.delenv("PYENV_UV_PREFIX", raising=False)
    config = tmp_path / "config.yml"
    config.write_text("commands:\n  rehash: \"true\"\n")
    return ["--config", str(config)]


class TestParser:
    def test_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_uninstall_flags(self):
        args = build_parser().parse_args(["uninstall", "--all-links", "3.13.2"])
        assert args.all_links is True
        assert args.name == "3.13.2"


class TestMain:
    def test_refresh(self, cli_env, versions, install):
        path = install("cpython-3.12.7-any", "3.12.7")
        assert main([*cli_env, "refresh"]) == 0
        assert os.readlink(versions / "3.12.7") == path

    def test_alias_pins_and_refreshes(self, cli_env, layout, versions, install):
        install("cpython-3.12.2-a", "3.12.2")
        b = install("cpython-3.12.2-b", "3.12.2")

        assert main([*cli_env, "alias", "3.12.2", "uv-cpython-3.12.2-b"]) == 0

        assert os.readlink(versions / "3.12.2") == b
        with open(layout.overrides_file, encoding="utf-8") as f:
            assert f.read() == "3.12.2\tuv-cpython-3.12.2-b\n"

    def test_unalias(self, cli_env, versions, install):
        a = install("cpython-3.12.2-a", "3.12.2")
        install("cpython-3.12.2-b", "3.12.2")
        main([*cli_env, "alias", "3.12.2", "uv-cpython-3.12.2-b"])
        assert main([*cli_env, "unalias", "3.12.2"]) == 0
        assert os.readlink(versions / "3.12.2") == a

    def test_overrides_listing(self, cli_env, capsys):
        main([*cli_env, "alias", "3.12.2", "uv-cpython-3.12.2-b"])
        capsys.readouterr()
        assert main([*cli_env, "overrides"]) == 0
        assert capsys.readouterr().out == "3.12.2\tuv-cpython-3.12.2-b\n"

    def test_bad_alias(self, cli_env, layout):
        assert main([*cli_env, "alias", "3.12", "uv-x"]) == 1
        assert not os.path.exists(layout.overrides_file)

    def test_protected(self, cli_env, versions, tmp_path):
        foreign = tmp_path / "nonuv"
        foreign.mkdir()
        os.symlink(foreign, versions / "3.12.2")
        assert main([*cli_env, "protected", "3.12.2"]) == 0
        assert main([*cli_env, "protected", "3.13.0"]) == 1

    def test_sync_and_uninstall(self, cli_env, versions, install):
        path = install("cpython-3.13.2-any", "3.13.2", register=False)
        assert main([*cli_env, "sync"]) == 0
        assert os.readlink(versions / "3.13.2") == path

        assert main([*cli_env, "uninstall", "3.13.2"]) == 0
        assert os.listdir(versions) == []
        assert os.path.isdir(path)

    def test_clear_aliases(self, cli_env, versions, install):
        install("cpython-3.13.2-any", "3.13.2")
        main([*cli_env, "refresh"])
        assert main([*cli_env, "clear-aliases"]) == 0
        assert os.listdir(versions) == ["uv-cpython-3.13.2-any"]

    def test_missing_rehash_hook(self, cli_env, layout, versions, install, tmp_path):
        install("cpython-3.12.7-any", "3.12.7")
        config = tmp_path / "missing.yml"
        config.write_text("commands:\n  rehash: pyenv-uv-no-such-rehash\n")

        assert main(["--config", str(config), "alias", "3.12.7", "uv-cpython-3.12.7-any"]) == 127
        assert not os.path.lexists(versions / "3.12.7")
        assert not os.path.exists(layout.overrides_file)

    def test_rehash_failure_status(self, cli_env, versions, install, tmp_path):
        path = install("cpython-3.12.7-any", "3.12.7")
        config = tmp_path / "failing.yml"
        config.write_text("commands:\n  rehash: \"sh -c 'exit 4'\"\n")

        assert main(["--config", str(config), "refresh"]) == 4
        assert os.readlink(versions / "3.12.7") == path
