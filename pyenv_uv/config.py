"""
Configuration file parsing and management.

Reads YAML configuration files and merges them from multiple sources
(custom path → user → system → defaults), then applies environment
variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

import yaml

from .common import vlog


# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    os.path.expanduser("~/.config/pyenv-uv/config.yml"),
    os.path.expanduser("~/.config/pyenv-uv/config.yaml"),
    "/etc/pyenv-uv/config.yml",
    "/etc/pyenv-uv/config.yaml",
]

DEFAULT_PREFIX = "uv-"
DEFAULT_TIMEOUT_SECONDS = 3


@dataclass(frozen=True)
class Config:
    """
    Complete configuration for alias reconciliation.

    Attributes:
        prefix: Naming prefix of registered installation links
        pyenv_root: Host version manager root (None: ask ``root_command``)
        managed_root: Provenance root of managed installations (None: ask
            ``managed_root_command``)
        probe_timeout: Seconds allowed for one runtime version probe
        rehash_command: Cache-invalidation hook run after every refresh
        root_command: Command printing the host root
        managed_root_command: Command printing the managed-installations root
        source: Path to the configuration file that was loaded
    """
    prefix: str = DEFAULT_PREFIX
    pyenv_root: str | None = None
    managed_root: str | None = None
    probe_timeout: int = DEFAULT_TIMEOUT_SECONDS
    rehash_command: str = "pyenv-rehash"
    root_command: str = "pyenv-root"
    managed_root_command: str = "uv python dir"
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if not self.prefix:
            raise ValueError("Invalid prefix: must not be empty")
        if os.sep in self.prefix:
            raise ValueError(f"Invalid prefix: {self.prefix!r} contains a path separator")
        if self.probe_timeout < 1 or self.probe_timeout > 60:
            raise ValueError(
                f"Invalid probe_timeout: {self.probe_timeout}. "
                "Must be between 1 and 60"
            )
        for name in ("rehash_command", "root_command", "managed_root_command"):
            if not getattr(self, name).strip():
                raise ValueError(f"Invalid {name}: must not be empty")

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        commands = data.get("commands", {}) or {}
        if not isinstance(commands, dict):
            raise ValueError(f"Invalid commands: expected a mapping, got {type(commands).__name__}")
        return Config(
            prefix=data.get("prefix", DEFAULT_PREFIX),
            pyenv_root=data.get("pyenv_root"),
            managed_root=data.get("managed_root"),
            probe_timeout=int(data.get("probe_timeout", DEFAULT_TIMEOUT_SECONDS)),
            rehash_command=commands.get("rehash", "pyenv-rehash"),
            root_command=commands.get("root", "pyenv-root"),
            managed_root_command=commands.get("managed_root", "uv python dir"),
            source=source,
        )

    def merge_with(self, other: Config) -> Config:
        """
        Merge this config with another, preferring values from this config.

        A field equal to its default counts as unset.
        """
        defaults = Config()

        def pick(name: str):
            mine = getattr(self, name)
            return mine if mine != getattr(defaults, name) else getattr(other, name)

        return Config(
            prefix=pick("prefix"),
            pyenv_root=pick("pyenv_root"),
            managed_root=pick("managed_root"),
            probe_timeout=pick("probe_timeout"),
            rehash_command=pick("rehash_command"),
            root_command=pick("root_command"),
            managed_root_command=pick("managed_root_command"),
            source=self.source or other.source,
        )


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Returns:
        Parsed configuration dictionary, or None if the file is unreadable or invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    data = _load_yaml(file_path)
    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        return Config.from_dict(data, source=file_path)
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    """
    Apply PYENV_UV_PREFIX, PYENV_ROOT, PYENV_UV_PYTHON_DIR and
    PYENV_UV_TIMEOUT_SECONDS on top of a loaded config.
    """
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    if env.get("PYENV_UV_PREFIX"):
        changes["prefix"] = env["PYENV_UV_PREFIX"]
    if env.get("PYENV_ROOT"):
        changes["pyenv_root"] = env["PYENV_ROOT"]
    if env.get("PYENV_UV_PYTHON_DIR"):
        changes["managed_root"] = env["PYENV_UV_PYTHON_DIR"]
    if env.get("PYENV_UV_TIMEOUT_SECONDS"):
        changes["probe_timeout"] = int(env["PYENV_UV_TIMEOUT_SECONDS"])
    return replace(config, **changes) if changes else config


def load_config(
    custom_path: str | None = None,
    verbose: bool = False,
    environ: dict[str, str] | None = None,
) -> Config:
    """
    Load and merge configuration from all sources.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Custom path (if provided)
    3. User ~/.config/pyenv-uv/config.yml
    4. System /etc/pyenv-uv/config.yml
    5. Default configuration

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    configs: list[Config] = []

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        configs.append(config)

    for location in CONFIG_LOCATIONS:
        config = load_config_file(location, verbose)
        if config is not None:
            configs.append(config)
            vlog(f"Found config at: {location}", verbose)

    merged = Config()
    if configs:
        merged = configs[0]
        for config in configs[1:]:
            merged = merged.merge_with(config)
        vlog(f"Merged {len(configs)} config files", verbose)

    return apply_env_overrides(merged, environ)


def validate_config(config: Config) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Returns:
        List of validation warning messages (empty if valid)
    """
    warnings = []

    if config.pyenv_root and not os.path.isabs(config.pyenv_root):
        warnings.append(f"pyenv_root is not absolute: {config.pyenv_root}")
    if config.managed_root and not os.path.isabs(config.managed_root):
        warnings.append(f"managed_root is not absolute: {config.managed_root}")
    if "\t" in config.prefix:
        warnings.append("prefix contains a tab; override entries using it cannot be stored")
    if config.pyenv_root and config.managed_root:
        versions_dir = os.path.join(config.pyenv_root, "versions")
        if os.path.abspath(config.managed_root) == os.path.abspath(versions_dir):
            warnings.append("managed_root equals the versions directory; every alias would count as managed")

    return warnings
