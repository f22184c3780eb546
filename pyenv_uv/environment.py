"""
Host layout resolution and host hooks.

Works out where the shared versions directory, the override store and the
managed-installations root live, and runs the host's cache-invalidation hook.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass

from .common import vlog
from .config import Config
from .errors import CacheInvalidationFailed, PyenvUvError, RequiredToolMissing

STATE_DIR_NAME = "pyenv-uv"
OVERRIDES_FILE_NAME = "alias-overrides.tsv"
COMMAND_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class HostLayout:
    """
    Resolved filesystem layout of one host version manager.

    Attributes:
        pyenv_root: Host version manager root
        versions_dir: Shared alias namespace (``<root>/versions``)
        state_dir: Directory holding the override store
        overrides_file: Override store file
        managed_root: Provenance root; links into it are owned by pyenv-uv
        prefix: Naming prefix of registered installation links
    """
    pyenv_root: str
    versions_dir: str
    state_dir: str
    overrides_file: str
    managed_root: str
    prefix: str = "uv-"

    @classmethod
    def from_roots(cls, pyenv_root: str, managed_root: str, prefix: str = "uv-") -> HostLayout:
        state_dir = os.path.join(pyenv_root, STATE_DIR_NAME)
        return cls(
            pyenv_root=pyenv_root,
            versions_dir=os.path.join(pyenv_root, "versions"),
            state_dir=state_dir,
            overrides_file=os.path.join(state_dir, OVERRIDES_FILE_NAME),
            managed_root=managed_root,
            prefix=prefix,
        )


def require_commands(*commands: str, verbose: bool = False) -> None:
    """
    Check that every command (first word of each) is on PATH.

    Raises:
        RequiredToolMissing: For the first command not found
    """
    for command in commands:
        binary = shlex.split(command)[0]
        path = shutil.which(binary)
        if not path:
            raise RequiredToolMissing(binary)
        vlog(f"Found {binary} at: {path}", verbose)


def _command_output(command: str) -> str:
    """Run a helper command and return its first stdout line."""
    require_commands(command)
    proc = subprocess.run(
        shlex.split(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        text=True,
        errors="replace",
        timeout=COMMAND_TIMEOUT_SECONDS,
        check=False,
    )
    lines = (proc.stdout or "").splitlines()
    if proc.returncode != 0 or not lines or not lines[0].strip():
        raise PyenvUvError(
            f"'{command}' failed (exit {proc.returncode}): {(proc.stderr or '').strip()}"
        )
    return lines[0].strip()


def resolve_layout(config: Config, verbose: bool = False) -> HostLayout:
    """
    Resolve the host layout from config, falling back to host commands.

    Raises:
        RequiredToolMissing: If a root must be queried and its command is missing
    """
    pyenv_root = config.pyenv_root or _command_output(config.root_command)
    managed_root = config.managed_root or _command_output(config.managed_root_command)
    vlog(f"pyenv root: {pyenv_root}, managed root: {managed_root}", verbose)
    return HostLayout.from_roots(pyenv_root, managed_root, prefix=config.prefix)


def run_rehash(command: str, verbose: bool = False) -> None:
    """
    Run the host's cache-invalidation hook.

    Output of the hook is passed through; its exit status is not masked.

    Raises:
        RequiredToolMissing: If the hook command is not on PATH
        CacheInvalidationFailed: If the hook exits non-zero
    """
    require_commands(command)
    vlog(f"Running rehash hook: {command}", verbose)
    proc = subprocess.run(shlex.split(command), stdin=subprocess.DEVNULL, check=False)
    if proc.returncode != 0:
        raise CacheInvalidationFailed(command, proc.returncode)
