"""
Runtime discovery and version probing inside an installation directory.
"""

from __future__ import annotations

import glob
import os
import re
import subprocess

from .common import vlog
from .errors import NoRuntimeFound, ProbeFailed

# Constants
TIMEOUT_SECONDS = int(os.environ.get("PYENV_UV_TIMEOUT_SECONDS", "3"))

RUNTIME_CANDIDATES = (
    os.path.join("bin", "python3"),
    os.path.join("bin", "python"),
)
RUNTIME_FALLBACK_PATTERN = os.path.join("bin", "python3.*")

# Narrow introspection: print sys.version_info[:3] and nothing else
PROBE_ARGS = ("-c", 'import sys; print(".".join(map(str, sys.version_info[:3])))')

VERSION_RE = re.compile(r"^(\d+\.\d+\.\d+)$")


def _is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def find_runtime(prefix_dir: str) -> str:
    """Locate the runtime executable inside an installation.

    Conventional locations are tried first, then a single-level pattern
    scan of ``bin/``.

    Raises:
        NoRuntimeFound: If no executable runtime exists
    """
    for rel in RUNTIME_CANDIDATES:
        cand = os.path.join(prefix_dir, rel)
        if _is_executable_file(cand):
            return cand

    for cand in sorted(glob.glob(os.path.join(prefix_dir, RUNTIME_FALLBACK_PATTERN))):
        if _is_executable_file(cand):
            return cand

    raise NoRuntimeFound(f"no python executable found in {prefix_dir}")


def parse_version(output: str) -> str:
    """Extract an exact X.Y.Z from probe output.

    The first non-empty line must be the version and nothing else.

    Returns:
        Version string, or empty string when unparseable
    """
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        m = VERSION_RE.match(line)
        return m.group(1) if m else ""
    return ""


def probe_version(prefix_dir: str, timeout: float | None = None, verbose: bool = False) -> str:
    """Ask the installation's runtime for its own exact version.

    Args:
        prefix_dir: Installation directory
        timeout: Seconds before the probe counts as failed (default: TIMEOUT_SECONDS)
        verbose: Enable verbose logging

    Returns:
        Version string "X.Y.Z"

    Raises:
        NoRuntimeFound: If no runtime executable exists in prefix_dir
        ProbeFailed: If the runtime fails, times out or prints no version
    """
    exe = find_runtime(prefix_dir)
    vlog(f"Probing {exe}", verbose)

    try:
        proc = subprocess.run(
            [exe, *PROBE_ARGS],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
            timeout=timeout or TIMEOUT_SECONDS,
            check=False,
        )
    except subprocess.TimeoutExpired:
        raise ProbeFailed(f"{exe} timed out after {timeout or TIMEOUT_SECONDS}s")
    except OSError as e:
        raise ProbeFailed(f"{exe} could not be executed: {e}")

    if proc.returncode != 0:
        raise ProbeFailed(f"{exe} exited with status {proc.returncode}")

    version = parse_version(proc.stdout or "")
    if not version:
        raise ProbeFailed(f"{exe} printed no X.Y.Z version")
    return version
