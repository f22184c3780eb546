"""
Common utilities shared across pyenv_uv modules.
"""

from __future__ import annotations

import os
import re

from .logging_config import get_logger

PATCH_ALIAS_RE = re.compile(r"^[0-9]+\.[0-9]+\.[0-9]+$")


def is_patch_alias(name: str) -> bool:
    """Return True if name has the X.Y.Z shape of a patch alias."""
    return bool(PATCH_ALIAS_RE.match(name))


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or os.environ.get("PYENV_UV_DEBUG", "0") == "1":
        get_logger().debug(msg)
