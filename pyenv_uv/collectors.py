"""
Collection of installation records from registered installation links.

A registered installation is a symlink directly under the versions directory
whose name starts with the configured prefix; its name is the installation id.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .common import vlog
from .detection import probe_version
from .errors import NoRuntimeFound, ProbeFailed


@dataclass(frozen=True)
class InstallationRecord:
    """
    One successfully probed installation.

    Attributes:
        version: Version reported by the runtime ("X.Y.Z")
        path: Installation directory (target of the registration link)
        installation_id: Registration link name, prefix included
    """
    version: str
    path: str
    installation_id: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "path": self.path,
            "installation_id": self.installation_id,
        }


def read_link_target(link_path: str) -> str:
    """Return a symlink's target, anchored to the link's directory if relative."""
    target = os.readlink(link_path)
    if not os.path.isabs(target):
        target = os.path.normpath(os.path.join(os.path.dirname(link_path), target))
    return target


def registered_links(versions_dir: str, prefix: str) -> list[tuple[str, str]]:
    """
    List registration links as (installation_id, target) pairs.

    Returns:
        Pairs sorted by name; empty if versions_dir is missing or unreadable
    """
    try:
        names = sorted(os.listdir(versions_dir))
    except OSError:
        return []

    links = []
    for name in names:
        if not name.startswith(prefix):
            continue
        link = os.path.join(versions_dir, name)
        if not os.path.islink(link):
            continue
        try:
            links.append((name, read_link_target(link)))
        except OSError:
            continue
    return links


def collect_records(
    versions_dir: str,
    prefix: str,
    timeout: float | None = None,
    verbose: bool = False,
) -> list[InstallationRecord]:
    """
    Probe every registered installation and return one record per success.

    Installations whose directory is gone or whose probe fails are skipped.

    Args:
        versions_dir: Shared versions directory
        prefix: Registration prefix (e.g. "uv-")
        timeout: Per-probe timeout in seconds
        verbose: Enable verbose logging

    Returns:
        List of InstallationRecord (order is not significant)
    """
    records = []
    for installation_id, target in registered_links(versions_dir, prefix):
        if not os.path.isdir(target):
            vlog(f"Skipping {installation_id}: {target} does not exist", verbose)
            continue
        try:
            version = probe_version(target, timeout=timeout, verbose=verbose)
        except (NoRuntimeFound, ProbeFailed) as e:
            vlog(f"Skipping {installation_id}: {e}", verbose)
            continue
        records.append(InstallationRecord(version, target, installation_id))
        vlog(f"  Found: {installation_id} -> {target} ({version})", verbose)
    return records
