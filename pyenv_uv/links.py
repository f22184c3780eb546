"""
Link management for the shared versions directory.

Every mutation of the versions directory goes through LinkManager so the
ownership rule is enforced in one place: an entry belongs to pyenv-uv iff it
is a symlink whose target lies inside the managed-installations root.
"""

from __future__ import annotations

import os
import shutil
import tempfile

from .collectors import read_link_target
from .common import is_patch_alias, vlog
from .errors import AliasOccupied, PyenvUvError
from .logging_config import get_logger

LINK_MODES = ("safe", "force")


def is_within(path: str, root: str) -> bool:
    """Return True if path is root or lies below it (lexical check)."""
    path = os.path.abspath(path)
    root = os.path.abspath(root)
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        return False


class LinkManager:
    """
    Owner of write access to the versions directory.

    Attributes:
        versions_dir: Shared alias namespace
        managed_root: Provenance root of installations owned by pyenv-uv
    """

    def __init__(self, versions_dir: str, managed_root: str, verbose: bool = False):
        self.versions_dir = versions_dir
        self.managed_root = managed_root
        self.verbose = verbose

    def path_for(self, name: str) -> str:
        if not name or name in (".", "..") or os.sep in name:
            raise ValueError(f"Invalid link name: {name!r}")
        return os.path.join(self.versions_dir, name)

    def is_managed_path(self, path: str) -> bool:
        """True if path lies under the managed root, lexically or after resolving symlinks."""
        if is_within(path, self.managed_root):
            return True
        return is_within(os.path.realpath(path), os.path.realpath(self.managed_root))

    def exists(self, name: str) -> bool:
        return os.path.lexists(self.path_for(name))

    def target_of(self, name: str) -> str | None:
        """Target of the symlink called name, or None if it is not a symlink."""
        path = self.path_for(name)
        if not os.path.islink(path):
            return None
        return read_link_target(path)

    def is_owned(self, name: str) -> bool:
        """True if name is a symlink into the managed root."""
        target = self.target_of(name)
        return target is not None and self.is_managed_path(target)

    def is_protected(self, name: str) -> bool:
        """True if name exists and is not owned by pyenv-uv."""
        return self.exists(name) and not self.is_owned(name)

    def link(self, name: str, target: str, mode: str = "safe") -> str:
        """
        Point name at target.

        Args:
            name: Entry name inside the versions directory
            target: Installation path the entry should point at
            mode: 'safe' replaces only owned symlinks, 'force' replaces anything

        Returns:
            "created", "replaced" or "unchanged"

        Raises:
            AliasOccupied: In safe mode, if name exists and is not owned
        """
        if mode not in LINK_MODES:
            raise ValueError(f"Invalid link mode: {mode}. Must be 'safe' or 'force'")

        path = self.path_for(name)
        os.makedirs(self.versions_dir, exist_ok=True)

        if not os.path.lexists(path):
            os.symlink(target, path)
            vlog(f"Linked {name} -> {target}", self.verbose)
            return "created"

        current = self.target_of(name)
        if current is not None and os.path.normpath(current) == os.path.normpath(target):
            return "unchanged"

        if mode == "safe" and not self.is_owned(name):
            raise AliasOccupied(name, current)

        if current is None and os.path.isdir(path):
            shutil.rmtree(path)
            os.symlink(target, path)
        else:
            self._swap_symlink(path, target)
        vlog(f"Relinked {name} -> {target} (was {current})", self.verbose)
        return "replaced"

    def _swap_symlink(self, path: str, target: str) -> None:
        """Replace path by a symlink to target with a single rename."""
        tmp_dir = tempfile.mkdtemp(prefix=".pyenv-uv.", dir=self.versions_dir)
        tmp_link = os.path.join(tmp_dir, "link")
        try:
            os.symlink(target, tmp_link)
            os.replace(tmp_link, path)
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)

    def unlink(self, name: str) -> None:
        """Remove a symlink; never follows it into the installation."""
        path = self.path_for(name)
        if not os.path.islink(path):
            raise PyenvUvError(f"'{name}' is not a symlink; refusing to remove it")
        os.unlink(path)
        vlog(f"Removed {name}", self.verbose)

    def symlinks(self) -> list[tuple[str, str]]:
        """All (name, target) symlinks directly in the versions directory, by name."""
        try:
            names = sorted(os.listdir(self.versions_dir))
        except OSError:
            return []
        result = []
        for name in names:
            path = os.path.join(self.versions_dir, name)
            if os.path.islink(path):
                result.append((name, read_link_target(path)))
        return result

    def clear_aliases(self) -> int:
        """
        Remove every owned patch alias (X.Y.Z); foreign aliases stay.

        Returns:
            Number of aliases removed
        """
        removed = 0
        for name, target in self.symlinks():
            if is_patch_alias(name) and self.is_managed_path(target):
                self.unlink(name)
                removed += 1
        if removed:
            get_logger().info(f"cleared {removed} patch alias(es)")
        return removed

    def remove_links(self, name: str, prefix: str, all_links: bool = False) -> list[str]:
        """
        Remove name and the other pyenv-uv names pointing at the same installation.

        Without all_links only patch aliases and prefixed registration links
        are removed alongside name; custom names stay. The installation
        itself is never touched.

        Returns:
            Names removed, name first

        Raises:
            PyenvUvError: If name is missing or not owned by pyenv-uv
        """
        if not self.exists(name):
            raise PyenvUvError(f"version '{name}' not installed")
        if not self.is_owned(name):
            raise PyenvUvError(f"'{name}' is not a uv-managed python; refusing to remove it")

        target = os.path.normpath(self.target_of(name))
        self.unlink(name)
        removed = [name]
        for other, other_target in self.symlinks():
            if os.path.normpath(other_target) != target:
                continue
            if all_links or is_patch_alias(other) or other.startswith(prefix):
                self.unlink(other)
                removed.append(other)
        return removed
