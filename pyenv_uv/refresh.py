"""
Refresh orchestration: collect → resolve → link → rehash.

Also hosts the small operations the command line builds on (pinning,
protection queries, registration sync).
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Callable

from .collectors import InstallationRecord, collect_records
from .common import is_patch_alias, vlog
from .environment import HostLayout, require_commands, run_rehash
from .errors import AliasOccupied
from .links import LinkManager
from .logging_config import get_logger
from .overrides import OverrideStore
from .reconcile import AliasResolution, resolve_aliases

DEFAULT_REHASH_COMMAND = "pyenv-rehash"


@dataclass(frozen=True)
class RefreshResult:
    """
    Result of one refresh.

    Attributes:
        records: Installation records collected
        resolutions: One resolution per version group
        link_actions: alias -> "created" / "replaced" / "unchanged" / "occupied" / "failed"
        duration_seconds: Total execution time
    """
    records: tuple[InstallationRecord, ...]
    resolutions: tuple[AliasResolution, ...]
    link_actions: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def changed(self) -> list[str]:
        return [a for a, action in self.link_actions.items() if action in ("created", "replaced")]

    @property
    def protected(self) -> list[str]:
        return [r.alias for r in self.resolutions if r.action == "protected"]

    @property
    def conflicts(self) -> list[str]:
        return [r.alias for r in self.resolutions if r.conflict]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "records": [r.to_dict() for r in self.records],
            "resolutions": [r.to_dict() for r in self.resolutions],
            "link_actions": dict(self.link_actions),
            "duration_seconds": self.duration_seconds,
        }

    def summary(self) -> str:
        """Human-readable summary."""
        return f"""
Refresh Summary:
  Installations: {len(self.records)}
  Versions: {len(self.resolutions)}
  Aliases changed: {len(self.changed)}
  Protected: {len(self.protected)}
  Conflicts: {len(self.conflicts)}
  Duration: {self.duration_seconds:.1f}s
"""


def _rehash_hook(rehash: Callable[[], None] | None, rehash_command: str, verbose: bool) -> Callable[[], None]:
    if rehash is not None:
        return rehash
    # Fatal before any mutation when the hook is missing
    require_commands(rehash_command, verbose=verbose)
    return lambda: run_rehash(rehash_command, verbose=verbose)


def refresh_aliases(
    layout: HostLayout,
    timeout: float | None = None,
    rehash_command: str = DEFAULT_REHASH_COMMAND,
    rehash: Callable[[], None] | None = None,
    verbose: bool = False,
) -> RefreshResult:
    """
    Reconcile patch aliases with the registered installations.

    Per-installation and per-version problems are logged and skipped. The
    rehash hook always runs last; its failure propagates after the aliases
    have been written.

    Args:
        layout: Resolved host layout
        timeout: Per-probe timeout in seconds
        rehash_command: Host cache-invalidation command
        rehash: Callable used instead of rehash_command (for embedding)
        verbose: Enable verbose logging

    Raises:
        RequiredToolMissing: If the rehash command is missing (nothing is touched)
        CacheInvalidationFailed: If the rehash hook fails
    """
    start = time.time()
    hook = _rehash_hook(rehash, rehash_command, verbose)

    records = collect_records(layout.versions_dir, layout.prefix, timeout=timeout, verbose=verbose)
    if not records:
        vlog("No registered installations reported a version", verbose)
        hook()
        return RefreshResult((), (), {}, time.time() - start)

    links = LinkManager(layout.versions_dir, layout.managed_root, verbose=verbose)
    store = OverrideStore(layout.overrides_file)
    resolutions = resolve_aliases(records, links, store, layout.prefix)

    link_actions: dict[str, str] = {}
    for resolution in resolutions:
        if resolution.chosen is None:
            continue
        try:
            link_actions[resolution.alias] = links.link(resolution.alias, resolution.chosen.path, "safe")
        except AliasOccupied as e:
            get_logger().warning(e.message)
            link_actions[resolution.alias] = "occupied"
        except OSError as e:
            get_logger().warning(f"could not link {resolution.alias} -> {resolution.chosen.path}: {e}")
            link_actions[resolution.alias] = "failed"

    hook()
    return RefreshResult(tuple(records), tuple(resolutions), link_actions, time.time() - start)


def set_override(layout: HostLayout, alias: str, target: str) -> None:
    """
    Pin alias to target (an installation id or an absolute path).

    Raises:
        ValueError: If alias is not X.Y.Z or target is not storable
    """
    if not is_patch_alias(alias):
        raise ValueError(f"Invalid alias: {alias!r}. Must look like X.Y.Z")
    OverrideStore(layout.overrides_file).set(alias, target)


def unset_override(layout: HostLayout, alias: str) -> bool:
    """Remove the pin for alias; returns False if there was none."""
    return OverrideStore(layout.overrides_file).unset(alias)


def is_protected(layout: HostLayout, alias: str) -> bool:
    """True if alias exists in the versions directory and is not owned by pyenv-uv."""
    return LinkManager(layout.versions_dir, layout.managed_root).is_protected(alias)


def sync_registrations(layout: HostLayout, verbose: bool = False) -> list[str]:
    """
    Register every installation directory under the managed root.

    Each directory ``D`` gets a ``<prefix><basename(D)>`` link in the versions
    directory. Names occupied by something foreign are skipped with a warning.

    Returns:
        Installation ids now pointing at their directory
    """
    try:
        names = sorted(os.listdir(layout.managed_root))
    except OSError:
        vlog(f"Managed root {layout.managed_root} is not readable", verbose)
        return []

    links = LinkManager(layout.versions_dir, layout.managed_root, verbose=verbose)
    registered = []
    for name in names:
        path = os.path.join(layout.managed_root, name)
        if name.startswith(".") or not os.path.isdir(path):
            continue
        installation_id = f"{layout.prefix}{name}"
        try:
            links.link(installation_id, path, "safe")
        except AliasOccupied as e:
            get_logger().warning(e.message)
            continue
        registered.append(installation_id)
    return registered


def sync(
    layout: HostLayout,
    refresh: bool = True,
    timeout: float | None = None,
    rehash_command: str = DEFAULT_REHASH_COMMAND,
    rehash: Callable[[], None] | None = None,
    verbose: bool = False,
) -> RefreshResult | None:
    """
    Register all managed installations, then refresh aliases.

    With refresh disabled, owned patch aliases are cleared instead and the
    rehash hook still runs.
    """
    hook = _rehash_hook(rehash, rehash_command, verbose)
    sync_registrations(layout, verbose=verbose)
    if refresh:
        return refresh_aliases(layout, timeout=timeout, rehash=hook, verbose=verbose)
    LinkManager(layout.versions_dir, layout.managed_root, verbose=verbose).clear_aliases()
    hook()
    return None
