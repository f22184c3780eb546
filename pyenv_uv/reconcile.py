"""
Reconciliation of installation records into patch aliases.

Records are grouped by the version their runtime reports. For each group one
canonical installation is chosen: a valid manual override wins, otherwise the
member with the lexicographically smallest installation id. Aliases owned by
something else are left alone.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable

from .collectors import InstallationRecord, read_link_target
from .errors import OverrideUnresolvable, ProtectedForeignAlias
from .links import LinkManager
from .logging_config import get_logger
from .overrides import OverrideStore

# Command an operator runs to pin an alias (shown in conflict warnings)
PIN_COMMAND = "pyenv uv-alias"


@dataclass(frozen=True)
class AliasResolution:
    """
    Outcome of resolving one version group.

    Attributes:
        alias: Alias name (the reported version)
        candidates: Group members, sorted by installation id
        chosen: Canonical installation, or None if the alias is protected
        action: "protected", "override" or "canonical"
        override: Stored override target consulted for this alias, if any
        warnings: Operator-facing warnings emitted for this group
    """
    alias: str
    candidates: tuple[InstallationRecord, ...]
    chosen: InstallationRecord | None
    action: str
    override: str | None = None
    warnings: tuple[str, ...] = ()

    @property
    def conflict(self) -> bool:
        return len(self.candidates) > 1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "alias": self.alias,
            "candidates": [c.to_dict() for c in self.candidates],
            "chosen": self.chosen.to_dict() if self.chosen else None,
            "action": self.action,
            "override": self.override,
            "warnings": list(self.warnings),
        }


def group_records(records: Iterable[InstallationRecord]) -> dict[str, list[InstallationRecord]]:
    """
    Group records by version.

    Returns:
        Mapping version -> records sorted by installation id; versions in
        ascending string order
    """
    groups: dict[str, list[InstallationRecord]] = {}
    for record in records:
        groups.setdefault(record.version, []).append(record)
    return {
        version: sorted(groups[version], key=lambda r: r.installation_id)
        for version in sorted(groups)
    }


def strip_prefix(installation_id: str, prefix: str) -> str:
    """Display form of an id: without the registration prefix."""
    if prefix and installation_id.startswith(prefix):
        return installation_id[len(prefix):]
    return installation_id


def resolve_override_target(target: str, versions_dir: str) -> str | None:
    """
    Turn a stored override target into an installation path.

    Absolute targets must be existing directories. Anything else is looked up
    as a name in the versions directory; symlinks are followed one level.

    Returns:
        Installation path, or None if the target cannot be resolved
    """
    if os.path.isabs(target):
        return target if os.path.isdir(target) else None

    path = os.path.join(versions_dir, target)
    if os.path.islink(path):
        return read_link_target(path)
    if os.path.exists(path):
        return path
    return None


def match_override(
    target: str,
    group: list[InstallationRecord],
    versions_dir: str,
) -> InstallationRecord:
    """
    Find the group member an override target names.

    Raises:
        OverrideUnresolvable: If the target names no current group member
    """
    alias = group[0].version
    if not os.path.isabs(target):
        for record in group:
            if record.installation_id == target:
                return record

    resolved = resolve_override_target(target, versions_dir)
    if resolved is None:
        raise OverrideUnresolvable(alias, target, "it could not be resolved")

    resolved = os.path.normpath(resolved)
    for record in group:
        if os.path.normpath(record.path) == resolved:
            return record
    raise OverrideUnresolvable(alias, target, "it does not match any current uv candidate")


def _conflict_warning(alias: str, chosen: InstallationRecord, group: list[InstallationRecord], prefix: str) -> str:
    lines = [
        f"multiple toolchains report {alias}; chose '{strip_prefix(chosen.installation_id, prefix)}' -> {chosen.path}.",
        "to select a different one, run one of:",
    ]
    lines.extend(f"  {PIN_COMMAND} {alias} {r.installation_id}" for r in group)
    return "\n".join(lines)


def resolve_group(
    version: str,
    group: list[InstallationRecord],
    links: LinkManager,
    store: OverrideStore,
    prefix: str,
) -> AliasResolution:
    """
    Choose the canonical installation for one version group.

    Args:
        version: Reported version, used as alias name
        group: Members sorted by installation id
        links: Link manager of the versions directory
        store: Override store
        prefix: Registration prefix (for display)

    Returns:
        AliasResolution; chosen is None when the alias is protected
    """
    logger = get_logger()
    candidates = tuple(group)

    if links.is_protected(version):
        message = ProtectedForeignAlias(version).message
        logger.warning(message)
        return AliasResolution(version, candidates, None, "protected", warnings=(message,))

    warnings: list[str] = []
    override = store.get(version)
    if override:
        try:
            chosen = match_override(override, group, links.versions_dir)
        except OverrideUnresolvable as e:
            logger.warning(e.message)
            warnings.append(e.message)
        else:
            if len(group) > 1:
                message = (
                    f"multiple toolchains report {version}; using manual override "
                    f"'{override}' ({strip_prefix(chosen.installation_id, prefix)})."
                )
                logger.warning(message)
                warnings.append(message)
            return AliasResolution(version, candidates, chosen, "override", override, tuple(warnings))

    chosen = group[0]
    if len(group) > 1:
        message = _conflict_warning(version, chosen, group, prefix)
        logger.warning(message)
        warnings.append(message)
    return AliasResolution(version, candidates, chosen, "canonical", override, tuple(warnings))


def resolve_aliases(
    records: Iterable[InstallationRecord],
    links: LinkManager,
    store: OverrideStore,
    prefix: str,
) -> list[AliasResolution]:
    """Resolve every version group, in ascending version-string order."""
    return [
        resolve_group(version, group, links, store, prefix)
        for version, group in group_records(records).items()
    ]
