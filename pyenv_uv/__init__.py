"""
pyenv-uv - patch-version aliases for uv-managed pythons.

Core Modules:
- Detection: runtime discovery and version probing
- Collection: installation records from registered links
- Overrides: persisted manual pins (alias -> installation)
- Reconciliation: grouping by version and canonical choice
- Links: safe/force management of the shared versions directory
- Refresh: end-to-end orchestration and host rehash
"""

__version__ = "1.0.0"

from .errors import (
    PyenvUvError,
    NoRuntimeFound,
    ProbeFailed,
    ProtectedForeignAlias,
    OverrideUnresolvable,
    AliasOccupied,
    RequiredToolMissing,
    CacheInvalidationFailed,
)
from .config import Config, load_config, load_config_file, validate_config
from .environment import HostLayout, resolve_layout, require_commands, run_rehash
from .detection import find_runtime, probe_version, parse_version
from .collectors import InstallationRecord, collect_records, registered_links
from .overrides import OverrideEntry, OverrideStore
from .links import LinkManager, is_within
from .reconcile import AliasResolution, group_records, resolve_aliases, resolve_group
from .refresh import (
    RefreshResult,
    refresh_aliases,
    set_override,
    unset_override,
    is_protected,
    sync_registrations,
    sync,
)

__all__ = [
    "__version__",
    "PyenvUvError",
    "NoRuntimeFound",
    "ProbeFailed",
    "ProtectedForeignAlias",
    "OverrideUnresolvable",
    "AliasOccupied",
    "RequiredToolMissing",
    "CacheInvalidationFailed",
    "Config",
    "load_config",
    "load_config_file",
    "validate_config",
    "HostLayout",
    "resolve_layout",
    "require_commands",
    "run_rehash",
    "find_runtime",
    "probe_version",
    "parse_version",
    "InstallationRecord",
    "collect_records",
    "registered_links",
    "OverrideEntry",
    "OverrideStore",
    "LinkManager",
    "is_within",
    "AliasResolution",
    "group_records",
    "resolve_aliases",
    "resolve_group",
    "RefreshResult",
    "refresh_aliases",
    "set_override",
    "unset_override",
    "is_protected",
    "sync_registrations",
    "sync",
]
