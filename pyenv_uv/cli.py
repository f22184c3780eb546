"""
Command line entry point for pyenv-uv alias management.

Usage:
    pyenv-uv refresh                      # Reconcile X.Y.Z aliases
    pyenv-uv alias 3.12.2 uv-cpython-...  # Pin an alias, then refresh
    pyenv-uv unalias 3.12.2               # Drop a pin, then refresh
    pyenv-uv sync [--no-refresh-aliases]  # Register managed installations
    pyenv-uv protected 3.12.2             # Exit 0 if alias is foreign
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import __version__
from .config import load_config, validate_config
from .environment import require_commands, resolve_layout, run_rehash
from .errors import PyenvUvError
from .links import LinkManager
from .logging_config import setup_logging
from .overrides import OverrideStore
from .refresh import is_protected, refresh_aliases, set_override, sync, unset_override


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyenv-uv",
        description="Keep X.Y.Z version aliases in sync with uv-managed pythons.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose diagnostics")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only warnings and errors")
    parser.add_argument("--log-file", help="Also write a debug log to this file")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("refresh", help="Reconcile patch aliases")

    p = sub.add_parser("alias", help="Pin an alias to an installation and refresh")
    p.add_argument("alias", help="Patch alias (X.Y.Z)")
    p.add_argument("target", help="Installation id (e.g. uv-cpython-3.12.2-...) or absolute path")

    p = sub.add_parser("unalias", help="Remove a pin and refresh")
    p.add_argument("alias")

    sub.add_parser("overrides", help="List pinned aliases")

    p = sub.add_parser("sync", help="Register every managed installation, then refresh")
    p.add_argument("--no-refresh-aliases", action="store_true",
                   help="Clear owned patch aliases instead of refreshing them")

    sub.add_parser("clear-aliases", help="Remove every owned patch alias")

    p = sub.add_parser("uninstall", help="Remove the links pointing at an installation")
    p.add_argument("--all-links", action="store_true", help="Also remove custom names")
    p.add_argument("name")

    p = sub.add_parser("protected", help="Exit 0 if the alias is owned by something else")
    p.add_argument("alias")

    return parser


def _run(args: argparse.Namespace, logger: logging.Logger) -> int:
    config = load_config(args.config, verbose=args.verbose)
    for warning in validate_config(config):
        logger.warning(warning)
    layout = resolve_layout(config, verbose=args.verbose)
    if args.command not in ("overrides", "protected"):
        require_commands(config.rehash_command, verbose=args.verbose)

    common = dict(timeout=config.probe_timeout, rehash_command=config.rehash_command, verbose=args.verbose)

    if args.command == "refresh":
        refresh_aliases(layout, **common)
    elif args.command == "alias":
        set_override(layout, args.alias, args.target)
        refresh_aliases(layout, **common)
    elif args.command == "unalias":
        unset_override(layout, args.alias)
        refresh_aliases(layout, **common)
    elif args.command == "overrides":
        for entry in OverrideStore(layout.overrides_file).entries():
            print(f"{entry.alias}\t{entry.target}")
    elif args.command == "sync":
        sync(layout, refresh=not args.no_refresh_aliases, **common)
    elif args.command == "clear-aliases":
        LinkManager(layout.versions_dir, layout.managed_root, verbose=args.verbose).clear_aliases()
        run_rehash(config.rehash_command, verbose=args.verbose)
    elif args.command == "uninstall":
        links = LinkManager(layout.versions_dir, layout.managed_root, verbose=args.verbose)
        links.remove_links(args.name, layout.prefix, all_links=args.all_links)
        run_rehash(config.rehash_command, verbose=args.verbose)
    elif args.command == "protected":
        return 0 if is_protected(layout, args.alias) else 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)
    try:
        return _run(args, logger)
    except PyenvUvError as e:
        logger.error(e.message)
        if e.remediation:
            logger.error(e.remediation)
        return e.exit_status
    except ValueError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
