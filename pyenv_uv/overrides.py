"""
Persistent alias override store.

The store is a UTF-8 text file with one ``alias<TAB>target`` entry per line.
Writers build a complete new file next to the old one and rename it into
place, so readers only ever see a whole store.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

DELIMITER = "\t"


@dataclass(frozen=True)
class OverrideEntry:
    """Pin of an alias to an installation id or absolute path."""

    alias: str
    target: str

    def to_line(self) -> str:
        return f"{self.alias}{DELIMITER}{self.target}\n"


def _check_field(name: str, value: str) -> None:
    if not value:
        raise ValueError(f"Override {name} must not be empty")
    if DELIMITER in value or "\n" in value or "\r" in value:
        raise ValueError(f"Override {name} must not contain tabs or newlines: {value!r}")


class OverrideStore:
    """
    Override store backed by a tab-separated file.

    A missing file is an empty store. ``set`` and ``unset`` create the file
    and its directory on first use.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def entries(self) -> list[OverrideEntry]:
        """Return all entries in file order; malformed lines are ignored."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                lines = f.read().split("\n")
        except FileNotFoundError:
            return []

        entries = []
        for line in lines:
            alias, sep, target = line.partition(DELIMITER)
            if not sep or not alias:
                continue
            entries.append(OverrideEntry(alias, target))
        return entries

    def get(self, alias: str) -> str | None:
        """Return the target pinned for alias (first match), or None."""
        for entry in self.entries():
            if entry.alias == alias:
                return entry.target
        return None

    def set(self, alias: str, target: str) -> None:
        """Replace any entry for alias with alias -> target."""
        _check_field("alias", alias)
        _check_field("target", target)
        kept = [e for e in self.entries() if e.alias != alias]
        kept.append(OverrideEntry(alias, target))
        self._write(kept)

    def unset(self, alias: str) -> bool:
        """
        Remove the entry for alias.

        Returns:
            True if an entry was removed, False if there was none
        """
        if not self.path.exists():
            return False
        entries = self.entries()
        kept = [e for e in entries if e.alias != alias]
        if len(kept) == len(entries):
            return False
        self._write(kept)
        return True

    def _write(self, entries: list[OverrideEntry]) -> None:
        """Atomic write: write to a temp file in the same directory, then rename."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.writelines(e.to_line() for e in entries)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
