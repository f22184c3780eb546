"""
Error taxonomy for alias reconciliation.

Recoverable errors are raised at component boundaries and handled by the
caller that owns the policy; only RequiredToolMissing and
CacheInvalidationFailed are meant to reach the command line.
"""

from __future__ import annotations


class PyenvUvError(Exception):
    """
    Base exception for pyenv-uv errors.

    Attributes:
        message: Human-readable error message
        remediation: Suggested fix for the error
    """
    exit_status = 1

    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(message)


class NoRuntimeFound(PyenvUvError):
    """No executable runtime inside an installation directory."""


class ProbeFailed(PyenvUvError):
    """Runtime exited non-zero, timed out or printed no X.Y.Z version."""


class ProtectedForeignAlias(PyenvUvError):
    """Alias exists and is owned by something else."""

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(
            f"alias '{alias}' exists and points to a non-uv python; not overriding."
        )


class OverrideUnresolvable(PyenvUvError):
    """Stored override does not name any current installation."""

    def __init__(self, alias: str, target: str, reason: str):
        self.alias = alias
        self.target = target
        super().__init__(
            f"override for '{alias}' points to '{target}' but {reason}; ignoring override."
        )


class AliasOccupied(PyenvUvError):
    """Link Manager refused to replace an entry it does not own."""

    def __init__(self, name: str, existing: str | None = None):
        self.name = name
        self.existing = existing
        detail = f" (-> {existing})" if existing else ""
        super().__init__(f"'{name}' is occupied{detail}; refusing to replace it.")


class RequiredToolMissing(PyenvUvError):
    """A required external command is not on PATH."""
    exit_status = 127

    def __init__(self, command: str):
        self.command = command
        super().__init__(
            f"required command not found: {command}",
            remediation=f"Install '{command}' or add it to PATH",
        )


class CacheInvalidationFailed(PyenvUvError):
    """Host rehash hook exited non-zero."""

    def __init__(self, command: str, returncode: int):
        self.command = command
        self.returncode = returncode
        # Killed by signal N: report 128 + N like a shell does
        self.exit_status = 128 - returncode if returncode < 0 else (returncode or 1)
        super().__init__(f"'{command}' failed with exit status {returncode}")
