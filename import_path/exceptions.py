"""Exception hierarchy for import-path.

Only boundary errors (bad matcher, broken package registry, invalid
options) are raised. Anomalies met while searching degrade to
diagnostics instead.
"""

from __future__ import annotations


class ImportPathError(Exception):
    """Base exception for all import-path errors."""


class InvalidMatcherError(ImportPathError, ValueError):
    """The import to find is neither a URI, a pattern nor a predicate."""

    def __init__(self, target: object, reason: str = ""):
        self.target = target
        message = f"Invalid import to find: {target!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class PackageConfigError(ImportPathError):
    """The package registry file exists but cannot be understood."""

    def __init__(self, path: object, reason: str):
        self.path = path
        super().__init__(f"Invalid package config at {path}: {reason}")
