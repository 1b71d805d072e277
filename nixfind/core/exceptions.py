"""
Exceptions for nixfind.

This module contains the exception hierarchy for nixfind operations.
"""

from typing import Optional


class NixfindError(Exception):
    """Base exception for nixfind operations."""
    pass


class MalformedRegistry(NixfindError):
    """Raised when a registry document is not valid JSON or has the wrong shape."""
    pass


class MissingVersion(NixfindError):
    """Raised when an installable registry entry has no version."""

    def __init__(self, attribute: str):
        super().__init__(f"registry entry '{attribute}' has no version")
        self.attribute = attribute


class StorageFailure(NixfindError):
    """Raised when the index database cannot be created or written."""
    pass


class SearchReadFailure(NixfindError):
    """Raised when the index cannot be read or a row fails to decode."""
    pass


class SearchCancelled(NixfindError):
    """Raised when a search is cancelled before it completes."""
    pass


class SubprocessFailure(NixfindError):
    """Raised when the registry generator cannot be run or exits non-zero."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ConfigurationError(NixfindError):
    """Raised when configuration is invalid."""
    pass
