"""Errors raised by the package datastore."""

from __future__ import annotations


class DatastoreError(Exception):
    """Base class for datastore errors."""


class PackageNotFoundError(DatastoreError):
    """Raised when no upstream source is registered for a package."""

    def __init__(self, package_id: str) -> None:
        """Initialise with the unknown package identifier."""
        self.package_id = package_id
        super().__init__(f"Package not found in datastore: {package_id}")


class DatastoreLoadError(DatastoreError):
    """Raised when a datastore file cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialise with the file path and failure reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load datastore {path}: {reason}")
