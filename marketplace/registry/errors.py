"""Errors specific to registry reconciliation."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for registry errors."""


class RegistryConfigError(RegistryError):
    """Raised when registry configuration is invalid."""

    @classmethod
    def missing_image(cls) -> RegistryConfigError:
        """Return an error when no registry server image is configured."""
        return cls("MARKETPLACE_REGISTRY_IMAGE environment variable is required")

    @classmethod
    def empty_image(cls) -> RegistryConfigError:
        """Return an error when the configured image is blank."""
        return cls("Registry server image must be non-empty")


class DescriptorError(RegistryError):
    """Raised when a registry descriptor cannot be loaded."""

    def __init__(self, path: str, reason: str) -> None:
        """Initialise with the descriptor path and failure reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid registry descriptor {path}: {reason}")
