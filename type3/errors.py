"""Error taxonomy for the type3 scaffolder.

Configuration, provisioning and generation errors are fatal and abort the
run.  Installation errors are recoverable: the orchestrator downgrades them
to a warning because the generated tree is still usable.
"""

from __future__ import annotations


class Type3Error(Exception):
    """Base class for every error raised by the scaffolder."""


class ConfigurationError(Type3Error):
    """Raised when the configuration is invalid or names an unsupported combination."""


class ProvisioningError(Type3Error):
    """Raised when a directory or file of the project tree cannot be created."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class GenerationError(Type3Error):
    """Raised when a unit kind receives a variant key it cannot resolve.

    Valid configurations always resolve, so this indicates an internal defect
    in the variant tables rather than bad user input.
    """

    def __init__(self, unit_kind: str, key: tuple) -> None:
        self.unit_kind = unit_kind
        self.key = key
        super().__init__(f"No variant registered for {unit_kind} with key {key!r}")


class InstallationError(Type3Error):
    """Raised when the package manager exits with a non-zero status."""

    def __init__(self, message: str, manual_command: str) -> None:
        self.manual_command = manual_command
        super().__init__(message)
