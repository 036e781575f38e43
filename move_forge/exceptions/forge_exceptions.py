"""
move_forge/exceptions/forge_exceptions.py
Custom exceptions with actionable error messages.
"""

from __future__ import annotations


class ForgeException(Exception):
    """Base exception for all move-forge errors."""

    def __init__(self, message: str, error_code: str = "UNKNOWN") -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(f"[{error_code}] {message}")


class ValidationError(ForgeException):
    """Raised when an artifact parameter record fails validation.

    Carries every failing rule, not just the first one.
    """

    def __init__(self, errors: list[str], artifact_type: str = "") -> None:
        self.errors = list(errors)
        self.artifact_type = artifact_type
        prefix = f"Invalid {artifact_type} parameters" if artifact_type else "Invalid parameters"
        super().__init__(
            f"{prefix}: {'; '.join(self.errors)}",
            error_code="VALIDATION_ERROR",
        )


class NotFoundError(ForgeException):
    """Raised when a simulation id is unknown to the registry."""

    def __init__(self, simulation_id: str) -> None:
        super().__init__(
            f"Simulation '{simulation_id}' not found",
            error_code="NOT_FOUND",
        )
        self.simulation_id = simulation_id


class NoSourceError(ForgeException):
    """Raised when compilation is requested before any source was generated."""

    def __init__(self, simulation_id: str) -> None:
        super().__init__(
            f"No code generated for simulation '{simulation_id}'",
            error_code="NO_SOURCE",
        )
        self.simulation_id = simulation_id


class ConfigurationError(ForgeException):
    """
    Raised when a required credential is not configured.

    This is a permanent error - never retried.

    Example:
        >>> raise ConfigurationError("OPENROUTER_API_KEY")
    """

    def __init__(self, setting: str, service: str = "") -> None:
        target = f" for {service}" if service else ""
        super().__init__(
            f"{setting} is not configured{target}",
            error_code="CONFIGURATION_ERROR",
        )
        self.setting = setting
        self.service = service
