"""
move_forge/exceptions/__init__.py
Custom exceptions for the application.
"""

from .forge_exceptions import (
    ConfigurationError,
    ForgeException,
    NoSourceError,
    NotFoundError,
    ValidationError,
)
from .integration_exceptions import (
    ExhaustedRetriesError,
    MalformedResponseError,
    ProcessTimeoutError,
    ProvisioningError,
    ToolchainInstallError,
    UpstreamError,
)

__all__ = [
    "ForgeException",
    "ValidationError",
    "NotFoundError",
    "NoSourceError",
    "ConfigurationError",
    "UpstreamError",
    "ExhaustedRetriesError",
    "MalformedResponseError",
    "ProvisioningError",
    "ToolchainInstallError",
    "ProcessTimeoutError",
]
