"""
Integration Exception Classes.

Exceptions raised by the code generation client and the sandbox manager.
All exceptions inherit from ForgeException for consistent error handling.

This module provides:
- UpstreamError: remote service rejected the request (permanent)
- ExhaustedRetriesError: rate limiting outlasted the retry budget
- MalformedResponseError: remote succeeded but the payload is unusable
- ProvisioningError: sandbox could not be created
- ToolchainInstallError: compiler bootstrap failed inside the sandbox
- ProcessTimeoutError: a sandbox process exceeded its time bound
"""

from __future__ import annotations

from typing import Optional

from .forge_exceptions import ForgeException


class UpstreamError(ForgeException):
    """
    Raised when the remote service answers with a non-2xx, non-429 status,
    or cannot be reached at all (``status_code`` is None then).

    This is a permanent error for the call - do not retry.

    Example:
        >>> raise UpstreamError(401, "Unauthorized")
    """

    def __init__(
        self,
        status_code: Optional[int],
        status_text: str,
        cause: Exception | None = None,
    ) -> None:
        """
        Initialize UpstreamError.

        Args:
            status_code: HTTP status, or None for transport failures
            status_text: Reason phrase or transport error description
            cause: Optional underlying exception
        """
        if status_code is None:
            message = f"OpenRouter API unreachable: {status_text}"
        else:
            message = f"OpenRouter API error: {status_code} {status_text}"
        super().__init__(message, error_code="UPSTREAM_ERROR")
        self.status_code = status_code
        self.status_text = status_text
        self.cause = cause
        if cause:
            self.__cause__ = cause


class ExhaustedRetriesError(ForgeException):
    """
    Raised when every attempt was rate limited (HTTP 429).

    Attributes:
        attempts: Number of requests performed
        model: Model identifier used on the final attempt
    """

    def __init__(self, attempts: int, model: str) -> None:
        super().__init__(
            f"OpenRouter API error: too many retries after 429 "
            f"({attempts} attempts, last model {model})",
            error_code="EXHAUSTED_RETRIES",
        )
        self.attempts = attempts
        self.model = model


class MalformedResponseError(ForgeException):
    """Raised when a successful response carries no usable choice."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="MALFORMED_RESPONSE")


class ProvisioningError(ForgeException):
    """
    Raised when the ephemeral sandbox cannot be provisioned
    (network failure, quota, remote error).

    Not retried by the sandbox manager.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message, error_code="PROVISIONING_ERROR")
        self.cause = cause
        if cause:
            self.__cause__ = cause


class ToolchainInstallError(ForgeException):
    """
    Raised when the compiler toolchain cannot be installed in the sandbox.

    Attributes:
        exit_code: Exit code of the bootstrap step, if it ran to completion
        stderr: Captured error output of the bootstrap step
    """

    def __init__(
        self,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
        cause: Exception | None = None,
        error_code: str = "TOOLCHAIN_INSTALL_ERROR",
    ) -> None:
        super().__init__(message, error_code=error_code)
        self.exit_code = exit_code
        self.stderr = stderr
        self.cause = cause
        if cause:
            self.__cause__ = cause


class ProcessTimeoutError(ToolchainInstallError):
    """Raised when a sandbox step exceeds its time bound."""

    def __init__(self, step: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Sandbox step '{step}' timed out after {timeout_seconds}s",
            error_code="PROCESS_TIMEOUT",
        )
        self.step = step
        self.timeout_seconds = timeout_seconds
