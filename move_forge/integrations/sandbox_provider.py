"""
Protocol Definitions for ephemeral sandbox providers.

The sandbox manager depends only on these primitives, so the remote
provider (E2B in production) can be swapped for a fake in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one process run inside a sandbox."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


@runtime_checkable
class SandboxProvider(Protocol):
    """
    Protocol for remote ephemeral execution environments.

    A handle returned by ``provision`` identifies one environment; it is
    used for exactly one compile attempt and then passed to ``teardown``.

    Example:
        >>> provider = E2BSandboxProvider(api_key="e2b_xxx")
        >>> handle = await provider.provision()
        >>> try:
        ...     result = await provider.run(handle, "echo hi", cwd=None, timeout=10)
        ... finally:
        ...     await provider.teardown(handle)
    """

    async def provision(self) -> Any:
        """
        Create a fresh, isolated environment.

        Raises:
            ProvisioningError: If the environment cannot be created
        """
        ...

    async def run(
        self,
        handle: Any,
        command: str,
        cwd: Optional[str],
        timeout: float,
    ) -> ProcessResult:
        """
        Run a foreground shell command and wait for it to exit.

        A non-zero exit code is returned in the result, never raised.

        Raises:
            ProcessTimeoutError: If the command outlives ``timeout``
        """
        ...

    async def write_file(self, handle: Any, path: str, content: str) -> None:
        """Write a text file inside the environment."""
        ...

    async def make_dir(self, handle: Any, path: str) -> None:
        """Create a directory (and parents) inside the environment."""
        ...

    async def teardown(self, handle: Any) -> None:
        """Destroy the environment. Safe to call once per handle."""
        ...
