"""
E2B-backed sandbox provider.

Adapts the e2b SDK's ``AsyncSandbox`` to the SandboxProvider protocol.
"""

from __future__ import annotations

from typing import Optional

from e2b import AsyncSandbox, CommandExitException, TimeoutException

from shared.config import SharedConfig

from ..error_instrumentation import log_with_context
from ..exceptions import ConfigurationError, ProcessTimeoutError, ProvisioningError
from .sandbox_provider import ProcessResult


class E2BSandboxProvider:
    """
    Remote microVM sandboxes from E2B.

    Attributes:
        api_key: E2B credential
        template: Sandbox template to boot (default: "base")
        lifetime_seconds: Provider-side lifetime, a backstop if teardown
            never reaches the remote service
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        template: str = SharedConfig.SANDBOX_TEMPLATE,
        lifetime_seconds: int = SharedConfig.SANDBOX_TIMEOUT,
    ) -> None:
        self.api_key = api_key if api_key is not None else SharedConfig.get_e2b_api_key()
        if not self.api_key:
            raise ConfigurationError(SharedConfig.E2B_API_KEY_ENV, service="sandbox provisioning")
        self.template = template
        self.lifetime_seconds = lifetime_seconds

    async def provision(self) -> AsyncSandbox:
        try:
            sandbox = await AsyncSandbox.create(
                template=self.template,
                api_key=self.api_key,
                timeout=self.lifetime_seconds,
            )
        except Exception as e:
            raise ProvisioningError(f"Failed to create E2B sandbox: {e}", cause=e) from e

        log_with_context(
            "info",
            "e2b_sandbox_created",
            sandbox_id=sandbox.sandbox_id,
            template=self.template,
        )
        return sandbox

    async def run(
        self,
        handle: AsyncSandbox,
        command: str,
        cwd: Optional[str],
        timeout: float,
    ) -> ProcessResult:
        try:
            result = await handle.commands.run(command, cwd=cwd, timeout=timeout)
        except CommandExitException as e:
            # Non-zero exit is data for the caller
            return ProcessResult(exit_code=e.exit_code, stdout=e.stdout, stderr=e.stderr)
        except TimeoutException as e:
            raise ProcessTimeoutError(command, timeout) from e

        return ProcessResult(
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    async def write_file(self, handle: AsyncSandbox, path: str, content: str) -> None:
        await handle.files.write(path, content)

    async def make_dir(self, handle: AsyncSandbox, path: str) -> None:
        await handle.files.make_dir(path)

    async def teardown(self, handle: AsyncSandbox) -> None:
        await handle.kill()
        log_with_context("info", "e2b_sandbox_killed", sandbox_id=handle.sandbox_id)
