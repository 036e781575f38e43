"""
Sandbox Lifecycle Manager
=========================

Compiles Move source inside a freshly provisioned, disposable sandbox.

One call = one environment: provision, bootstrap the Aptos CLI, stage a
Move package, run ``aptos move compile``, classify the output, tear down.
Teardown runs on every exit path and never masks the primary outcome.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Optional, TypeVar

from shared.config import SharedConfig

from ..exceptions import (
    ConfigurationError,
    ForgeException,
    ProcessTimeoutError,
    ProvisioningError,
    ToolchainInstallError,
)
from ..integrations.sandbox_provider import ProcessResult, SandboxProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

MOVE_MANIFEST = """[package]
name = "SandboxProject"
version = "1.0.0"
authors = []

[addresses]
ProjectAddress = "0x1"

[dependencies.AptosFramework]
git = "https://github.com/aptos-labs/aptos-core.git"
rev = "mainnet"
subdir = "aptos-move/framework/aptos-framework"
"""


@dataclass
class CompileOutcome:
    """Result of one compiler invocation. A failing compile is still an outcome."""

    success: bool
    stdout: str
    stderr: str
    exit_code: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration_seconds: Optional[float] = None


def classify_compile_output(result: ProcessResult) -> tuple[list[str], list[str]]:
    """
    Split compiler output into (errors, warnings).

    On failure every non-empty stderr line is an error; when stderr is
    empty the non-empty stdout lines are used, and failing that a single
    line naming the exit code, so a failed compile always explains itself.
    On success stdout lines mentioning "warning" (any case) are warnings.
    """
    if result.exit_code != 0:
        errors = [line.rstrip() for line in result.stderr.splitlines() if line.strip()]
        if not errors:
            errors = [line.rstrip() for line in result.stdout.splitlines() if line.strip()]
        if not errors:
            errors = [f"Compiler exited with code {result.exit_code}"]
        return errors, []

    # Substring heuristic: may catch lines that merely mention warnings
    warnings = [
        line.rstrip()
        for line in result.stdout.splitlines()
        if line.strip() and "warning" in line.lower()
    ]
    return [], warnings


class SandboxLifecycleManager:
    """
    Runs one compiler invocation per call in an ephemeral sandbox.

    Security Features:
    - Fresh environment per call, never shared across simulations
    - Every remote step bounded by an explicit timeout
    - Guaranteed teardown (async context manager)

    Usage:
        ```python
        manager = SandboxLifecycleManager(api_key="e2b_xxx")
        outcome = await manager.compile(move_source)
        if not outcome.success:
            print(outcome.errors)
        ```
    """

    def __init__(
        self,
        provider: Optional[SandboxProvider] = None,
        api_key: Optional[str] = None,
        provision_timeout: float = SharedConfig.PROVISION_TIMEOUT,
        install_timeout: float = SharedConfig.INSTALL_TIMEOUT,
        compile_timeout: float = SharedConfig.COMPILE_TIMEOUT,
        file_timeout: float = SharedConfig.FILE_TIMEOUT,
        teardown_timeout: float = SharedConfig.TEARDOWN_TIMEOUT,
    ) -> None:
        """Initialize the manager; the E2B provider is built on first use."""
        self.api_key = api_key if api_key is not None else SharedConfig.get_e2b_api_key()
        self.provision_timeout = provision_timeout
        self.install_timeout = install_timeout
        self.compile_timeout = compile_timeout
        self.file_timeout = file_timeout
        self.teardown_timeout = teardown_timeout
        self._provider = provider

        logger.info(
            "SandboxLifecycleManager initialized",
            extra={
                "provider": type(provider).__name__ if provider else "E2BSandboxProvider",
                "compile_timeout": compile_timeout,
            },
        )

    @property
    def is_configured(self) -> bool:
        """True when the provisioning credential is available."""
        return bool(self.api_key and self.api_key.strip())

    def _get_provider(self) -> SandboxProvider:
        if self._provider is None:
            from ..integrations.e2b_provider import E2BSandboxProvider

            self._provider = E2BSandboxProvider(api_key=self.api_key)
        return self._provider

    async def compile(self, source_text: str) -> CompileOutcome:
        """
        Compile Move source in a throwaway sandbox.

        Args:
            source_text: Contents written to sources/main.move

        Returns:
            CompileOutcome; ``success`` mirrors the compiler exit code

        Raises:
            ConfigurationError: No provisioning credential (nothing provisioned)
            ProvisioningError: Sandbox could not be created
            ToolchainInstallError: Aptos CLI bootstrap failed
            ProcessTimeoutError: A step outlived its time bound
        """
        if not self.is_configured:
            raise ConfigurationError(SharedConfig.E2B_API_KEY_ENV, service="sandbox provisioning")

        provider = self._get_provider()
        start_time = time.monotonic()

        async with self._provisioned(provider) as handle:
            await self._install_toolchain(provider, handle)
            await self._stage_project(provider, handle, source_text)
            result = await self._run_compiler(provider, handle)

        errors, warnings = classify_compile_output(result)
        outcome = CompileOutcome(
            success=result.exit_code == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            exit_code=result.exit_code,
            errors=errors,
            warnings=warnings,
            duration_seconds=time.monotonic() - start_time,
        )

        logger.info(
            "Sandbox compile complete",
            extra={
                "success": outcome.success,
                "exit_code": outcome.exit_code,
                "error_count": len(errors),
                "warning_count": len(warnings),
                "duration": outcome.duration_seconds,
            },
        )
        return outcome

    @asynccontextmanager
    async def _provisioned(self, provider: SandboxProvider) -> AsyncIterator[Any]:
        """Provision one environment and release it on every exit path."""
        try:
            handle = await asyncio.wait_for(provider.provision(), timeout=self.provision_timeout)
        except ForgeException:
            raise
        except asyncio.TimeoutError as e:
            raise ProvisioningError(
                f"Sandbox provisioning timed out after {self.provision_timeout}s", cause=e
            ) from e
        except Exception as e:
            raise ProvisioningError(f"Failed to provision sandbox: {e}", cause=e) from e

        try:
            yield handle
        finally:
            await self._release(provider, handle)

    async def _release(self, provider: SandboxProvider, handle: Any) -> None:
        try:
            await asyncio.wait_for(provider.teardown(handle), timeout=self.teardown_timeout)
        except Exception as e:
            logger.warning(
                f"Sandbox teardown failed: {e}",
                extra={"error_type": type(e).__name__},
            )

    async def _bounded(self, step: str, awaitable: Awaitable[T], timeout: float) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("Sandbox step timeout", extra={"step": step, "timeout": timeout})
            raise ProcessTimeoutError(step, timeout) from e

    async def _install_toolchain(self, provider: SandboxProvider, handle: Any) -> None:
        try:
            result = await self._bounded(
                "install_toolchain",
                provider.run(
                    handle,
                    SharedConfig.APTOS_INSTALL_COMMAND,
                    cwd=None,
                    timeout=self.install_timeout,
                ),
                self.install_timeout,
            )
        except ForgeException:
            raise
        except Exception as e:
            raise ToolchainInstallError(f"Aptos CLI install failed: {e}", cause=e) from e

        if result.exit_code != 0:
            tail = result.stderr.strip().splitlines()[-1:] or ["no output"]
            raise ToolchainInstallError(
                f"Aptos CLI install exited with code {result.exit_code}: {tail[0]}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

    async def _stage_project(self, provider: SandboxProvider, handle: Any, source_text: str) -> None:
        await self._bounded(
            "write_manifest",
            provider.write_file(handle, SharedConfig.MANIFEST_PATH, MOVE_MANIFEST),
            self.file_timeout,
        )
        await self._bounded(
            "make_sources_dir",
            provider.make_dir(handle, SharedConfig.SOURCES_DIR),
            self.file_timeout,
        )
        await self._bounded(
            "write_source",
            provider.write_file(handle, SharedConfig.MAIN_SOURCE_PATH, source_text),
            self.file_timeout,
        )

    async def _run_compiler(self, provider: SandboxProvider, handle: Any) -> ProcessResult:
        return await self._bounded(
            "compile",
            provider.run(
                handle,
                f"{SharedConfig.APTOS_CLI_PATH} move compile",
                cwd=SharedConfig.PROJECT_DIR,
                timeout=self.compile_timeout,
            ),
            self.compile_timeout,
        )
