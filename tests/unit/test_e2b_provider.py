"""
Unit tests for the E2B sandbox provider.

The e2b SDK is patched out; tests verify the adapter's mapping onto the
SandboxProvider protocol.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from e2b import TimeoutException

from move_forge.exceptions import ConfigurationError, ProcessTimeoutError, ProvisioningError
from move_forge.integrations import ProcessResult, SandboxProvider
from move_forge.integrations.e2b_provider import E2BSandboxProvider

SANDBOX_PATH = "move_forge.integrations.e2b_provider.AsyncSandbox"


class FakeCommandExit(Exception):
    """Shape of e2b's CommandExitException."""

    def __init__(self, exit_code: int, stdout: str, stderr: str) -> None:
        super().__init__(stderr)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


def make_handle() -> MagicMock:
    handle = MagicMock()
    handle.sandbox_id = "sbx-123"
    handle.commands.run = AsyncMock(
        return_value=SimpleNamespace(exit_code=0, stdout="done\n", stderr="")
    )
    handle.files.write = AsyncMock()
    handle.files.make_dir = AsyncMock()
    handle.kill = AsyncMock()
    return handle


class TestE2BSandboxProviderInit:
    """Tests for construction."""

    def test_requires_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("E2B_API_KEY", raising=False)
        with pytest.raises(ConfigurationError):
            E2BSandboxProvider()

    def test_defaults(self) -> None:
        provider = E2BSandboxProvider(api_key="e2b-key")

        assert provider.template == "base"
        assert isinstance(provider, SandboxProvider)


class TestE2BSandboxProvider:
    """Tests for protocol operations."""

    @pytest.mark.asyncio
    async def test_provision_creates_sandbox(self) -> None:
        handle = make_handle()
        with patch(SANDBOX_PATH) as mock_sandbox:
            mock_sandbox.create = AsyncMock(return_value=handle)
            provider = E2BSandboxProvider(api_key="e2b-key", lifetime_seconds=120)

            result = await provider.provision()

        assert result is handle
        mock_sandbox.create.assert_awaited_once_with(
            template="base", api_key="e2b-key", timeout=120
        )

    @pytest.mark.asyncio
    async def test_provision_failure_wrapped(self) -> None:
        with patch(SANDBOX_PATH) as mock_sandbox:
            mock_sandbox.create = AsyncMock(side_effect=RuntimeError("quota exceeded"))
            provider = E2BSandboxProvider(api_key="e2b-key")

            with pytest.raises(ProvisioningError, match="quota exceeded"):
                await provider.provision()

    @pytest.mark.asyncio
    async def test_run_returns_process_result(self) -> None:
        handle = make_handle()
        provider = E2BSandboxProvider(api_key="e2b-key")

        result = await provider.run(handle, "aptos move compile", cwd="/home/user", timeout=30)

        assert result == ProcessResult(exit_code=0, stdout="done\n", stderr="")
        handle.commands.run.assert_awaited_once_with(
            "aptos move compile", cwd="/home/user", timeout=30
        )

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_data(self) -> None:
        handle = make_handle()
        handle.commands.run = AsyncMock(side_effect=FakeCommandExit(1, "", "error: bad\n"))
        provider = E2BSandboxProvider(api_key="e2b-key")

        with patch("move_forge.integrations.e2b_provider.CommandExitException", FakeCommandExit):
            result = await provider.run(handle, "aptos move compile", cwd="/home/user", timeout=30)

        assert result.exit_code == 1
        assert result.stderr == "error: bad\n"

    @pytest.mark.asyncio
    async def test_command_timeout(self) -> None:
        handle = make_handle()
        handle.commands.run = AsyncMock(side_effect=TimeoutException("deadline exceeded"))
        provider = E2BSandboxProvider(api_key="e2b-key")

        with pytest.raises(ProcessTimeoutError):
            await provider.run(handle, "sleep 999", cwd=None, timeout=1)

    @pytest.mark.asyncio
    async def test_files_and_teardown(self) -> None:
        handle = make_handle()
        provider = E2BSandboxProvider(api_key="e2b-key")

        await provider.write_file(handle, "/home/user/Move.toml", "[package]")
        await provider.make_dir(handle, "/home/user/sources")
        await provider.teardown(handle)

        handle.files.write.assert_awaited_once_with("/home/user/Move.toml", "[package]")
        handle.files.make_dir.assert_awaited_once_with("/home/user/sources")
        handle.kill.assert_awaited_once()
