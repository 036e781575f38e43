"""
Pytest Configuration and Shared Fixtures
=========================================

Provides reusable fixtures for all test modules: valid parameter
records, a scriptable in-memory sandbox provider and a fake code
generation client.
"""

from __future__ import annotations

from typing import Any, Optional

import pytest

from move_forge.exceptions import ConfigurationError
from move_forge.integrations.sandbox_provider import ProcessResult
from move_forge.models import (
    ArtifactParameters,
    ArtifactType,
    PoolParameters,
    TokenParameters,
    VaultParameters,
)
from move_forge.orchestrator import SimulationOrchestrator
from move_forge.services import SandboxLifecycleManager
from move_forge.storage import SimulationRegistry

MOVE_SOURCE = """module ProjectAddress::test_token {
    use std::string;

    public entry fun init(account: &signer) {}
}
"""

MODEL_REPLY = f"""Generated Code
```move
{MOVE_SOURCE}```

Code Explanation
A minimal fungible asset module.
"""


# ============================================================
# PARAMETER FIXTURES
# ============================================================

@pytest.fixture
def token_raw() -> dict[str, Any]:
    """Token parameters as a web client sends them."""
    return {
        "name": "Test Token",
        "symbol": "TST",
        "decimals": 8,
        "totalSupply": "1000000",
    }


@pytest.fixture
def pool_raw() -> dict[str, Any]:
    return {
        "name": "TST/APT Pool",
        "tokenA": "TST",
        "tokenB": "APT",
        "fee": 0.3,
        "initialLiquidityA": "1000",
        "initialLiquidityB": "500",
    }


@pytest.fixture
def vault_raw() -> dict[str, Any]:
    return {
        "name": "Yield Vault",
        "token": "APT",
        "strategy": "staking",
        "fee": 2,
        "minDeposit": "10",
    }


@pytest.fixture
def token_params() -> TokenParameters:
    return TokenParameters(name="Test Token", symbol="TST", decimals=8, total_supply="1000000")


@pytest.fixture
def pool_params() -> PoolParameters:
    return PoolParameters(
        name="TST/APT Pool",
        token_a="TST",
        token_b="APT",
        fee=0.3,
        initial_liquidity_a="1000",
        initial_liquidity_b="500",
    )


@pytest.fixture
def vault_params() -> VaultParameters:
    return VaultParameters(
        name="Yield Vault", token="APT", strategy="staking", fee=2, min_deposit="10"
    )


# ============================================================
# SANDBOX FIXTURES
# ============================================================

class FakeSandboxProvider:
    """
    In-memory SandboxProvider.

    ``compile_result`` answers any ``move compile`` command and
    ``install_result`` every other command; ``failures`` maps a step
    name (provision, install, compile, write_file, teardown) to the
    exception that step raises.
    """

    def __init__(
        self,
        compile_result: Optional[ProcessResult] = None,
        install_result: Optional[ProcessResult] = None,
    ) -> None:
        self.compile_result = compile_result or ProcessResult(exit_code=0, stdout="BUILDING SandboxProject\n")
        self.install_result = install_result or ProcessResult(exit_code=0)
        self.failures: dict[str, BaseException] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.files: dict[str, str] = {}
        self.dirs: list[str] = []
        self.provisioned = 0
        self.torn_down: list[str] = []

    def _maybe_fail(self, method: str) -> None:
        error = self.failures.get(method)
        if error is not None:
            raise error

    async def provision(self) -> str:
        self.calls.append(("provision",))
        self._maybe_fail("provision")
        self.provisioned += 1
        return f"sandbox-{self.provisioned}"

    async def run(self, handle: str, command: str, cwd: Optional[str], timeout: float) -> ProcessResult:
        self.calls.append(("run", handle, command, cwd))
        if "move compile" in command:
            self._maybe_fail("compile")
            return self.compile_result
        self._maybe_fail("install")
        return self.install_result

    async def write_file(self, handle: str, path: str, content: str) -> None:
        self.calls.append(("write_file", handle, path))
        self._maybe_fail("write_file")
        self.files[path] = content

    async def make_dir(self, handle: str, path: str) -> None:
        self.calls.append(("make_dir", handle, path))
        self.dirs.append(path)

    async def teardown(self, handle: str) -> None:
        self.calls.append(("teardown", handle))
        self.torn_down.append(handle)
        self._maybe_fail("teardown")


@pytest.fixture
def fake_provider() -> FakeSandboxProvider:
    return FakeSandboxProvider()


@pytest.fixture
def sandbox_manager(fake_provider: FakeSandboxProvider) -> SandboxLifecycleManager:
    return SandboxLifecycleManager(provider=fake_provider, api_key="e2b-test-key")


# ============================================================
# CODE GENERATION FIXTURES
# ============================================================

class FakeRequestClient:
    """Stands in for OpenRouterClient at the orchestrator seam."""

    def __init__(
        self,
        api_key: Optional[str] = "test-key",
        reply: str = MODEL_REPLY,
        analysis: str = "Overall Rating: Secure",
    ) -> None:
        self.api_key = api_key
        self.reply = reply
        self.analysis = analysis
        self.generate_error: Optional[BaseException] = None
        self.analyze_error: Optional[BaseException] = None
        self.generate_calls: list[ArtifactParameters] = []
        self.analyze_calls: list[tuple[str, ArtifactType]] = []
        self.assistant_calls: list[tuple[Any, ...]] = []

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise ConfigurationError("OPENROUTER_API_KEY", service="code generation")

    async def generate_code(self, parameters: ArtifactParameters) -> str:
        self.ensure_configured()
        self.generate_calls.append(parameters)
        if self.generate_error is not None:
            raise self.generate_error
        return self.reply

    async def analyze_code(self, source: str, artifact_type: ArtifactType) -> str:
        self.analyze_calls.append((source, artifact_type))
        if self.analyze_error is not None:
            raise self.analyze_error
        return self.analysis

    async def chat_with_assistant(self, user_message: str, history: list[dict[str, str]]) -> str:
        self.assistant_calls.append(("chat", user_message, history))
        return f"Quick Answer: {user_message}"

    async def explain_concept(self, concept: str) -> str:
        self.assistant_calls.append(("explain", concept))
        return f"Simple Explanation: {concept}"

    async def get_recommendations(self, user_context: str) -> str:
        self.assistant_calls.append(("recommend", user_context))
        return "Quick Recommendation: start with staking"


@pytest.fixture
def request_client() -> FakeRequestClient:
    return FakeRequestClient()


@pytest.fixture
def orchestrator(
    request_client: FakeRequestClient,
    sandbox_manager: SandboxLifecycleManager,
) -> SimulationOrchestrator:
    return SimulationOrchestrator(
        registry=SimulationRegistry(),
        request_client=request_client,  # type: ignore[arg-type]
        sandbox_manager=sandbox_manager,
    )
