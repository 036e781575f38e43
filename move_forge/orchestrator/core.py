"""
Simulation Orchestrator
=======================

State machine that sequences "generate code" -> "compile & analyze" for
each simulation, and the only surface UI/API layers call.

States:
    pending -> generating -> pending | error
    pending | success | error -> compiling -> success | error

Generation failures are raised to the caller. Compile and analysis
failures are folded into the simulation's result and never raised.

The stateless DeFi assistant requests (chat, concept explanation,
recommendations) are served here as well.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Iterable, Mapping, Optional, Union

from shared.config import SharedConfig

from ..error_instrumentation import ErrorContext, create_request_context, request_context
from ..exceptions import (
    ForgeException,
    MalformedResponseError,
    NoSourceError,
    NotFoundError,
    ValidationError,
)
from ..integrations.openrouter_client import OpenRouterClient
from ..models import (
    ArtifactParameters,
    ArtifactType,
    Simulation,
    SimulationResult,
    SimulationStatus,
    build_parameters,
)
from ..prompts import extract_move_source
from ..services.sandbox_manager import SandboxLifecycleManager
from ..storage.base import SimulationStore
from ..storage.registry import SimulationRegistry
from .events import EventBroadcaster, EventListener, SimulationEvent

logger = logging.getLogger(__name__)


def describe_error(error: BaseException) -> str:
    """Human-readable message for an error stored on a simulation."""
    if isinstance(error, ForgeException):
        return error.message
    text = str(error).strip()
    return text or type(error).__name__


class SimulationOrchestrator:
    """
    Coordinates the request client, sandbox manager and registry.

    Operations on the same simulation id are serialized with a per-id
    lock because registry updates are blind merges; different ids run
    concurrently.

    Usage:
        orchestrator = SimulationOrchestrator()
        sim = await orchestrator.create_simulation("token", {...})
        await orchestrator.generate(sim.id)
        sim = await orchestrator.compile_and_analyze(sim.id)
    """

    def __init__(
        self,
        registry: Optional[SimulationStore] = None,
        request_client: Optional[OpenRouterClient] = None,
        sandbox_manager: Optional[SandboxLifecycleManager] = None,
        events: Optional[EventBroadcaster] = None,
    ) -> None:
        self.registry = registry if registry is not None else SimulationRegistry()
        self.request_client = request_client if request_client is not None else OpenRouterClient()
        self.sandbox_manager = (
            sandbox_manager if sandbox_manager is not None else SandboxLifecycleManager()
        )
        self.events = events if events is not None else EventBroadcaster()
        self._locks: dict[str, asyncio.Lock] = {}

    # --- Event stream ---

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Observe state transitions; returns an unsubscribe callable."""
        return self.events.subscribe(listener)

    async def _emit(
        self,
        simulation_id: str,
        status: SimulationStatus,
        message: str,
        error_code: Optional[str] = None,
    ) -> None:
        await self.events.publish(
            SimulationEvent(
                simulation_id=simulation_id,
                status=status,
                message=message,
                error_code=error_code,
            )
        )

    # --- Registry facade ---

    async def create_simulation(
        self,
        artifact_type: Union[ArtifactType, str],
        parameters: Union[ArtifactParameters, Mapping[str, Any]],
    ) -> Simulation:
        """
        Validate parameters and register a pending simulation.

        Raises:
            ValidationError: Unknown type or invalid parameter record;
                the registry is left unchanged
        """
        try:
            kind = ArtifactType(artifact_type)
        except ValueError:
            raise ValidationError([f"Unsupported artifact type: {artifact_type}"]) from None

        if isinstance(parameters, Mapping):
            parameters = build_parameters(kind, parameters)

        simulation = await self.registry.create(kind, parameters)
        await self._emit(simulation.id, SimulationStatus.PENDING, f"{kind.value} simulation created")
        return simulation

    async def get_simulation(self, simulation_id: str) -> Optional[Simulation]:
        return await self.registry.get(simulation_id)

    async def list_simulations(self) -> list[Simulation]:
        return await self.registry.list()

    async def delete_simulation(self, simulation_id: str) -> bool:
        deleted = await self.registry.delete(simulation_id)
        lock = self._locks.get(simulation_id)
        if lock is not None and not lock.locked():
            self._locks.pop(simulation_id, None)
        return deleted

    async def clear_all(self) -> None:
        await self.registry.clear()
        self._locks = {sid: lock for sid, lock in self._locks.items() if lock.locked()}

    # --- Assistant ---

    async def chat(
        self,
        user_message: str,
        history: Iterable[Mapping[str, str]] = (),
    ) -> str:
        """
        Next reply of the DeFi assistant; no simulation state is touched.

        Raises:
            ConfigurationError: No code generation credential
            ValidationError: Blank message or malformed history
            UpstreamError, ExhaustedRetriesError, MalformedResponseError:
                The model request failed
        """
        self.request_client.ensure_configured()
        token = request_context.set(create_request_context(service_name="assistant_chat"))
        try:
            return await self.request_client.chat_with_assistant(user_message, list(history))
        finally:
            request_context.reset(token)

    async def explain_concept(self, concept: str) -> str:
        self.request_client.ensure_configured()
        token = request_context.set(create_request_context(service_name="assistant_explain"))
        try:
            return await self.request_client.explain_concept(concept)
        finally:
            request_context.reset(token)

    async def get_recommendations(self, user_context: str) -> str:
        self.request_client.ensure_configured()
        token = request_context.set(create_request_context(service_name="assistant_recommend"))
        try:
            return await self.request_client.get_recommendations(user_context)
        finally:
            request_context.reset(token)

    # --- State machine ---

    @asynccontextmanager
    async def _serialized(self, simulation_id: str) -> AsyncIterator[None]:
        """Hold the per-id lock; locks of vanished ids are dropped on exit."""
        lock = self._locks.setdefault(simulation_id, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            if not lock.locked() and await self.registry.get(simulation_id) is None:
                if self._locks.get(simulation_id) is lock:
                    del self._locks[simulation_id]

    async def _require(self, simulation_id: str) -> Simulation:
        simulation = await self.registry.get(simulation_id)
        if simulation is None:
            raise NotFoundError(simulation_id)
        return simulation

    async def _transition(
        self,
        simulation_id: str,
        status: SimulationStatus,
        message: str,
        **changes: Any,
    ) -> Simulation:
        simulation = await self.registry.update(simulation_id, status=status, **changes)
        logger.info(message, extra={"simulation_id": simulation_id, "status": status.value})
        await self._emit(simulation_id, status, message)
        return simulation

    async def _record_generation_failure(self, simulation_id: str, error: BaseException) -> None:
        message = describe_error(error)
        await self.registry.update(
            simulation_id,
            status=SimulationStatus.ERROR,
            result=SimulationResult.failure(message),
        )
        await self._emit(
            simulation_id,
            SimulationStatus.ERROR,
            f"Generation failed: {message}",
            error_code=getattr(error, "error_code", None),
        )

    async def generate(self, simulation_id: str) -> Simulation:
        """
        Generate Move source for a simulation.

        On success the simulation returns to ``pending`` with its source
        stored; it is not ``success`` until a compile verifies it.

        Raises:
            NotFoundError: Unknown simulation id
            ConfigurationError: No code generation credential (status unchanged)
            UpstreamError, ExhaustedRetriesError, MalformedResponseError:
                Generation failed; the simulation is left in ``error``
        """
        async with self._serialized(simulation_id):
            simulation = await self._require(simulation_id)
            self.request_client.ensure_configured()

            token = request_context.set(
                create_request_context(simulation_id=simulation_id, service_name="generate")
            )
            try:
                return await self._run_generation(simulation)
            finally:
                request_context.reset(token)

    async def _run_generation(self, simulation: Simulation) -> Simulation:
        simulation_id = simulation.id
        await self._transition(
            simulation_id,
            SimulationStatus.GENERATING,
            f"Generating {simulation.artifact_type.value} source",
            result=None,
        )

        try:
            reply = await self.request_client.generate_code(simulation.parameters)
            source = extract_move_source(reply)
            if not source.strip():
                raise MalformedResponseError("Model reply contained no source code")
        except asyncio.CancelledError:
            await self._record_generation_failure(simulation_id, RuntimeError("Generation cancelled"))
            raise
        except Exception as e:
            ErrorContext(
                operation="generate",
                error=e,
                context={
                    "simulation_id": simulation_id,
                    "artifact_type": simulation.artifact_type.value,
                },
            ).log()
            await self._record_generation_failure(simulation_id, e)
            raise

        return await self._transition(
            simulation_id,
            SimulationStatus.PENDING,
            "Source generated, ready to compile",
            generated_source=source,
            raw_response=reply,
            result=None,
        )

    async def submit_source(self, simulation_id: str, source: str) -> Simulation:
        """
        Attach caller-supplied Move source instead of generating it.

        Raises:
            NotFoundError: Unknown simulation id
            ValidationError: Empty source
        """
        if not source or not source.strip():
            raise ValidationError(["Source must not be empty"])

        async with self._serialized(simulation_id):
            await self._require(simulation_id)
            return await self._transition(
                simulation_id,
                SimulationStatus.PENDING,
                "Source submitted, ready to compile",
                generated_source=source,
                raw_response="",
                result=None,
            )

    async def compile_and_analyze(self, simulation_id: str) -> Simulation:
        """
        Compile the generated source in a sandbox and attach a verdict.

        Always leaves the simulation in ``success`` or ``error`` with
        ``execution_count`` incremented by one; sandbox and analysis
        failures are recorded in the result, not raised. Cancellation is
        recorded the same way and then re-raised.

        Raises:
            NotFoundError: Unknown simulation id
            NoSourceError: Nothing generated yet
        """
        async with self._serialized(simulation_id):
            simulation = await self._require(simulation_id)
            if not simulation.generated_source.strip():
                raise NoSourceError(simulation_id)

            token = request_context.set(
                create_request_context(simulation_id=simulation_id, service_name="compile")
            )
            try:
                return await self._run_compile(simulation)
            finally:
                request_context.reset(token)

    async def _run_compile(self, simulation: Simulation) -> Simulation:
        simulation_id = simulation.id
        await self._transition(
            simulation_id,
            SimulationStatus.COMPILING,
            "Compiling in sandbox",
            result=None,
        )

        cancelled: Optional[asyncio.CancelledError] = None
        try:
            outcome = await self.sandbox_manager.compile(simulation.generated_source)
        except asyncio.CancelledError as e:
            cancelled = e
            result = SimulationResult.failure("Compilation cancelled")
        except Exception as e:
            ErrorContext(
                operation="compile",
                error=e,
                context={"simulation_id": simulation_id},
            ).log("warning")
            result = SimulationResult.failure(describe_error(e))
        else:
            analysis: Optional[str] = None
            try:
                analysis = await self._analyze(simulation)
            except asyncio.CancelledError as e:
                cancelled = e
                logger.warning("Code analysis cancelled", extra={"simulation_id": simulation_id})
            result = SimulationResult(
                success=outcome.success,
                errors=outcome.errors,
                warnings=outcome.warnings,
                gas_estimate=SharedConfig.GAS_ESTIMATE_LABEL,
                ai_analysis=analysis,
                exit_code=outcome.exit_code,
                duration_seconds=outcome.duration_seconds,
            )

        status = SimulationStatus.SUCCESS if result.success else SimulationStatus.ERROR
        message = (
            "Compilation succeeded"
            if result.success
            else f"Compilation failed: {result.errors[0] if result.errors else 'unknown error'}"
        )
        updated = await self._transition(
            simulation_id,
            status,
            message,
            result=result,
            execution_count=simulation.execution_count + 1,
        )
        if cancelled is not None:
            raise cancelled
        return updated

    async def _analyze(self, simulation: Simulation) -> Optional[str]:
        """Best-effort review narrative; None when it cannot be produced."""
        try:
            return await self.request_client.analyze_code(
                simulation.generated_source, simulation.artifact_type
            )
        except Exception as e:
            logger.warning(
                f"Code analysis skipped: {describe_error(e)}",
                extra={"simulation_id": simulation.id},
            )
            return None
