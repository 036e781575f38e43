"""
Move Forge API Server
HTTP surface over the simulation orchestrator.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..error_instrumentation import log_with_context
from ..exceptions import (
    ConfigurationError,
    ExhaustedRetriesError,
    ForgeException,
    MalformedResponseError,
    NoSourceError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from ..models import (
    ChatRequest,
    ExplainRequest,
    RecommendationRequest,
    SandboxTestRequest,
    SimulationCreateRequest,
)
from ..orchestrator import SimulationOrchestrator

# Most specific first; the first isinstance match wins
ERROR_STATUS_CODES: list[tuple[type, int]] = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (NoSourceError, 409),
    (ConfigurationError, 503),
    (ExhaustedRetriesError, 429),
    (UpstreamError, 502),
    (MalformedResponseError, 502),
]


def status_code_for(error: ForgeException) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def forge_exception_handler(request: Request, exc: ForgeException) -> JSONResponse:
    """Render a ForgeException as a JSON error body."""
    status_code = status_code_for(exc)
    content: dict[str, Any] = {"detail": exc.message, "error_code": exc.error_code}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors

    log_with_context(
        "warning" if status_code < 500 else "error",
        "api_request_failed",
        path=request.url.path,
        status_code=status_code,
        error_code=exc.error_code,
    )
    return JSONResponse(status_code=status_code, content=content)


def create_app(orchestrator: Optional[SimulationOrchestrator] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        orchestrator: Orchestrator to serve (default: one wired from
            environment credentials)
    """
    orchestrator = orchestrator if orchestrator is not None else SimulationOrchestrator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        log_with_context(
            "info",
            "api_started",
            version=__version__,
            generation_configured=orchestrator.request_client.is_configured,
            sandbox_configured=orchestrator.sandbox_manager.is_configured,
        )
        yield
        await orchestrator.clear_all()

    app = FastAPI(
        title="Move Forge API",
        description="Generate and compile Aptos Move artifacts in disposable sandboxes",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ForgeException, forge_exception_handler)

    # ═══════════════════════════════════════════════════════════
    # SIMULATIONS
    # ═══════════════════════════════════════════════════════════

    @app.post("/simulations", status_code=201)
    async def create_simulation(create_req: SimulationCreateRequest):
        """Validate parameters and register a pending simulation"""
        simulation = await orchestrator.create_simulation(
            create_req.artifact_type, create_req.parameters
        )
        return simulation.to_dict()

    @app.get("/simulations")
    async def list_simulations():
        simulations = await orchestrator.list_simulations()
        return {
            "simulations": [sim.to_dict() for sim in simulations],
            "count": len(simulations),
        }

    @app.delete("/simulations")
    async def clear_simulations():
        await orchestrator.clear_all()
        return {"status": "cleared"}

    @app.get("/simulations/{simulation_id}")
    async def get_simulation(simulation_id: str):
        simulation = await orchestrator.get_simulation(simulation_id)
        if simulation is None:
            raise NotFoundError(simulation_id)
        return simulation.to_dict()

    @app.delete("/simulations/{simulation_id}")
    async def delete_simulation(simulation_id: str):
        if not await orchestrator.delete_simulation(simulation_id):
            raise NotFoundError(simulation_id)
        return {"id": simulation_id, "status": "deleted"}

    @app.post("/simulations/{simulation_id}/generate")
    async def generate(simulation_id: str):
        """Generate Move source; the simulation stays pending until compiled"""
        simulation = await orchestrator.generate(simulation_id)
        return simulation.to_dict()

    @app.post("/simulations/{simulation_id}/test")
    async def compile_and_analyze(simulation_id: str):
        """Compile generated source in a sandbox and attach the verdict"""
        simulation = await orchestrator.compile_and_analyze(simulation_id)
        return simulation.to_dict()

    # ═══════════════════════════════════════════════════════════
    # SANDBOX
    # ═══════════════════════════════════════════════════════════

    @app.post("/sandbox/test")
    async def sandbox_test(test_req: SandboxTestRequest):
        """Compile caller-supplied source as a new simulation"""
        simulation = await orchestrator.create_simulation(
            test_req.artifact_type, test_req.parameters
        )
        await orchestrator.submit_source(simulation.id, test_req.source)
        simulation = await orchestrator.compile_and_analyze(simulation.id)
        return simulation.to_dict()

    # ═══════════════════════════════════════════════════════════
    # ASSISTANT
    # ═══════════════════════════════════════════════════════════

    @app.post("/assistant/chat")
    async def assistant_chat(chat_req: ChatRequest):
        """Next DeFi assistant reply for a conversation"""
        history = [turn.model_dump() for turn in chat_req.history]
        reply = await orchestrator.chat(chat_req.message, history)
        return {"reply": reply}

    @app.post("/assistant/explain")
    async def assistant_explain(explain_req: ExplainRequest):
        explanation = await orchestrator.explain_concept(explain_req.concept)
        return {"concept": explain_req.concept, "explanation": explanation}

    @app.post("/assistant/recommendations")
    async def assistant_recommendations(rec_req: RecommendationRequest):
        recommendations = await orchestrator.get_recommendations(rec_req.context)
        return {"recommendations": recommendations}

    # ═══════════════════════════════════════════════════════════
    # HEALTH
    # ═══════════════════════════════════════════════════════════

    @app.get("/health")
    async def health():
        simulations = await orchestrator.list_simulations()
        return {
            "status": "healthy",
            "version": __version__,
            "simulations": len(simulations),
            "busy": sum(1 for sim in simulations if sim.status.is_busy),
            "subscribers": orchestrator.events.listener_count,
            "generation_configured": orchestrator.request_client.is_configured,
            "sandbox_configured": orchestrator.sandbox_manager.is_configured,
        }

    return app


def main() -> None:
    import uvicorn

    from ..logging_config import setup_logging

    setup_logging()
    uvicorn.run(create_app(), host="127.0.0.1", port=8421)


# Server startup
if __name__ == "__main__":
    main()
