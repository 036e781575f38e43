"""
move_forge/models/__init__.py
Export all models for easy importing.
"""

from .assistant import ChatRequest, ChatTurn, ExplainRequest, RecommendationRequest
from .simulation import (
    ArtifactParameters,
    ArtifactType,
    PoolParameters,
    SandboxTestRequest,
    Simulation,
    SimulationCreateRequest,
    SimulationResult,
    SimulationStatus,
    TokenParameters,
    VaultParameters,
    build_parameters,
    parameters_to_dict,
)

__all__ = [
    "ArtifactType",
    "SimulationStatus",
    "TokenParameters",
    "PoolParameters",
    "VaultParameters",
    "ArtifactParameters",
    "Simulation",
    "SimulationResult",
    "SimulationCreateRequest",
    "SandboxTestRequest",
    "ChatTurn",
    "ChatRequest",
    "ExplainRequest",
    "RecommendationRequest",
    "build_parameters",
    "parameters_to_dict",
]
