"""
move_forge/__init__.py
Move Forge package initialization.

Generates Aptos Move artifacts (fungible tokens, liquidity pools, yield
vaults) with a remote code generation model and verifies them by
compiling inside disposable sandboxes.
"""

__version__ = "0.1.0"
__author__ = "Move Forge Development Team"

from .models import ArtifactType, Simulation, SimulationResult, SimulationStatus
from .orchestrator import SimulationOrchestrator

__all__ = [
    "ArtifactType",
    "Simulation",
    "SimulationResult",
    "SimulationStatus",
    "SimulationOrchestrator",
]
