"""Simulation state machine and its event stream."""

from .core import SimulationOrchestrator, describe_error
from .events import EventBroadcaster, EventListener, SimulationEvent

__all__ = [
    "SimulationOrchestrator",
    "describe_error",
    "EventBroadcaster",
    "EventListener",
    "SimulationEvent",
]
