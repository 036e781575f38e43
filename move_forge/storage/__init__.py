"""
move_forge/storage/__init__.py
Export storage interfaces and implementations.
"""

from .base import SimulationStore
from .registry import SimulationRegistry

__all__ = [
    "SimulationStore",
    "SimulationRegistry",
]
