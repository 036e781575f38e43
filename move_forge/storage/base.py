"""
move_forge/storage/base.py
Abstract simulation store interface.

Follows: Dependency Injection, Interface Segregation
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import ArtifactParameters, ArtifactType, Simulation


class SimulationStore(ABC):
    """
    Abstract interface for simulation state.

    The store exclusively owns Simulation instances. Reads hand out
    snapshots; ``update`` is the only mutation path.
    """

    @abstractmethod
    async def create(
        self,
        artifact_type: ArtifactType,
        parameters: ArtifactParameters,
    ) -> Simulation:
        """
        Create a pending simulation with a fresh unique id.

        Raises:
            ValidationError: If the parameter record does not match the type
        """
        pass

    @abstractmethod
    async def get(self, simulation_id: str) -> Optional[Simulation]:
        """Return a snapshot, or None when the id is unknown."""
        pass

    @abstractmethod
    async def update(self, simulation_id: str, **changes: Any) -> Simulation:
        """
        Merge the supplied fields over the stored simulation.

        Returns:
            Snapshot after the merge

        Raises:
            NotFoundError: If the id is unknown
            ValueError: If a field is unknown or immutable
        """
        pass

    @abstractmethod
    async def list(self) -> list[Simulation]:
        """Return snapshots of every simulation (order not guaranteed)."""
        pass

    @abstractmethod
    async def delete(self, simulation_id: str) -> bool:
        """Remove a simulation; True if it existed."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every simulation."""
        pass
