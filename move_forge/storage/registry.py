"""
In-memory simulation registry.

Single source of truth for Simulation state for the lifetime of the
process. Nothing is persisted.
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import fields
from typing import Any, Optional

from ..error_instrumentation import log_with_context
from ..exceptions import NotFoundError
from ..models import ArtifactParameters, ArtifactType, Simulation
from .base import SimulationStore

_SIMULATION_FIELDS = frozenset(f.name for f in fields(Simulation))


class SimulationRegistry(SimulationStore):
    """
    In-memory simulation store.

    Concurrency-safe using a single asyncio.Lock around map access.
    Snapshots are deep copies, so callers never hold a mutable alias to
    stored state.

    Example:
        >>> registry = SimulationRegistry()
        >>> sim = await registry.create(ArtifactType.TOKEN, token_params)
        >>> await registry.update(sim.id, status=SimulationStatus.GENERATING)
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._simulations: dict[str, Simulation] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        artifact_type: ArtifactType,
        parameters: ArtifactParameters,
    ) -> Simulation:
        simulation = Simulation(artifact_type=artifact_type, parameters=parameters)

        async with self._lock:
            while simulation.id in self._simulations:
                simulation = Simulation(artifact_type=artifact_type, parameters=parameters)
            self._simulations[simulation.id] = simulation
            snapshot = copy.deepcopy(simulation)

        log_with_context(
            "info",
            "simulation_created",
            simulation_id=snapshot.id,
            artifact_type=artifact_type.value,
        )
        return snapshot

    async def get(self, simulation_id: str) -> Optional[Simulation]:
        async with self._lock:
            simulation = self._simulations.get(simulation_id)
            return copy.deepcopy(simulation) if simulation else None

    async def update(self, simulation_id: str, **changes: Any) -> Simulation:
        unknown = sorted(set(changes) - _SIMULATION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown simulation fields: {', '.join(unknown)}")
        frozen = sorted(set(changes) & Simulation.IMMUTABLE_FIELDS)
        if frozen:
            raise ValueError(f"Immutable simulation fields: {', '.join(frozen)}")

        async with self._lock:
            simulation = self._simulations.get(simulation_id)
            if simulation is None:
                raise NotFoundError(simulation_id)
            for name, value in changes.items():
                setattr(simulation, name, copy.deepcopy(value))
            return copy.deepcopy(simulation)

    async def list(self) -> list[Simulation]:
        async with self._lock:
            return [copy.deepcopy(sim) for sim in self._simulations.values()]

    async def delete(self, simulation_id: str) -> bool:
        async with self._lock:
            removed = self._simulations.pop(simulation_id, None) is not None

        if removed:
            log_with_context("info", "simulation_deleted", simulation_id=simulation_id)
        return removed

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._simulations)
            self._simulations.clear()

        log_with_context("info", "simulations_cleared", count=count)

    def __len__(self) -> int:
        return len(self._simulations)
