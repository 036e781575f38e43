"""
Simulation event stream.

The orchestrator emits one immutable event per state transition. External
observers (UI log panels, progress bars, audit trails) subscribe to the
stream; the core keeps no log state of its own.

Example:
    >>> events = EventBroadcaster()
    >>> unsubscribe = events.subscribe(lambda event: print(event.message))
    >>> await events.publish(SimulationEvent("sim_1", SimulationStatus.PENDING, "created"))
    >>> unsubscribe()
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import uuid4

from ..models import SimulationStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimulationEvent:
    """
    A state transition of one simulation.

    Attributes:
        simulation_id: Simulation the event belongs to
        status: Status entered by the transition
        message: Human-readable description
        error_code: Error code when the transition records a failure
    """

    simulation_id: str
    status: SimulationStatus
    message: str
    error_code: Optional[str] = None
    event_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "simulation_id": self.simulation_id,
            "status": self.status.value,
            "message": self.message,
            "error_code": self.error_code,
            "created_at": self.created_at.isoformat(),
        }


EventListener = Callable[[SimulationEvent], Union[None, Awaitable[None]]]


class EventBroadcaster:
    """Fan-out of simulation events to sync or async listeners."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event: SimulationEvent) -> None:
        """Deliver an event; a failing listener is logged and skipped."""
        for listener in list(self._listeners):
            try:
                outcome = listener(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logger.warning(
                    f"Event listener failed: {e}",
                    extra={"simulation_id": event.simulation_id, "status": event.status.value},
                )
