"""State managers for handling session-wide mutable state.

State is mutated on the event loop only, with updates serialised by an
asyncio.Lock. Subscribers receive an immutable snapshot after every change.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.models.state import WeatherState

logger = get_logger(__name__)

StateListener = Callable[[WeatherState], None]


class StateManager(ABC):
    """Base class for all state managers."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the state manager (called during app startup)."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup resources (called during app shutdown)."""
        pass


class WeatherStateManager(StateManager):
    """Owns the observable ``WeatherState`` and broadcasts changes.

    Fields are replaced wholesale; there is no merging.
    """

    def __init__(self, initial: WeatherState | None = None):
        self._state = initial or WeatherState()
        self._listeners: list[StateListener] = []
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        log_with_context(logger, "debug", "Weather state ready", event_type="state_initialized")

    async def cleanup(self) -> None:
        self._listeners.clear()

    @property
    def state(self) -> WeatherState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for state changes.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def update(self, **changes: Any) -> WeatherState:
        """Replace the given fields and notify subscribers.

        Args:
            **changes: Field names of ``WeatherState`` and their new values

        Returns:
            The new state snapshot
        """
        async with self._lock:
            self._state = self._state.model_copy(update=changes)
            snapshot = self._state

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                log_with_context(
                    logger,
                    "error",
                    "State listener raised",
                    listener=repr(listener),
                    error=str(e),
                    error_type=type(e).__name__,
                    event_type="state_listener_error",
                )
        return snapshot
