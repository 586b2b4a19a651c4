"""Device location boundary.

A location provider reports three kinds of events to one registered listener:
authorization changes, position updates and errors. The provider itself (OS
permission prompts, GPS hardware) lives outside this package.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from weather_lookup.models.location import Coordinate


class AuthorizationStatus(str, Enum):
    """Location permission as reported by the provider."""

    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    DENIED = "denied"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"

    @property
    def is_authorized(self) -> bool:
        return self in (AuthorizationStatus.AUTHORIZED_WHEN_IN_USE, AuthorizationStatus.AUTHORIZED_ALWAYS)


@dataclass(frozen=True)
class AuthorizationChanged:
    status: AuthorizationStatus


@dataclass(frozen=True)
class PositionUpdated:
    coordinate: Coordinate


@dataclass(frozen=True)
class LocationFailed:
    message: str


LocationEvent = AuthorizationChanged | PositionUpdated | LocationFailed
LocationListener = Callable[[LocationEvent], None]


class LocationProvider(Protocol):
    """Source of device position.

    ``request_authorization`` must eventually produce an ``AuthorizationChanged``
    event; ``start_updates`` produces ``PositionUpdated`` events until
    ``stop_updates`` is called.
    """

    @property
    def authorization_status(self) -> AuthorizationStatus: ...

    def set_listener(self, listener: LocationListener | None) -> None: ...

    def request_authorization(self) -> None: ...

    def start_updates(self) -> None: ...

    def stop_updates(self) -> None: ...
