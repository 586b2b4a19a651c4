"""Protocol definitions for dependency injection.

These are the seams the view-model depends on, allowing test doubles to stand
in for the network, the disk cache and the preference store.
"""

from typing import Protocol

from weather_lookup.models.location import Coordinate, GeoLocation
from weather_lookup.models.weather import WeatherSnapshot


class WeatherServiceProtocol(Protocol):
    """Remote weather operations."""

    async def search_locations(self, query: str) -> list[GeoLocation]: ...

    async def fetch_weather(self, coordinate: Coordinate) -> WeatherSnapshot: ...

    async def fetch_icon(self, code: str) -> bytes | None: ...


class IconCacheProtocol(Protocol):
    """Best-effort binary cache keyed by icon code."""

    def load(self, key: str) -> bytes | None: ...

    def save(self, data: bytes, key: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class LocationPreferenceProtocol(Protocol):
    """Single persisted coordinate."""

    def save(self, coordinate: Coordinate) -> None: ...

    def load(self) -> Coordinate | None: ...

    def clear(self) -> None: ...
