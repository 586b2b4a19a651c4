"""Pydantic models for geocoding results and coordinates."""

from pydantic import BaseModel, ConfigDict


class Coordinate(BaseModel):
    """A latitude/longitude pair.

    Used both as the weather request key and as the persisted last location.
    Ranges are not validated; values pass through as received.
    """

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class GeoLocation(BaseModel):
    """One candidate returned by the geocoding search."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    local_names: dict[str, str] | None = None
    lat: float
    lon: float
    country: str | None = None
    state: str | None = None

    @property
    def coordinate(self) -> Coordinate:
        """Coordinate used to select this location."""
        return Coordinate(lat=self.lat, lon=self.lon)

    @property
    def display_label(self) -> str:
        """Human-readable label such as "London, England, GB"."""
        parts = [part for part in (self.name, self.state, self.country) if part]
        return ", ".join(parts) or f"{self.lat}, {self.lon}"
