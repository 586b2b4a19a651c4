"""Observable view-model state."""

from pydantic import BaseModel, ConfigDict

from weather_lookup.models.location import GeoLocation
from weather_lookup.models.weather import WeatherSnapshot


class WeatherState(BaseModel):
    """Immutable snapshot of everything the rendering layer reads.

    Each field is replaced wholesale; an error leaves the others untouched.
    """

    model_config = ConfigDict(frozen=True)

    search_results: tuple[GeoLocation, ...] = ()
    current_weather: WeatherSnapshot | None = None
    current_icon_bytes: bytes | None = None
    last_error: str | None = None
