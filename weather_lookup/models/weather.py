"""Pydantic models for weather data.

The models mirror the OpenWeatherMap current-weather payload.
"""

from pydantic import BaseModel, ConfigDict, Field

from weather_lookup.models.location import Coordinate


class WeatherInfo(BaseModel):
    """Weather condition info from OpenWeatherMap."""

    model_config = ConfigDict(frozen=True)

    id: int
    main: str
    description: str
    icon: str


class MainInfo(BaseModel):
    """Main weather metrics from OpenWeatherMap."""

    model_config = ConfigDict(frozen=True)

    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: int
    humidity: int
    sea_level: int | None = None
    grnd_level: int | None = None


class WindInfo(BaseModel):
    """Wind information from OpenWeatherMap."""

    model_config = ConfigDict(frozen=True)

    speed: float
    deg: int
    gust: float | None = None


class RainInfo(BaseModel):
    """Precipitation volume for the last hour."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    one_hour: float | None = Field(default=None, alias="1h")


class CloudsInfo(BaseModel):
    """Cloud coverage information."""

    model_config = ConfigDict(frozen=True)

    all: int


class SysInfo(BaseModel):
    """Country and sun times."""

    model_config = ConfigDict(frozen=True)

    type: int | None = None
    id: int | None = None
    country: str | None = None
    sunrise: int
    sunset: int


class WeatherSnapshot(BaseModel):
    """Current weather for one coordinate, as decoded from the API."""

    model_config = ConfigDict(frozen=True)

    coord: Coordinate
    weather: list[WeatherInfo]
    base: str
    main: MainInfo
    visibility: int
    wind: WindInfo
    rain: RainInfo | None = None
    clouds: CloudsInfo
    dt: int
    sys: SysInfo
    timezone: int
    id: int
    name: str
    cod: int

    @property
    def primary_condition(self) -> WeatherInfo | None:
        """First reported condition, if any."""
        return self.weather[0] if self.weather else None

    @property
    def icon_code(self) -> str:
        """Icon code of the first condition, or an empty string."""
        condition = self.primary_condition
        return condition.icon if condition else ""
