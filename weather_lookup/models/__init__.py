"""Weather Lookup models"""

from weather_lookup.models.location import Coordinate, GeoLocation
from weather_lookup.models.state import WeatherState
from weather_lookup.models.weather import (
    CloudsInfo,
    MainInfo,
    RainInfo,
    SysInfo,
    WeatherInfo,
    WeatherSnapshot,
    WindInfo,
)

__all__ = [
    "CloudsInfo",
    "Coordinate",
    "GeoLocation",
    "MainInfo",
    "RainInfo",
    "SysInfo",
    "WeatherInfo",
    "WeatherSnapshot",
    "WeatherState",
    "WindInfo",
]
