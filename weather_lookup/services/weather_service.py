"""Weather service for OpenWeatherMap API integration."""

import httpx

from weather_lookup.exceptions import BadURLException
from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.models.location import Coordinate, GeoLocation
from weather_lookup.models.weather import WeatherSnapshot
from weather_lookup.services.fetch_client import RAW_BYTES, DecodeAs, FetchClient

GEOCODING_PATH = "/geo/1.0/direct"
WEATHER_PATH = "/data/2.5/weather"
GEOCODING_LIMIT = 5

logger = get_logger(__name__)

_LOCATIONS: DecodeAs[list[GeoLocation]] = DecodeAs(list[GeoLocation])
_SNAPSHOT: DecodeAs[WeatherSnapshot] = DecodeAs(WeatherSnapshot)


class WeatherService:
    """Geocoding search, current weather and icon download.

    Every call is a single request through the fetch client; errors propagate
    unchanged to the caller.
    """

    def __init__(
        self,
        fetch_client: FetchClient,
        api_key: str,
        api_base_url: str = "https://api.openweathermap.org",
        icon_base_url: str = "https://openweathermap.org/img/wn",
    ):
        self._fetch_client = fetch_client
        self._api_key = api_key
        self._api_base_url = api_base_url.rstrip("/")
        self._icon_base_url = icon_base_url.rstrip("/")

    async def search_locations(self, query: str) -> list[GeoLocation]:
        """Resolve a free-text place name to at most five candidates.

        Raises:
            BadURLException: If ``query`` is empty; no request is made
        """
        if not query or not query.strip():
            raise BadURLException("Enter a city name to search.")

        url = self._api_url(GEOCODING_PATH, {"q": query, "limit": GEOCODING_LIMIT, "appid": self._api_key})
        locations = await self._fetch_client.fetch(url, _LOCATIONS)
        log_with_context(
            logger,
            "debug",
            "Geocoding search complete",
            query=query,
            result_count=len(locations),
            event_type="geocode_search",
        )
        return locations

    async def fetch_weather(self, coordinate: Coordinate) -> WeatherSnapshot:
        """Fetch current weather for ``coordinate``."""
        url = self._api_url(
            WEATHER_PATH,
            {"lat": str(coordinate.lat), "lon": str(coordinate.lon), "appid": self._api_key},
        )
        return await self._fetch_client.fetch(url, _SNAPSHOT)

    def icon_url(self, code: str) -> httpx.URL | None:
        """URL of the 2x PNG for ``code``, or None if no URL can be built from it."""
        if not code or "/" in code or code != code.strip():
            return None
        try:
            return httpx.URL(f"{self._icon_base_url}/{code}@2x.png")
        except httpx.InvalidURL:
            return None

    async def fetch_icon(self, code: str) -> bytes | None:
        """Download the icon image for ``code``.

        Returns:
            Raw image bytes, or None if no icon URL could be built
        """
        url = self.icon_url(code)
        if url is None:
            log_with_context(
                logger,
                "debug",
                "No icon URL for code",
                icon_code=code,
                event_type="icon_url_unavailable",
            )
            return None
        return await self._fetch_client.fetch(url, RAW_BYTES)

    def _api_url(self, path: str, params: dict[str, str | int]) -> httpx.URL:
        try:
            return httpx.URL(f"{self._api_base_url}{path}", params=params)
        except httpx.InvalidURL as e:
            raise BadURLException(details={"path": path}) from e
