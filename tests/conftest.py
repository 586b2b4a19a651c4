"""Pytest configuration and shared fixtures."""

import json
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock

import httpx
import pytest
from PIL import Image

from weather_lookup.config import Settings
from weather_lookup.icon_cache import IconDiskCache
from weather_lookup.models.weather import WeatherSnapshot
from weather_lookup.preferences import LocationPreferenceStore, MemoryKeyValueStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def make_png(color: str = "orange", size: tuple[int, int] = (4, 4)) -> bytes:
    """Small PNG image as raw bytes."""
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def london_locations_payload():
    """Geocoding API response for "London" (five matches)."""
    return json.loads((FIXTURES_DIR / "london_geocode.json").read_text(encoding="utf-8"))


@pytest.fixture
def london_weather_payload():
    """Current weather API response for London."""
    return json.loads((FIXTURES_DIR / "london_weather.json").read_text(encoding="utf-8"))


@pytest.fixture
def london_weather(london_weather_payload):
    """Decoded London WeatherSnapshot."""
    return WeatherSnapshot.model_validate(london_weather_payload)


@pytest.fixture
def png_bytes():
    """Valid PNG icon bytes."""
    return make_png()


@pytest.fixture
def png_factory():
    """Build PNG bytes of a given color and size."""
    return make_png


@pytest.fixture
def mock_settings(tmp_path):
    """Settings instance with test values and a temporary data directory."""
    return Settings(
        weather_api_key="test-weather-key",
        api_base_url="https://api.test.local",
        icon_base_url="https://icons.test.local/img/wn",
        data_dir=tmp_path / "data",
        request_timeout=5.0,
    )


@pytest.fixture
def mock_http_client():
    """Mock httpx.AsyncClient for external API calls."""
    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.get = AsyncMock()
    mock_client.aclose = AsyncMock()
    return mock_client


@pytest.fixture
def icon_cache(tmp_path):
    """Icon cache rooted in a temporary directory."""
    return IconDiskCache(tmp_path / "ImageCache")


@pytest.fixture
def preferences():
    """Location preference store over an in-memory slot."""
    return LocationPreferenceStore(MemoryKeyValueStore())


@pytest.fixture
def mock_weather_service(london_weather, png_bytes):
    """Weather service double that succeeds with London data."""
    service = AsyncMock()
    service.search_locations = AsyncMock(return_value=[])
    service.fetch_weather = AsyncMock(return_value=london_weather)
    service.fetch_icon = AsyncMock(return_value=png_bytes)
    return service
