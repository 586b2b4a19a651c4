"""Application lifespan management.

Builds the process-wide components once, hands them to the caller and tears
them down again.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from weather_lookup import __version__
from weather_lookup.config import Settings
from weather_lookup.icon_cache import IconDiskCache
from weather_lookup.location import LocationProvider
from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.preferences import JsonFileKeyValueStore, LocationPreferenceStore
from weather_lookup.redaction import redact_sensitive_data
from weather_lookup.services.fetch_client import FetchClient
from weather_lookup.services.weather_service import WeatherService
from weather_lookup.state_managers import WeatherStateManager
from weather_lookup.view_model import WeatherViewModel

logger = get_logger(__name__)


async def log_request(request: httpx.Request) -> None:
    """Event hook to log requests with redacted sensitive data."""
    log_with_context(
        logger,
        "info",
        "HTTP Request",
        method=request.method,
        url=redact_sensitive_data(str(request.url)),
        event_type="http_request",
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook to log responses with redacted sensitive data."""
    log_with_context(
        logger,
        "info",
        "HTTP Response",
        status_code=response.status_code,
        url=redact_sensitive_data(str(response.request.url)),
        event_type="http_response",
    )


@dataclass
class WeatherApp:
    """Components shared for the lifetime of the process."""

    icon_cache: IconDiskCache
    preferences: LocationPreferenceStore
    view_model: WeatherViewModel


def create_http_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the shared HTTP client with logging hooks and the configured timeout."""
    event_hooks: dict[str, list[Callable[..., Any]]] = {
        "request": [log_request],
        "response": [log_response],
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        follow_redirects=True,
        event_hooks=event_hooks,
        transport=transport,
    )


@asynccontextmanager
async def lifespan(
    settings: Settings,
    location_provider: LocationProvider | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[WeatherApp]:
    """Wire up the application and clean it up on exit.

    Args:
        settings: Application settings
        location_provider: Optional device location source
        transport: Optional httpx transport (e.g. a MockTransport in tests)
    """
    log_with_context(
        logger,
        "info",
        "Starting Weather Lookup",
        version=__version__,
        data_dir=str(settings.data_dir),
        event_type="app_startup",
    )

    client = create_http_client(settings, transport)
    weather_service = WeatherService(
        FetchClient(client),
        api_key=settings.weather_api_key,
        api_base_url=settings.api_base_url,
        icon_base_url=settings.icon_base_url,
    )
    icon_cache = IconDiskCache(settings.icon_cache_dir)
    preferences = LocationPreferenceStore(JsonFileKeyValueStore(settings.preferences_path))
    state_manager = WeatherStateManager()
    await state_manager.initialize()
    view_model = WeatherViewModel(
        weather_service,
        icon_cache,
        preferences,
        state_manager=state_manager,
        location_provider=location_provider,
    )

    app = WeatherApp(
        icon_cache=icon_cache,
        preferences=preferences,
        view_model=view_model,
    )

    try:
        yield app
    except Exception as e:
        log_with_context(
            logger,
            "error",
            "Application error during lifespan",
            error=str(e),
            error_type=type(e).__name__,
            event_type="app_error",
        )
        raise
    finally:
        log_with_context(logger, "info", "Shutting down Weather Lookup", event_type="app_shutdown")
        await view_model.cleanup()
        await client.aclose()
        log_with_context(logger, "info", "HTTP client closed", event_type="http_client_cleanup")
