"""View-model coordinating search, weather, icon and device-location flows.

The rendering layer calls ``search``, ``select_location`` and
``use_current_location`` and reads ``state`` (or subscribes to it). Each call
starts an independent asyncio task; state is only mutated on the event loop.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

from weather_lookup.exceptions import ErrorCode, LocationException, WeatherLookupException
from weather_lookup.location import (
    AuthorizationChanged,
    AuthorizationStatus,
    LocationEvent,
    LocationFailed,
    LocationProvider,
    PositionUpdated,
)
from weather_lookup.logging_config import get_logger, log_with_context
from weather_lookup.models.location import Coordinate
from weather_lookup.models.state import WeatherState
from weather_lookup.protocols import IconCacheProtocol, LocationPreferenceProtocol, WeatherServiceProtocol
from weather_lookup.state_managers import StateListener, WeatherStateManager

logger = get_logger(__name__)

LOCATION_DENIED_MESSAGE = "Location authorization was denied."


class WeatherViewModel:
    """Single owner of the observable weather state.

    Must be constructed inside a running event loop. Construction starts a
    restore flow that reads the saved location off the loop and, if one was
    saved, fetches its weather.

    Flows may overlap freely. Nothing is cancelled: when two searches are in
    flight, whichever finishes last wins. ``last_error`` is never cleared by a
    later success, and a failed search keeps the previous results.
    """

    def __init__(
        self,
        weather_service: WeatherServiceProtocol,
        icon_cache: IconCacheProtocol,
        preferences: LocationPreferenceProtocol,
        state_manager: WeatherStateManager | None = None,
        location_provider: LocationProvider | None = None,
    ):
        self._weather_service = weather_service
        self._icon_cache = icon_cache
        self._preferences = preferences
        self._state = state_manager or WeatherStateManager()
        self._location_provider = location_provider
        self._loop = asyncio.get_running_loop()
        self._tasks: set[asyncio.Task[None]] = set()
        self._awaiting_position = False

        if location_provider is not None:
            location_provider.set_listener(self._on_location_event)

        self._spawn(self._run_restore(), "startup_restore")

    # State

    @property
    def state(self) -> WeatherState:
        return self._state.state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register for state snapshots; returns an unsubscribe callable."""
        return self._state.subscribe(listener)

    # Entry points

    def search(self, query: str) -> asyncio.Task[None]:
        """Start a geocoding search for ``query``."""
        return self._spawn(self._run_search(query), "search")

    def select_location(self, coordinate: Coordinate) -> asyncio.Task[None]:
        """Start fetching weather (then the icon) for ``coordinate``."""
        return self._spawn(self._run_selection(coordinate), "select_location")

    def load_icon(self, icon_code: str) -> asyncio.Task[None]:
        """Start loading the icon for ``icon_code``, cache first."""
        return self._spawn(self._run_icon(icon_code), "load_icon")

    def use_current_location(self, on_complete: Callable[[bool], None] | None = None) -> None:
        """Fetch weather for the device position.

        ``on_complete`` receives False when location access is denied or
        restricted, and True once position updates have started. While the
        permission is undetermined the provider is asked for it and the outcome
        arrives later as an authorization event.

        Raises:
            RuntimeError: If no location provider was configured
        """
        if self._location_provider is None:
            raise RuntimeError("No location provider configured.")
        self._handle_authorization(self._location_provider.authorization_status, on_complete)

    async def wait_until_idle(self) -> None:
        """Wait for every in-flight flow to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cleanup(self) -> None:
        """Let in-flight flows finish, then detach from the location provider."""
        await self.wait_until_idle()
        if self._location_provider is not None:
            if self._awaiting_position:
                self._location_provider.stop_updates()
                self._awaiting_position = False
            self._location_provider.set_listener(None)
        await self._state.cleanup()

    # Flows

    async def _run_restore(self) -> None:
        last_location = await asyncio.to_thread(self._preferences.load)
        if last_location is None:
            return
        log_with_context(
            logger,
            "info",
            "Restoring last viewed location",
            lat=last_location.lat,
            lon=last_location.lon,
            event_type="startup_restore",
        )
        await self._run_selection(last_location)

    async def _run_search(self, query: str) -> None:
        log_with_context(logger, "debug", "Search started", query=query, event_type="search_start")
        try:
            results = await self._weather_service.search_locations(query)
        except WeatherLookupException as e:
            await self._report_error(e, "search")
            return
        await self._state.update(search_results=tuple(results))
        log_with_context(
            logger,
            "info",
            "Search complete",
            query=query,
            result_count=len(results),
            event_type="search_complete",
        )

    async def _run_selection(self, coordinate: Coordinate) -> None:
        log_with_context(
            logger,
            "debug",
            "Weather fetch started",
            lat=coordinate.lat,
            lon=coordinate.lon,
            event_type="weather_start",
        )
        try:
            weather = await self._weather_service.fetch_weather(coordinate)
        except WeatherLookupException as e:
            await self._report_error(e, "weather")
            return

        await self._state.update(current_weather=weather)
        # Only a coordinate that produced a decoded snapshot is remembered
        await asyncio.to_thread(self._preferences.save, coordinate)
        log_with_context(
            logger,
            "info",
            "Weather updated",
            location=weather.name,
            icon_code=weather.icon_code,
            event_type="weather_complete",
        )
        await self._run_icon(weather.icon_code)

    async def _run_icon(self, icon_code: str) -> None:
        cached = await asyncio.to_thread(self._icon_cache.load, icon_code)
        if cached is not None:
            await self._state.update(current_icon_bytes=cached)
            return

        try:
            data = await self._weather_service.fetch_icon(icon_code)
        except WeatherLookupException as e:
            await self._report_error(e, "icon")
            return

        if not data:
            log_with_context(logger, "debug", "No icon data returned", icon_code=icon_code, event_type="icon_empty")
            return

        await asyncio.to_thread(self._icon_cache.save, data, icon_code)
        await self._state.update(current_icon_bytes=data)
        log_with_context(logger, "debug", "Icon downloaded", icon_code=icon_code, event_type="icon_downloaded")

    async def _report_error(self, error: WeatherLookupException, flow: str) -> None:
        log_with_context(
            logger,
            "warning",
            "Flow failed",
            flow=flow,
            error=error.message,
            error_code=error.code.value,
            event_type="flow_error",
        )
        await self._state.update(last_error=error.message)

    # Device location

    def _handle_authorization(
        self, status: AuthorizationStatus, on_complete: Callable[[bool], None] | None
    ) -> None:
        provider = self._location_provider
        if provider is None:
            return
        if status is AuthorizationStatus.NOT_DETERMINED:
            provider.request_authorization()
            return

        granted = status.is_authorized
        if granted:
            self._awaiting_position = True
            provider.start_updates()
        if on_complete is not None:
            on_complete(granted)

    def _on_authorization_result(self, granted: bool) -> None:
        if not granted:
            denied = LocationException(LOCATION_DENIED_MESSAGE, code=ErrorCode.LOCATION_DENIED)
            self._spawn(self._report_error(denied, "location"), "location_denied")

    def _on_location_event(self, event: LocationEvent) -> None:
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._handle_location_event(event)
        else:
            self._loop.call_soon_threadsafe(self._handle_location_event, event)

    def _handle_location_event(self, event: LocationEvent) -> None:
        if isinstance(event, AuthorizationChanged):
            self._handle_authorization(event.status, self._on_authorization_result)
        elif isinstance(event, PositionUpdated):
            if not self._awaiting_position:
                return
            # One fix is enough
            self._awaiting_position = False
            if self._location_provider is not None:
                self._location_provider.stop_updates()
            self.select_location(event.coordinate)
        elif isinstance(event, LocationFailed):
            self._spawn(self._report_error(LocationException(event.message), "location"), "location_error")

    # Tasks

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[None]:
        task = self._loop.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_with_context(
                logger,
                "error",
                "Flow crashed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
                event_type="flow_crashed",
            )
