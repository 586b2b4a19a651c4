"""Unit tests for the weather view-model flows."""

import asyncio
import threading
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from weather_lookup.exceptions import BadURLException, RequestFailedException, ServerErrorException
from weather_lookup.models.location import Coordinate, GeoLocation
from weather_lookup.preferences import LocationPreferenceStore, MemoryKeyValueStore
from weather_lookup.view_model import WeatherViewModel

LONDON = Coordinate(lat=51.5073219, lon=-0.1276474)


class RecordingIconCache:
    """In-memory icon cache that records the order of calls."""

    def __init__(self):
        self.entries: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.icon_state_at_save: list[bytes | None] = []
        self.view_model: WeatherViewModel | None = None

    def load(self, key):
        self.calls.append(("load", key))
        return self.entries.get(key)

    def save(self, data, key):
        self.calls.append(("save", key))
        if self.view_model is not None:
            self.icon_state_at_save.append(self.view_model.state.current_icon_bytes)
        self.entries[key] = data

    def delete(self, key):
        self.entries.pop(key, None)

    def clear(self):
        self.entries.clear()


@pytest.fixture
def recording_cache():
    return RecordingIconCache()


@pytest.fixture
def spy_preferences():
    """Preference store that records calls while really storing."""
    return Mock(wraps=LocationPreferenceStore(MemoryKeyValueStore()))


def location(name: str, lat: float, lon: float) -> GeoLocation:
    return GeoLocation(name=name, lat=lat, lon=lon, country="GB")


# Search flow


@pytest.mark.asyncio
async def test_search_replaces_results(mock_weather_service, recording_cache, preferences):
    """Test a successful search replaces the result list wholesale."""
    mock_weather_service.search_locations.return_value = [location("London", 51.5, -0.12)]
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.search("London")

    assert [r.name for r in view_model.state.search_results] == ["London"]
    assert view_model.state.last_error is None
    mock_weather_service.search_locations.assert_awaited_once_with("London")


@pytest.mark.asyncio
async def test_search_failure_keeps_previous_results(mock_weather_service, recording_cache, preferences):
    """Test a failed search sets last_error and leaves old results visible."""
    mock_weather_service.search_locations.return_value = [location("Paris", 48.85, 2.35)]
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    await view_model.search("Paris")

    mock_weather_service.search_locations.side_effect = RequestFailedException()
    await view_model.search("Lyon")

    assert [r.name for r in view_model.state.search_results] == ["Paris"]
    assert view_model.state.last_error == "The network request failed."


@pytest.mark.asyncio
async def test_search_empty_query_reports_error(mock_weather_service, recording_cache, preferences):
    """Test the service's BadURL error is shown for an empty query."""
    mock_weather_service.search_locations.side_effect = BadURLException("Enter a city name to search.")
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.search("")

    assert view_model.state.last_error == "Enter a city name to search."
    assert view_model.state.search_results == ()


@pytest.mark.asyncio
async def test_overlapping_searches_last_completion_wins(mock_weather_service, recording_cache, preferences):
    """Test superseded searches are not cancelled; the later finisher wins."""
    slow_release = asyncio.Event()

    async def search(query):
        if query == "slow":
            await slow_release.wait()
            return [location("Slow", 1.0, 1.0)]
        return [location("Fast", 2.0, 2.0)]

    mock_weather_service.search_locations.side_effect = search
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    slow_task = view_model.search("slow")
    await view_model.search("fast")
    assert view_model.state.search_results[0].name == "Fast"

    slow_release.set()
    await slow_task

    assert not slow_task.cancelled()
    assert view_model.state.search_results[0].name == "Slow"


# Selection / weather flow


@pytest.mark.asyncio
async def test_selection_failure_does_not_persist(mock_weather_service, recording_cache, spy_preferences):
    """Test a failed weather fetch leaves state and preferences untouched."""
    mock_weather_service.fetch_weather.side_effect = ServerErrorException(500)
    view_model = WeatherViewModel(mock_weather_service, recording_cache, spy_preferences)

    await view_model.select_location(LONDON)

    assert view_model.state.current_weather is None
    assert view_model.state.last_error == "The server returned an error (HTTP 500)."
    assert spy_preferences.save.call_count == 0
    mock_weather_service.fetch_icon.assert_not_called()
    assert recording_cache.calls == []


@pytest.mark.asyncio
async def test_selection_failure_keeps_previous_weather(
    mock_weather_service, recording_cache, preferences, london_weather
):
    """Test stale weather stays visible after a later failure."""
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    await view_model.select_location(LONDON)

    mock_weather_service.fetch_weather.side_effect = RequestFailedException()
    await view_model.select_location(Coordinate(lat=0.0, lon=0.0))

    assert view_model.state.current_weather == london_weather
    assert view_model.state.last_error is not None


@pytest.mark.asyncio
async def test_selection_success_persists_and_fetches_icon(
    mock_weather_service, recording_cache, spy_preferences, london_weather, png_bytes
):
    """Test weather success updates state, saves the coordinate, then loads the icon."""
    view_model = WeatherViewModel(mock_weather_service, recording_cache, spy_preferences)
    recording_cache.view_model = view_model

    await view_model.select_location(LONDON)

    assert view_model.state.current_weather == london_weather
    spy_preferences.save.assert_called_once_with(LONDON)
    assert spy_preferences.load() == LONDON
    mock_weather_service.fetch_icon.assert_awaited_once_with("01d")
    assert recording_cache.calls == [("load", "01d"), ("save", "01d")]
    # Cache written before the icon is published
    assert recording_cache.icon_state_at_save == [None]
    assert view_model.state.current_icon_bytes == png_bytes


@pytest.mark.asyncio
async def test_selection_without_conditions_uses_empty_icon_code(
    mock_weather_service, recording_cache, preferences, london_weather_payload
):
    """Test a snapshot with no conditions starts the icon flow with an empty code."""
    from weather_lookup.models.weather import WeatherSnapshot

    payload = dict(london_weather_payload, weather=[])
    mock_weather_service.fetch_weather.return_value = WeatherSnapshot.model_validate(payload)
    mock_weather_service.fetch_icon.return_value = None
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.select_location(LONDON)

    mock_weather_service.fetch_icon.assert_awaited_once_with("")
    assert view_model.state.current_icon_bytes is None
    assert view_model.state.last_error is None


# Icon flow


@pytest.mark.asyncio
async def test_icon_cache_hit_skips_network(mock_weather_service, recording_cache, preferences):
    """Test a cached icon is used without a network call."""
    recording_cache.entries["10n"] = b"cached-icon"
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.load_icon("10n")

    assert view_model.state.current_icon_bytes == b"cached-icon"
    mock_weather_service.fetch_icon.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("downloaded", [None, b""])
async def test_icon_empty_download_changes_nothing(mock_weather_service, recording_cache, preferences, downloaded):
    """Test an empty or absent download neither caches nor updates state."""
    mock_weather_service.fetch_icon.return_value = downloaded
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.load_icon("01d")

    assert view_model.state.current_icon_bytes is None
    assert ("save", "01d") not in recording_cache.calls


@pytest.mark.asyncio
async def test_icon_download_failure_sets_error(mock_weather_service, recording_cache, preferences):
    """Test a failed icon download is reported through last_error."""
    mock_weather_service.fetch_icon.side_effect = ServerErrorException(404)
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.load_icon("zz")

    assert view_model.state.last_error == "The server returned an error (HTTP 404)."
    assert view_model.state.current_icon_bytes is None


@pytest.mark.asyncio
async def test_icon_not_cacheable_is_still_shown(mock_weather_service, icon_cache, preferences, png_bytes, monkeypatch):
    """Test a download the cache refuses to store is still published."""
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 4)
    view_model = WeatherViewModel(mock_weather_service, icon_cache, preferences)

    task = view_model.load_icon("01d")
    await task

    assert task.exception() is None
    assert view_model.state.current_icon_bytes == png_bytes
    assert view_model.state.last_error is None
    assert icon_cache.load("01d") is None


@pytest.mark.asyncio
async def test_icon_flow_with_disk_cache(mock_weather_service, icon_cache, preferences, png_bytes):
    """Test the second load of an icon comes from disk."""
    view_model = WeatherViewModel(mock_weather_service, icon_cache, preferences)

    await view_model.load_icon("01d")
    await view_model.load_icon("01d")

    assert mock_weather_service.fetch_icon.await_count == 1
    assert icon_cache.load("01d") is not None


# Startup


@pytest.mark.asyncio
async def test_startup_fetches_saved_location(mock_weather_service, recording_cache, preferences, london_weather):
    """Test construction resumes the last saved location."""
    preferences.save(Coordinate(lat=37.7749, lon=-122.4194))

    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    await view_model.wait_until_idle()

    mock_weather_service.fetch_weather.assert_awaited_once_with(Coordinate(lat=37.7749, lon=-122.4194))
    assert view_model.state.current_weather == london_weather


@pytest.mark.asyncio
async def test_startup_reads_preferences_off_the_loop(mock_weather_service, recording_cache, spy_preferences):
    """Test the saved location is read in a worker thread, not during construction."""
    loop_thread = threading.get_ident()
    reader_threads = []

    def load():
        reader_threads.append(threading.get_ident())
        return None

    spy_preferences.load.side_effect = load

    view_model = WeatherViewModel(mock_weather_service, recording_cache, spy_preferences)
    assert reader_threads == []

    await view_model.wait_until_idle()

    assert len(reader_threads) == 1
    assert reader_threads[0] != loop_thread


@pytest.mark.asyncio
async def test_startup_without_saved_location_is_idle(mock_weather_service, recording_cache, preferences):
    """Test nothing is fetched when no location was saved."""
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    await view_model.wait_until_idle()

    mock_weather_service.fetch_weather.assert_not_called()
    assert view_model.state.current_weather is None


# State observation


@pytest.mark.asyncio
async def test_last_error_survives_later_success(mock_weather_service, recording_cache, preferences):
    """Test a later success does not clear an earlier error."""
    mock_weather_service.search_locations.side_effect = [RequestFailedException(), [location("Oslo", 59.9, 10.7)]]
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)

    await view_model.search("Oslo")
    await view_model.search("Oslo")

    assert view_model.state.search_results[0].name == "Oslo"
    assert view_model.state.last_error == "The network request failed."


@pytest.mark.asyncio
async def test_subscribers_receive_snapshots(mock_weather_service, recording_cache, preferences, png_bytes):
    """Test each state change is broadcast in flow order."""
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    snapshots = []
    unsubscribe = view_model.subscribe(snapshots.append)

    await view_model.select_location(LONDON)

    assert len(snapshots) == 2
    assert snapshots[0].current_weather is not None
    assert snapshots[0].current_icon_bytes is None
    assert snapshots[1].current_icon_bytes == png_bytes

    unsubscribe()
    await view_model.load_icon("01d")
    assert len(snapshots) == 2


@pytest.mark.asyncio
async def test_cleanup_waits_for_flows(mock_weather_service, recording_cache, preferences):
    """Test cleanup lets in-flight flows complete."""
    release = asyncio.Event()

    async def slow_search(query):
        await release.wait()
        return [location("Rome", 41.9, 12.5)]

    mock_weather_service.search_locations = AsyncMock(side_effect=slow_search)
    view_model = WeatherViewModel(mock_weather_service, recording_cache, preferences)
    task = view_model.search("Rome")

    asyncio.get_running_loop().call_later(0.01, release.set)
    await view_model.cleanup()

    assert task.done()
    assert view_model.state.search_results[0].name == "Rome"
