"""Console entry point.

A minimal rendering surface: it subscribes to the view-model state and prints
what changes.

    python -m weather_lookup "London"            # list matches
    python -m weather_lookup "London" --select 1 # weather for the first match
    python -m weather_lookup                     # weather for the last location
    python -m weather_lookup --clear-cache
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from weather_lookup.config import Settings, get_settings
from weather_lookup.core.lifespan import lifespan
from weather_lookup.exceptions import ConfigurationException
from weather_lookup.logging_config import setup_logging
from weather_lookup.models.state import WeatherState


def render(previous: WeatherState, state: WeatherState) -> None:
    """Print the fields that changed between two snapshots."""
    if state.search_results != previous.search_results:
        for index, location in enumerate(state.search_results, start=1):
            print(f"{index}. {location.display_label} ({location.lat:.4f}, {location.lon:.4f})")
    if state.current_weather is not None and state.current_weather != previous.current_weather:
        weather = state.current_weather
        condition = weather.primary_condition
        description = condition.description.capitalize() if condition else ""
        print(f"{weather.name}: {weather.main.temp} {description}".rstrip())
    if state.current_icon_bytes is not None and state.current_icon_bytes != previous.current_icon_bytes:
        print(f"Icon: {len(state.current_icon_bytes)} bytes")
    if state.last_error is not None and state.last_error != previous.last_error:
        print(f"Error: {state.last_error}", file=sys.stderr)


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationException(f"Invalid configuration: {e}") from e


async def run(settings: Settings, query: str | None, select: int | None, clear_cache: bool) -> int:
    async with lifespan(settings) as app:
        view_model = app.view_model
        if clear_cache:
            app.icon_cache.clear()
            print("Icon cache cleared.")

        previous = view_model.state

        def on_change(state: WeatherState) -> None:
            nonlocal previous
            render(previous, state)
            previous = state

        view_model.subscribe(on_change)
        await view_model.wait_until_idle()

        if query:
            await view_model.search(query)
            if select is not None:
                results = view_model.state.search_results
                if not 1 <= select <= len(results):
                    print(f"No result number {select}.", file=sys.stderr)
                    return 1
                await view_model.select_location(results[select - 1].coordinate)

        await view_model.wait_until_idle()
        return 1 if view_model.state.last_error else 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="weather-lookup", description="Look up current weather for a city.")
    parser.add_argument("query", nargs="?", help="City name to search for")
    parser.add_argument("--select", type=int, help="Fetch weather for the N-th search result (1-based)")
    parser.add_argument("--clear-cache", action="store_true", help="Remove all cached icons first")
    args = parser.parse_args(argv)

    # Load environment variables from .env file
    load_dotenv(Path.cwd() / ".env")

    try:
        settings = load_settings()
    except ConfigurationException as e:
        print(e.message, file=sys.stderr)
        return 2

    setup_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(settings, args.query, args.select, args.clear_cache))


if __name__ == "__main__":
    sys.exit(main())
