import asyncio

import pytest

from weather_cli.dispatcher import CommandDispatcher
from weather_cli.errors import LocationNotFound, WeatherUnavailable
from weather_cli.favourites import ConfigStore
from weather_cli.models import Coordinates, Location, UserConfig, WeatherResult

KNOWN_LOCATIONS = {
    "paris": Location("Paris", "FR", Coordinates(48.8589, 2.32)),
    "london": Location("London", "GB", Coordinates(51.5073, -0.1276)),
    "berlin": Location("Berlin", "DE", Coordinates(52.517, 13.3889)),
}


class DummyWeatherService:
    """Answers from KNOWN_LOCATIONS; optionally holds weather calls until released."""

    def __init__(self, gated: bool = False):
        self.gated = gated
        self.geocode_calls = []
        self.weather_calls = []
        self.gates = {}

    def gate(self, coordinates: Coordinates) -> asyncio.Event:
        return self.gates.setdefault(coordinates, asyncio.Event())

    async def get_coordinates(self, city, country=""):
        self.geocode_calls.append((city, country))
        location = KNOWN_LOCATIONS.get(city.lower())
        if location is None:
            raise LocationNotFound(city, country)
        return location

    async def get_current_weather(self, coordinates, language="en", units="metric"):
        self.weather_calls.append(coordinates)
        if self.gated:
            await self.gate(coordinates).wait()
        for location in KNOWN_LOCATIONS.values():
            if location.coordinates == coordinates:
                return WeatherResult(
                    city=location.city,
                    country=location.country,
                    temperature=20.0,
                    feels_like=19.5,
                    description="clear sky",
                    units=units,
                )
        raise WeatherUnavailable("Not found")

    async def close(self):
        pass


async def settle(rounds: int = 20) -> None:
    """Let every runnable task advance until it blocks again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config.json"


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def make_dispatcher(store):
    """Build a dispatcher; must be called inside a running event loop."""

    def factory(service=None, favourites=(), store=store):
        config = UserConfig(favourites=[KNOWN_LOCATIONS[name] for name in favourites])
        return CommandDispatcher(
            service or DummyWeatherService(), store, config, asyncio.Queue()
        )

    return factory
