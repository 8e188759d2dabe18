import logging

import httpx
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .config import DEFAULT_LANGUAGE, DEFAULT_UNITS, UNIT_SYMBOLS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair."""

    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to the config file representation."""
        return {"Lat": self.lat, "Lon": self.lon}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinates":
        """
        Raises:
            ValueError: If the object or either coordinate is missing or not a number
        """
        if not isinstance(data, dict):
            raise ValueError("coordinates are not an object")
        try:
            return cls(lat=float(data["Lat"]), lon=float(data["Lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"invalid coordinates {data!r}") from e


@dataclass(frozen=True)
class Location:
    """Represents a geographic location with coordinates."""

    city: str
    country: str
    coordinates: Coordinates

    def __str__(self) -> str:
        """String representation of the location."""
        if self.country:
            return f"{self.city}, {self.country}"
        return self.city

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the config file representation."""
        return {
            "City": self.city,
            "Country": self.country,
            "Coordinates": self.coordinates.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        """
        Raises:
            ValueError: If the entry is not an object, has no city or has bad coordinates
        """
        if not isinstance(data, dict):
            raise ValueError("favourite is not an object")
        city = data.get("City")
        if not isinstance(city, str) or not city:
            raise ValueError("favourite has no city")
        country = data.get("Country")
        return cls(
            city=city,
            country=country if isinstance(country, str) else "",
            coordinates=Coordinates.from_dict(data.get("Coordinates")),
        )


@dataclass
class WeatherResult:
    """Current weather for one place, as printed to the user."""

    city: str
    country: str
    temperature: float
    feels_like: float
    description: str
    units: str = DEFAULT_UNITS

    def format_for_cli(self) -> str:
        """Format the result block printed for a finished fetch."""
        symbol = UNIT_SYMBOLS.get(self.units, UNIT_SYMBOLS[DEFAULT_UNITS])
        return (
            f"\nWeather in {self.city}, {self.country}: \n\n"
            f"{self.description.title()} \n"
            f"Temperature: {self.temperature:.1f} {symbol} \n"
            f"Feels like: {self.feels_like:.1f} {symbol} \n"
        )


@dataclass(frozen=True)
class Command:
    """One tokenized input line. The first token is the verb."""

    tokens: Tuple[str, ...]

    @classmethod
    def parse(cls, line: str) -> Optional["Command"]:
        """Split a line on whitespace; blank lines produce no command."""
        tokens = tuple(line.split())
        if not tokens:
            return None
        return cls(tokens=tokens)

    @property
    def verb(self) -> str:
        return self.tokens[0].lower()

    @property
    def city(self) -> str:
        return self.tokens[1] if len(self.tokens) > 1 else ""

    @property
    def country(self) -> str:
        return self.tokens[2] if len(self.tokens) > 2 else ""


class FetchIntent(Enum):
    """Why a fetch was started."""

    LOOKUP = "lookup"
    FAVOURITES = "favourites"


@dataclass(frozen=True)
class FetchRequest:
    """
    Work for one fetch task.

    Either a city/country pair to resolve, or coordinates captured from a
    favourite at the time the fan-out was issued.
    """

    intent: FetchIntent
    city: str
    country: str = ""
    coordinates: Optional[Coordinates] = None

    @property
    def label(self) -> str:
        if self.country:
            return f"{self.city}, {self.country}"
        return self.city


@dataclass
class FetchError:
    """Human-readable cause of a failed fetch."""

    cause: str

    def __str__(self) -> str:
        return self.cause


@dataclass
class FetchOutcome:
    """Terminal result of one fetch task, delivered exactly once."""

    request: FetchRequest
    result: Union[WeatherResult, FetchError]

    @property
    def ok(self) -> bool:
        return isinstance(self.result, WeatherResult)


@dataclass
class UserConfig:
    """Persisted user settings and favourites."""

    language: str = DEFAULT_LANGUAGE
    units: str = DEFAULT_UNITS
    favourites: List[Location] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the config file representation."""
        return {
            "Language": self.language,
            "Units": self.units,
            "Favourites": [location.to_dict() for location in self.favourites],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserConfig":
        """Build a config, dropping favourites that cannot be read."""
        favourites = []
        entries = data.get("Favourites") or []
        if not isinstance(entries, list):
            logger.warning("Ignoring Favourites: expected a list, got %r", entries)
            entries = []
        for item in entries:
            try:
                favourites.append(Location.from_dict(item))
            except ValueError as e:
                logger.warning("Skipping unreadable favourite %r: %s", item, e)

        language = data.get("Language")
        units = data.get("Units")
        return cls(
            language=language if isinstance(language, str) and language else DEFAULT_LANGUAGE,
            units=units if isinstance(units, str) and units else DEFAULT_UNITS,
            favourites=favourites,
        )


@dataclass
class HTTPClientConfig:
    """HTTP client configuration."""

    timeout_seconds: float = 10.0
    connect_timeout_seconds: float = 5.0
    max_keepalive_connections: int = 5
    max_connections: int = 10

    def to_httpx_timeout(self):
        """Convert to httpx.Timeout."""

        return httpx.Timeout(self.timeout_seconds, connect=self.connect_timeout_seconds)

    def to_httpx_limits(self):
        """Convert to httpx.Limits."""

        return httpx.Limits(
            max_keepalive_connections=self.max_keepalive_connections,
            max_connections=self.max_connections,
        )


@dataclass
class GeocodingParams:
    """Parameters for geocoding API request."""

    city: str
    country: str
    api_key: str
    limit: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API request."""
        query = f"{self.city},{self.country}" if self.country else self.city
        return {"q": query, "limit": self.limit, "appid": self.api_key}


@dataclass
class WeatherParams:
    """Parameters for weather API request."""

    latitude: float
    longitude: float
    api_key: str
    units: str = DEFAULT_UNITS
    language: str = DEFAULT_LANGUAGE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API request."""
        return {
            "lat": self.latitude,
            "lon": self.longitude,
            "units": self.units,
            "lang": self.language,
            "appid": self.api_key,
        }
