"""Weather service for interacting with the OpenWeatherMap API."""

import logging
from typing import Optional

import httpx

from .config import (
    DEFAULT_LANGUAGE,
    DEFAULT_UNITS,
    OPENWEATHER_API_KEY,
    OPENWEATHER_BASE_URL,
    OPENWEATHER_GEO_PATH,
    OPENWEATHER_WEATHER_PATH,
)
from .errors import LocationNotFound, ProviderError, WeatherUnavailable
from .models import (
    Coordinates,
    GeocodingParams,
    HTTPClientConfig,
    Location,
    WeatherParams,
    WeatherResult,
)

logger = logging.getLogger(__name__)


class WeatherService:
    """
    Handles interactions with the OpenWeatherMap API.
    Responsible for geocoding cities and fetching weather data.

    Calls share one AsyncClient and keep no per-call state, so any number of
    fetch tasks may use the service at the same time.
    """

    def __init__(
        self,
        client_config: HTTPClientConfig = None,
        api_key: Optional[str] = None,
        base_url: str = OPENWEATHER_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the weather service"""
        if client_config is None:
            client_config = HTTPClientConfig()
        self.api_key = api_key if api_key is not None else OPENWEATHER_API_KEY or ""
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=client_config.to_httpx_timeout(),
            limits=client_config.to_httpx_limits(),
            transport=transport,
        )

    async def close(self):
        """Close the HTTP client and clean up resources."""
        await self.client.aclose()

    async def get_coordinates(self, city: str, country: str = "") -> Location:
        """
        Resolves a city/country pair to a location with coordinates.

        Args:
            city: Name of the city to geocode
            country: Optional country name or ISO code narrowing the search

        Returns:
            Location with the provider's spelling of city and country

        Raises:
            LocationNotFound: If the provider has no match
            ProviderError: If the API request fails
        """
        params = GeocodingParams(city=city, country=country, api_key=self.api_key)

        try:
            response = await self.client.get(OPENWEATHER_GEO_PATH, params=params.to_dict())
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            logger.warning("Geocoding API timeout for %s: %s", city, e)
            raise ProviderError(f"Timeout while resolving {city}: {e}") from e
        except httpx.HTTPError as e:
            logger.warning("Geocoding API failed for %s: %s", city, e)
            raise ProviderError(f"Error resolving {city}: {e}") from e
        except ValueError as e:
            raise ProviderError(f"Malformed geocoding response for {city}") from e

        if not isinstance(data, list) or not data:
            raise LocationNotFound(city, country)

        location_data = data[0]
        return Location(
            city=location_data.get("name", city),
            country=location_data.get("country", country),
            coordinates=Coordinates(
                lat=float(location_data["lat"]), lon=float(location_data["lon"])
            ),
        )

    async def get_current_weather(
        self,
        coordinates: Coordinates,
        language: str = DEFAULT_LANGUAGE,
        units: str = DEFAULT_UNITS,
    ) -> WeatherResult:
        """
        Fetches current weather data using coordinates.

        Args:
            coordinates: Location to query
            language: Language code for the weather description
            units: metric, imperial or standard

        Returns:
            WeatherResult with the provider's place name and temperatures

        Raises:
            WeatherUnavailable: If the API request fails or has no weather data
        """
        params = WeatherParams(
            latitude=coordinates.lat,
            longitude=coordinates.lon,
            api_key=self.api_key,
            units=units,
            language=language,
        )

        try:
            response = await self.client.get(OPENWEATHER_WEATHER_PATH, params=params.to_dict())
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise WeatherUnavailable(f"Timeout while fetching weather data: {str(e)}") from e
        except httpx.HTTPError as e:
            raise WeatherUnavailable(f"Error fetching weather data: {str(e)}") from e
        except ValueError as e:
            raise WeatherUnavailable("Malformed weather response") from e

        details = data.get("weather") or []
        if not details:
            raise WeatherUnavailable("Not found")

        main = data.get("main", {})
        return WeatherResult(
            city=data.get("name", ""),
            country=data.get("sys", {}).get("country", ""),
            temperature=main.get("temp", 0.0),
            feels_like=main.get("feels_like", 0.0),
            description=details[0].get("description", ""),
            units=units,
        )
