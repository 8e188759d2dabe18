"""Error types surfaced to the user by the command dispatcher."""


class WeatherCLIError(Exception):
    """Base class for every error the CLI reports."""


class ProviderError(WeatherCLIError):
    """The weather provider could not be reached or returned a bad response."""


class LocationNotFound(ProviderError):
    """Geocoding returned no match for a city/country pair."""

    def __init__(self, city: str, country: str = ""):
        self.city = city
        self.country = country
        place = f"{city}, {country}" if country else city
        super().__init__(f"Location not found: {place}")


class WeatherUnavailable(ProviderError):
    """No current weather could be produced for a set of coordinates."""


class DuplicateFavourite(WeatherCLIError):
    def __init__(self, city: str):
        self.city = city
        super().__init__(f"{city} already exists in favourites")


class NotFound(WeatherCLIError):
    def __init__(self, city: str):
        self.city = city
        super().__init__(f"City {city} does not exist in favourites")


class PersistenceError(WeatherCLIError):
    """The config file could not be written."""


class InputStreamFailure(WeatherCLIError):
    """Terminal input is gone; the only fatal condition."""
