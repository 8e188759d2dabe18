import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# API Configuration
OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY") or os.getenv("API_KEY")
OPENWEATHER_BASE_URL = os.getenv("OPENWEATHER_BASE_URL", "https://api.openweathermap.org")

# OpenWeatherMap API paths
OPENWEATHER_GEO_PATH = "/geo/1.0/direct"
OPENWEATHER_WEATHER_PATH = "/data/2.5/weather"

# Local configuration
CONFIG_PATH = os.getenv("WEATHER_CLI_CONFIG", "config.json")
LOG_LEVEL = os.getenv("WEATHER_CLI_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_LANGUAGE = "en"
DEFAULT_UNITS = "metric"
UNIT_SYMBOLS = {"metric": "℃", "imperial": "℉", "standard": "K"}

# CLI messages
CLI_USER_PROMPT = "\nCommand: "
CLI_UNEXPECTED_ERROR = "Unexpected error: {error}"
CLI_FATAL_ERROR = "Fatal error: {error}"
CLI_UNKNOWN_COMMAND = "Unknown command"
CLI_MISSING_CITY = "Missing city parameter"
CLI_NO_FAVOURITES = "No favourites added"
CLI_FAVOURITE_ADDED = "New location {city}, {country} added to favourites"
CLI_FAVOURITE_REMOVED = "City {city} successfully removed from favourites"
CLI_CONFIG_MISSING = "Config file missing"
CLI_CONFIG_CREATED = "New Config file created"
CLI_SEPARATOR = "--------------------------------------------------------"
CLI_FAVOURITES_HEADER = "\n------Favourites------"
CLI_FAVOURITES_FOOTER = "\n\n----------------------\n"

# Command table: (verb, arguments, description)
CLI_COMMANDS = [
    ("w", "<City> [<Country>]", "Get weather by city"),
    ("f", "", "Get weather for all of the cities in your favourites"),
    ("list", "", "List favourites"),
    ("fav", "<City> [<Country>]", "Add city to favourites"),
    ("remove", "<City>", "Remove city from favourites"),
    ("help", "", "List available commands"),
]
CLI_COMMANDS_HEADER = "\n-------Commands----------------------------------\n"
CLI_COMMANDS_FOOTER = "\n---------------------------------------------"


def validate_config() -> None:
    """Validate that required configuration is present."""
    if not OPENWEATHER_API_KEY:
        print("Error: OPENWEATHER_API_KEY not found in environment variables.")
        sys.exit(1)


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Send diagnostics to stderr so they stay out of the command output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
