"""Favourite locations and the config file they are persisted in."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

from .config import CLI_CONFIG_CREATED, CLI_CONFIG_MISSING, CONFIG_PATH
from .errors import DuplicateFavourite, NotFound, PersistenceError
from .models import Location, UserConfig

logger = logging.getLogger(__name__)


def find_favourite(favourites: List[Location], city: str) -> Optional[int]:
    """Index of the favourite named ``city`` (case-insensitive), or None."""
    wanted = city.casefold()
    for index, location in enumerate(favourites):
        if location.city.casefold() == wanted:
            return index
    return None


def ensure_not_favourite(favourites: List[Location], city: str) -> None:
    if find_favourite(favourites, city) is not None:
        raise DuplicateFavourite(city)


def add_favourite(favourites: List[Location], location: Location) -> None:
    """Append ``location`` unless a favourite with the same city exists."""
    ensure_not_favourite(favourites, location.city)
    favourites.append(location)


def remove_favourite(favourites: List[Location], city: str) -> Location:
    index = find_favourite(favourites, city)
    if index is None:
        raise NotFound(city)
    return favourites.pop(index)


class ConfigStore:
    """
    Reads and writes the user's config file.

    The file holds language, units and the favourites list as JSON. A missing
    file is not an error: defaults are written in its place.
    """

    def __init__(self, path: Union[str, Path] = CONFIG_PATH):
        self.path = Path(path)

    def load(self) -> UserConfig:
        """
        Load the config file, creating it with defaults when absent.

        Returns:
            UserConfig read from disk

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            print(CLI_CONFIG_MISSING)
            config = UserConfig()
            self.save(config)
            print(CLI_CONFIG_CREATED)
            return config

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read config file {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Config file {self.path} is not a JSON object")

        config = UserConfig.from_dict(data)
        logger.debug("Loaded %d favourites from %s", len(config.favourites), self.path)
        return config

    def save(self, config: UserConfig) -> None:
        """
        Write the config atomically.

        Raises:
            PersistenceError: If the file cannot be written
        """
        payload = json.dumps(config.to_dict(), ensure_ascii=False, indent=2)
        dir_path = self.path.parent
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=dir_path, suffix=".tmp"
            ) as tf:
                tf.write(payload)
                temp_name = tf.name
            os.replace(temp_name, self.path)
        except OSError as e:
            logger.error("Saving %s failed: %s", self.path, e)
            raise PersistenceError(f"Failed to save config file: {e}") from e
        logger.debug("Saved %d favourites to %s", len(config.favourites), self.path)
