"""Command dispatcher: the single loop that owns all CLI state."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Set, Union

from .config import (
    CLI_COMMANDS,
    CLI_COMMANDS_FOOTER,
    CLI_COMMANDS_HEADER,
    CLI_FAVOURITE_ADDED,
    CLI_FAVOURITE_REMOVED,
    CLI_FAVOURITES_FOOTER,
    CLI_FAVOURITES_HEADER,
    CLI_MISSING_CITY,
    CLI_NO_FAVOURITES,
    CLI_SEPARATOR,
    CLI_UNEXPECTED_ERROR,
    CLI_UNKNOWN_COMMAND,
    CLI_USER_PROMPT,
)
from .errors import InputStreamFailure, LocationNotFound, WeatherCLIError
from .favourites import ConfigStore, add_favourite, ensure_not_favourite, remove_favourite
from .models import (
    Command,
    FetchError,
    FetchIntent,
    FetchOutcome,
    FetchRequest,
    UserConfig,
    WeatherResult,
)
from .weather_service import WeatherService

logger = logging.getLogger(__name__)

CommandEvent = Union[Command, InputStreamFailure]


@dataclass
class DispatcherState:
    """Everything the dispatcher mutates. Never touched by fetch tasks."""

    config: UserConfig
    in_flight: int = 0
    favourites_in_flight: int = 0
    tasks: Set[asyncio.Task] = field(default_factory=set)


def print_commands() -> None:
    """Print the command table."""
    print(CLI_COMMANDS_HEADER)
    for verb, args, description in CLI_COMMANDS:
        print(f"{verb:<7}{args:<20}|  {description}")
    print(CLI_COMMANDS_FOOTER)


async def run_fetch(
    weather_service: WeatherService,
    request: FetchRequest,
    language: str,
    units: str,
) -> FetchOutcome:
    """
    Resolve (when needed) and fetch weather for one request.

    Never raises: every failure becomes a FetchError outcome.
    """
    try:
        coordinates = request.coordinates
        if coordinates is None:
            location = await weather_service.get_coordinates(request.city, request.country)
            coordinates = location.coordinates
        result = await weather_service.get_current_weather(coordinates, language, units)
        return FetchOutcome(request=request, result=result)
    except LocationNotFound as e:
        return FetchOutcome(request=request, result=FetchError(str(e)))
    except WeatherCLIError as e:
        return FetchOutcome(
            request=request,
            result=FetchError(f"Error fetching weather data for {request.label}: {e}"),
        )
    except Exception as e:
        logger.exception("Fetch for %s failed unexpectedly", request.label)
        return FetchOutcome(
            request=request,
            result=FetchError(f"Error fetching weather data for {request.label}: {str(e)}"),
        )


class CommandDispatcher:
    """
    Serializes user commands and fetch outcomes into one stream of effects.

    Commands arrive on ``commands`` from the input reader; outcomes arrive on
    ``outcomes`` from fetch tasks. Each loop iteration handles exactly one
    event to completion before choosing the next, so handlers may mutate
    state without locks.
    """

    def __init__(
        self,
        weather_service: WeatherService,
        store: ConfigStore,
        config: UserConfig,
        commands: "asyncio.Queue[CommandEvent]",
        outcomes: Optional["asyncio.Queue[FetchOutcome]"] = None,
        prompt: str = CLI_USER_PROMPT,
    ):
        self.weather_service = weather_service
        self.store = store
        self.state = DispatcherState(config=config)
        self.commands = commands
        self.outcomes = outcomes if outcomes is not None else asyncio.Queue()
        self.prompt = prompt

        self._command_get: Optional[asyncio.Future] = None
        self._outcome_get: Optional[asyncio.Future] = None
        self._prefer_outcomes = False

    async def run(self) -> None:
        """
        Handle events until the input stream fails.

        Raises:
            InputStreamFailure: When the reader reports the end of input
        """
        try:
            self.show_prompt()
            while True:
                event = await self._next_event()
                if isinstance(event, FetchOutcome):
                    self.handle_outcome(event)
                elif isinstance(event, InputStreamFailure):
                    raise event
                else:
                    await self.handle_command(event)
                self.show_prompt()
        finally:
            for getter in (self._command_get, self._outcome_get):
                if getter is not None and not getter.done():
                    getter.cancel()

    def show_prompt(self) -> None:
        """Re-print the prompt so it always sits below the latest output."""
        print(self.prompt, end="", flush=True)

    async def _next_event(self) -> Union[CommandEvent, FetchOutcome]:
        """Wait on both queues and take one item, alternating on ties."""
        if self._command_get is None:
            self._command_get = asyncio.ensure_future(self.commands.get())
        if self._outcome_get is None:
            self._outcome_get = asyncio.ensure_future(self.outcomes.get())

        getters = [self._command_get, self._outcome_get]
        if self._prefer_outcomes:
            getters.reverse()
        await asyncio.wait(getters, return_when=asyncio.FIRST_COMPLETED)

        # A finished getter that loses the tie keeps its item for the next call.
        for getter in getters:
            if getter.done():
                if getter is self._command_get:
                    self._command_get = None
                    self._prefer_outcomes = True
                else:
                    self._outcome_get = None
                    self._prefer_outcomes = False
                return getter.result()
        raise RuntimeError("asyncio.wait returned without a finished getter")

    async def handle_command(self, command: Command) -> None:
        """Run one command, reporting any error it raises."""
        try:
            await self._dispatch(command)
        except WeatherCLIError as e:
            print(e)
        except Exception as e:
            logger.exception("Command %r failed", command.tokens)
            print(CLI_UNEXPECTED_ERROR.format(error=e))

    async def _dispatch(self, command: Command) -> None:
        verb = command.verb
        if verb == "w":
            self._lookup(command)
        elif verb == "f":
            self._fetch_favourites()
        elif verb == "list":
            self._list_favourites()
        elif verb == "fav":
            await self._add_favourite(command)
        elif verb == "remove":
            self._remove_favourite(command)
        elif verb == "help":
            print_commands()
        else:
            print(CLI_UNKNOWN_COMMAND)

    def handle_outcome(self, outcome: FetchOutcome) -> None:
        """Print a finished fetch and release its slot in the counters."""
        self.state.in_flight -= 1
        if outcome.request.intent is FetchIntent.FAVOURITES:
            self.state.favourites_in_flight -= 1
            if self.state.favourites_in_flight == 0:
                logger.debug("All favourites fetched")

        if isinstance(outcome.result, WeatherResult):
            print(outcome.result.format_for_cli())
            print(CLI_SEPARATOR)
        else:
            print(outcome.result)

    def spawn_fetch(self, request: FetchRequest) -> asyncio.Task:
        """Start a background fetch whose outcome lands on the outcome queue."""
        config = self.state.config
        task = asyncio.create_task(
            self._deliver(request, config.language, config.units),
            name=f"fetch:{request.label}",
        )
        self.state.in_flight += 1
        if request.intent is FetchIntent.FAVOURITES:
            self.state.favourites_in_flight += 1
        self.state.tasks.add(task)
        task.add_done_callback(self.state.tasks.discard)
        logger.debug("Spawned %s fetch for %s", request.intent.value, request.label)
        return task

    async def _deliver(self, request: FetchRequest, language: str, units: str) -> None:
        outcome = None
        try:
            outcome = await run_fetch(self.weather_service, request, language, units)
        finally:
            if outcome is None:
                outcome = FetchOutcome(
                    request=request,
                    result=FetchError(f"Fetch for {request.label} was cancelled"),
                )
            self.outcomes.put_nowait(outcome)

    def _lookup(self, command: Command) -> None:
        if not command.city:
            print(CLI_MISSING_CITY)
            return
        self.spawn_fetch(
            FetchRequest(
                intent=FetchIntent.LOOKUP, city=command.city, country=command.country
            )
        )

    def _fetch_favourites(self) -> None:
        favourites = self.state.config.favourites
        if not favourites:
            print(CLI_NO_FAVOURITES)
            return
        # Coordinates are captured now; later fav/remove do not affect these tasks.
        for location in list(favourites):
            self.spawn_fetch(
                FetchRequest(
                    intent=FetchIntent.FAVOURITES,
                    city=location.city,
                    country=location.country,
                    coordinates=location.coordinates,
                )
            )

    def _list_favourites(self) -> None:
        favourites = self.state.config.favourites
        if not favourites:
            print(CLI_NO_FAVOURITES)
        print(CLI_FAVOURITES_HEADER)
        for location in favourites:
            print(f"\n{location}", end="")
        print(CLI_FAVOURITES_FOOTER)

    async def _add_favourite(self, command: Command) -> None:
        if not command.city:
            print(CLI_MISSING_CITY)
            return
        favourites = self.state.config.favourites
        ensure_not_favourite(favourites, command.city)

        location = await self.weather_service.get_coordinates(command.city, command.country)
        add_favourite(favourites, location)
        self.store.save(self.state.config)
        print(CLI_FAVOURITE_ADDED.format(city=location.city, country=location.country))

    def _remove_favourite(self, command: Command) -> None:
        if not command.city:
            print(CLI_MISSING_CITY)
            return
        remove_favourite(self.state.config.favourites, command.city)
        self.store.save(self.state.config)
        print(CLI_FAVOURITE_REMOVED.format(city=command.city))
