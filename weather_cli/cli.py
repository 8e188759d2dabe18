"""CLI utilities and main loop for the weather client."""

import asyncio
import logging
import threading
from typing import Callable, Optional

from .config import CLI_USER_PROMPT, CONFIG_PATH
from .dispatcher import CommandDispatcher, CommandEvent, print_commands
from .errors import InputStreamFailure
from .favourites import ConfigStore
from .models import Command
from .weather_service import WeatherService

logger = logging.getLogger(__name__)


class InputReader:
    """
    Reads terminal lines on a dedicated thread and queues them as commands.

    The asyncio loop is never blocked on input: each command is handed over
    with call_soon_threadsafe. When the input stream fails, an
    InputStreamFailure is queued behind the commands already read.
    """

    def __init__(
        self,
        commands: "asyncio.Queue[CommandEvent]",
        loop: asyncio.AbstractEventLoop,
        read_line: Optional[Callable[[str], str]] = None,
        prompt: str = CLI_USER_PROMPT,
    ):
        self.commands = commands
        self.loop = loop
        self.read_line = read_line or input
        self.prompt = prompt
        self.thread = threading.Thread(target=self._run, name="input-reader", daemon=True)

    def start(self) -> None:
        self.thread.start()

    def _run(self) -> None:
        # The dispatcher prints the prompt after each command it handles;
        # a blank line never reaches it, so the reader re-prompts itself.
        prompt = ""
        while True:
            try:
                line = self.read_line(prompt)
            except (EOFError, OSError) as e:
                logger.debug("Input stream closed: %r", e)
                self._push(InputStreamFailure(f"Input stream closed: {e!r}"))
                return

            command = Command.parse(line)
            if command is None:
                prompt = self.prompt
                continue
            prompt = ""
            if not self._push(command):
                return

    def _push(self, event: CommandEvent) -> bool:
        try:
            self.loop.call_soon_threadsafe(self.commands.put_nowait, event)
        except RuntimeError:
            # Event loop already closed; nobody is left to read commands.
            return False
        return True


async def run_cli() -> None:
    """
    Main CLI loop for the weather client.

    Loads the config, starts the input reader and runs the dispatcher until
    the input stream fails.

    Raises:
        InputStreamFailure: When terminal input ends
    """
    store = ConfigStore(CONFIG_PATH)
    config = store.load()
    weather_service = WeatherService()
    commands: "asyncio.Queue[CommandEvent]" = asyncio.Queue()
    dispatcher = CommandDispatcher(weather_service, store, config, commands)

    print_commands()
    InputReader(commands, asyncio.get_running_loop()).start()

    try:
        await dispatcher.run()
    finally:
        await weather_service.close()
