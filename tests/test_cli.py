import asyncio

import pytest

from conftest import DummyWeatherService
from weather_cli import cli
from weather_cli import main as main_module
from weather_cli.errors import InputStreamFailure
from weather_cli.favourites import ConfigStore
from weather_cli.models import Command


def scripted_input(lines):
    remaining = iter(lines)

    def read_line(prompt):
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return read_line


def test_parse_splits_on_whitespace():
    command = Command.parse("  W   Paris\tFR ")

    assert command.tokens == ("W", "Paris", "FR")
    assert command.verb == "w"
    assert command.city == "Paris"
    assert command.country == "FR"
    assert Command.parse("   ") is None
    assert Command.parse("list").city == ""


def test_input_reader_queues_commands_then_failure():
    async def scenario():
        commands = asyncio.Queue()
        reader = cli.InputReader(
            commands,
            asyncio.get_running_loop(),
            read_line=scripted_input(["w Paris FR", "", "   ", "list"]),
        )
        reader.start()
        return [await asyncio.wait_for(commands.get(), timeout=5) for _ in range(3)]

    first, second, third = asyncio.run(scenario())

    assert first.tokens == ("w", "Paris", "FR")
    assert second.tokens == ("list",)
    assert isinstance(third, InputStreamFailure)


def test_run_cli_end_to_end(monkeypatch, tmp_path, capsys):
    config_path = tmp_path / "config.json"
    monkeypatch.setattr(cli, "CONFIG_PATH", str(config_path))
    monkeypatch.setattr(cli, "WeatherService", DummyWeatherService)
    monkeypatch.setattr("builtins.input", scripted_input(["fav Paris FR", "list", "fav paris"]))

    with pytest.raises(InputStreamFailure):
        asyncio.run(cli.run_cli())

    out = capsys.readouterr().out
    assert "-------Commands" in out
    assert "New location Paris, FR added to favourites" in out
    assert "\nParis, FR" in out
    assert "paris already exists in favourites" in out
    assert [loc.city for loc in ConfigStore(config_path).load().favourites] == ["Paris"]


def test_main_exits_on_input_failure(monkeypatch, capsys):
    async def closed_input():
        raise InputStreamFailure("Input stream closed")

    monkeypatch.setattr(main_module, "validate_config", lambda: None)
    monkeypatch.setattr(main_module, "run_cli", closed_input)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main()

    assert excinfo.value.code == 1
    assert "Fatal error: Input stream closed" in capsys.readouterr().err


def test_input_reader_treats_os_error_as_closed_stream():
    def broken_terminal(prompt):
        raise OSError(5, "Input/output error")

    async def scenario():
        commands = asyncio.Queue()
        cli.InputReader(commands, asyncio.get_running_loop(), read_line=broken_terminal).start()
        return await asyncio.wait_for(commands.get(), timeout=5)

    event = asyncio.run(scenario())

    assert isinstance(event, InputStreamFailure)
    assert "Input/output error" in str(event)


def test_input_reader_prompts_only_after_blank_lines():
    prompts = []
    read_line = scripted_input(["list", "", "help"])

    def recording_read_line(prompt):
        prompts.append(prompt)
        return read_line(prompt)

    async def scenario():
        commands = asyncio.Queue()
        cli.InputReader(
            commands, asyncio.get_running_loop(), read_line=recording_read_line, prompt="> "
        ).start()
        return [await asyncio.wait_for(commands.get(), timeout=5) for _ in range(3)]

    events = asyncio.run(scenario())

    assert [event.verb for event in events[:2]] == ["list", "help"]
    assert prompts == ["", "", "> ", ""]
