"""
Interactive commands while the router is running.

Lines are read from stdin on a daemon thread and executed on the event
loop, so instrument, reverb and NRPN changes go through the same engine
that routes the input device.
"""

import asyncio
import threading

from .config import Config
from .devices import DeviceSession
from .engine import Engine
from .errors import RouterError
from .instruments import parse_instrument

HELP = """Commands:
  instrument <name|number>   select an instrument
  reverb <0-127>             set the reverb amount
  nrpn <msb> [lsb] <value>   send a custom NRPN message
  preset <name>              send an NRPN preset from the config
  status                     show the current selection
  help                       show this help
  quit                       stop the router"""


class CommandError(RouterError):
    """A console command could not be parsed."""


def parse_byte(text: str, name: str) -> int:
    try:
        value = int(text, 10)
    except ValueError:
        raise CommandError(f"{name} must be a number, got {text!r}") from None
    if not 0 <= value <= 127:
        raise CommandError(f"{name} must be in range 0-127, got {value}")
    return value


def execute_command(engine: Engine, config: Config, line: str) -> bool:
    """
    Execute one console line.

    Errors are reported and the console keeps running.

    Returns:
        False when the user asked to quit.
    """
    words = line.split()
    if not words:
        return True

    command, args = words[0].lower(), words[1:]
    if command in ("quit", "exit"):
        return False

    try:
        if command == "instrument":
            if not args:
                raise CommandError("Usage: instrument <name|number>")
            engine.select_instrument(parse_instrument(" ".join(args), config.instruments))
        elif command == "reverb":
            if len(args) != 1:
                raise CommandError("Usage: reverb <0-127>")
            engine.sequencer.set_reverb(parse_byte(args[0], "reverb"))
        elif command == "nrpn":
            if len(args) == 2:
                msb, lsb, value = parse_byte(args[0], "msb"), None, parse_byte(args[1], "value")
            elif len(args) == 3:
                msb, lsb, value = (parse_byte(arg, name) for arg, name in zip(args, ("msb", "lsb", "value")))
            else:
                raise CommandError("Usage: nrpn <msb> [lsb] <value>")
            engine.sequencer.send_nrpn(msb, lsb, value)
        elif command == "preset":
            preset = config.nrpn_presets.get(" ".join(args))
            if preset is None:
                raise CommandError(f"Unknown NRPN preset: {' '.join(args)}")
            engine.sequencer.send_nrpn(preset.msb, preset.lsb, preset.value)
        elif command == "status":
            state = engine.store.snapshot()
            print(f"  input={state.input_id} output={state.output_id} instrument={state.instrument}")
        elif command == "help":
            print(HELP)
        else:
            raise CommandError(f"Unknown command: {command} (type 'help')")
    except RouterError as e:
        print(f"  -> Error: {e}")

    return True


def start_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> threading.Thread:
    """Read stdin lines into queue. None marks end of input."""
    def read() -> None:
        while True:
            try:
                line = input()
            except (EOFError, OSError):
                line = None
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                # Loop already closed
                return
            if line is None:
                return

    # Daemon so a pending input() does not keep the process alive
    thread = threading.Thread(target=read, name="console", daemon=True)
    thread.start()
    return thread


async def run_console(engine: Engine, config: Config) -> bool:
    """
    Execute commands until quit or end of input.

    Returns:
        True if the user asked to quit, False at end of input.
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    start_reader(asyncio.get_running_loop(), queue)

    while True:
        line = await queue.get()
        if line is None:
            return False
        if not execute_command(engine, config, line):
            return True


async def run_router(session: DeviceSession, engine: Engine, config: Config) -> None:
    """Route input frames and accept commands until quit or the session ends."""
    session_task = asyncio.create_task(session.run(), name="midi-session")
    console_task = asyncio.create_task(run_console(engine, config), name="console")
    tasks = [session_task, console_task]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        if console_task in done and not console_task.result():
            # Closed stdin keeps routing until Ctrl+C
            await session_task
    finally:
        session.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
