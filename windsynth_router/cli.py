"""
Command-line interface for the wind synth router.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from .config import Config, load_config
from .console import run_router
from .devices import DeviceHandle, DeviceSession, list_input_ports, list_output_ports
from .engine import Engine, create_engine
from .errors import InvalidNrpnError, NoDeviceSelectedError, NoDevicesFoundError, RouterError
from .instruments import INSTRUMENTS, is_layered, parse_instrument
from .setup_wizard import run_setup_wizard


def print_available_ports() -> None:
    print("Available input ports:")
    for port in list_input_ports():
        print(f"  - {port}")
    print("Available output ports:")
    for port in list_output_ports():
        print(f"  - {port}")


def find_output(session: DeviceSession, config: Config) -> DeviceHandle:
    """Find the configured output device."""
    if not config.output.enabled:
        raise NoDeviceSelectedError("Output device is disabled in config")
    device = session.find_output(config.output.match)
    if device is None:
        raise NoDeviceSelectedError(f"No MIDI output matching '{config.output.match}'")
    return device


def open_engine(config: Config) -> tuple[DeviceSession, Engine]:
    """Create a session and an engine connected to the configured output."""
    session = DeviceSession()
    engine = create_engine(session, verbose=config.verbose)
    try:
        engine.connect_output(find_output(session, config))
    except NoDeviceSelectedError:
        engine.close()
        session.close()
        raise
    return session, engine


def cmd_run(args: argparse.Namespace) -> int:
    """Run the router."""
    config = load_config(Path(args.config))
    session = DeviceSession()
    engine = create_engine(session, verbose=config.verbose)

    try:
        session.discover()
    except NoDevicesFoundError as e:
        print(f"\n{e}")
        print("Connect a MIDI device and run again to search again.")
        return 1

    input_device = session.find_input(config.input.match) if config.input.enabled else None
    output_device = session.find_output(config.output.match) if config.output.enabled else None

    if input_device is None:
        print(f"\nNo MIDI input matching '{config.input.match}'.")
        print_available_ports()
        print("\nRun 'python -m windsynth_router setup' to configure devices.")
        return 1

    if output_device is None:
        print(f"No MIDI output matching '{config.output.match}', events are only observed.")

    try:
        engine.connect_output(output_device)
        engine.connect_input(input_device)

        if config.instrument is not None and output_device is not None:
            engine.select_instrument(config.instrument)
        if config.reverb is not None and output_device is not None:
            engine.sequencer.set_reverb(config.reverb)

        print()
        print("-" * 60)
        print("Type 'help' for commands, Ctrl+C or 'quit' to stop")
        print("-" * 60)
        print()

        asyncio.run(run_router(session, engine, config))
    except KeyboardInterrupt:
        print("\n" + "-" * 60)
        print("Stopped.")
    finally:
        engine.close()
        session.close()

    return 0


def cmd_setup(args: argparse.Namespace) -> int:
    """Run the interactive setup wizard."""
    return run_setup_wizard(Path(args.config))


def cmd_list_devices(args: argparse.Namespace) -> int:
    """List available MIDI devices."""
    inputs = list_input_ports()
    outputs = list_output_ports()

    if not inputs and not outputs:
        print("No MIDI devices found.")
        return 0

    for title, ports in (("input", inputs), ("output", outputs)):
        print(f"Available MIDI {title} ports:")
        print()
        for i, port in enumerate(ports, 1):
            print(f"  [{i}] {port}")
        print()

    return 0


def cmd_list_instruments(args: argparse.Namespace) -> int:
    """List the instrument catalog."""
    config = load_config(Path(args.config))

    print("Instruments:")
    print()
    for instrument in (*INSTRUMENTS, *config.instruments):
        kind = "layered" if is_layered(instrument.identifier) else "simple"
        print(f"  {instrument.name:12} {instrument.identifier:4}  {kind}")
    print()
    return 0


def cmd_select_instrument(args: argparse.Namespace) -> int:
    """Send the sequence for an instrument to the output."""
    config = load_config(Path(args.config))
    identifier = parse_instrument(args.instrument, config.instruments)

    session, engine = open_engine(config)
    try:
        report = engine.sequencer.select_instrument(identifier)
    finally:
        engine.close()
        session.close()
    return 0 if report.ok else 1


def cmd_set_reverb(args: argparse.Namespace) -> int:
    """Send the reverb depth to the output."""
    config = load_config(Path(args.config))

    session, engine = open_engine(config)
    try:
        report = engine.sequencer.set_reverb(args.value)
    finally:
        engine.close()
        session.close()
    return 0 if report.ok else 1


def cmd_send_nrpn(args: argparse.Namespace) -> int:
    """Send a custom NRPN message to the output."""
    config = load_config(Path(args.config))

    msb, lsb, value = args.msb, args.lsb, args.value
    if args.preset:
        preset = config.nrpn_presets.get(args.preset)
        if preset is None:
            raise InvalidNrpnError(f"Unknown NRPN preset: {args.preset}")
        msb, lsb, value = preset.msb, preset.lsb, preset.value

    session, engine = open_engine(config)
    try:
        report = engine.sequencer.send_nrpn(msb, lsb, value)
    finally:
        engine.close()
        session.close()
    return 0 if report.ok else 1


def data_byte(text: str) -> int:
    """argparse type for values 0-127."""
    value = int(text, 10)
    if not 0 <= value <= 127:
        raise argparse.ArgumentTypeError(f"{value} is not in range 0-127")
    return value


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="windsynth_router",
        description="Route a wind controller to a multi-timbral synthesizer",
    )
    parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to config file (default: config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command (default)
    run_parser = subparsers.add_parser("run", help="Route input events to the output")
    run_parser.set_defaults(func=cmd_run)

    # setup command
    setup_parser = subparsers.add_parser("setup", help="Interactive device and instrument setup")
    setup_parser.set_defaults(func=cmd_setup)

    list_dev_parser = subparsers.add_parser("list-devices", help="List MIDI devices")
    list_dev_parser.set_defaults(func=cmd_list_devices)

    list_inst_parser = subparsers.add_parser("list-instruments", help="List instruments")
    list_inst_parser.set_defaults(func=cmd_list_instruments)

    select_parser = subparsers.add_parser("select-instrument", help="Send an instrument selection")
    select_parser.add_argument("instrument", help="Catalog name or MIDI number")
    select_parser.set_defaults(func=cmd_select_instrument)

    reverb_parser = subparsers.add_parser("set-reverb", help="Send the reverb amount")
    reverb_parser.add_argument("value", type=data_byte, help="Reverb amount (0-127)")
    reverb_parser.set_defaults(func=cmd_set_reverb)

    nrpn_parser = subparsers.add_parser("send-nrpn", help="Send a custom NRPN message")
    nrpn_parser.add_argument("--msb", type=data_byte, help="Parameter MSB (0-127)")
    nrpn_parser.add_argument("--lsb", type=data_byte, help="Parameter LSB (0-127), omitted if not given")
    nrpn_parser.add_argument("--value", type=data_byte, help="Value (0-127)")
    nrpn_parser.add_argument("--preset", help="Name of an NRPN preset from the config")
    nrpn_parser.set_defaults(func=cmd_send_nrpn)

    args = parser.parse_args()

    # Default to 'run' if no command specified
    if args.command is None:
        args.func = cmd_run

    # Ensure unbuffered output
    sys.stdout.reconfigure(line_buffering=True)

    try:
        code = args.func(args)
    except RouterError as e:
        print(f"Error: {e}")
        code = 1

    sys.exit(code)
