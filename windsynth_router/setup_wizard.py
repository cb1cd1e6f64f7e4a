"""
Interactive setup wizard.

Features:
- Input and output device pickers
- Instrument picker (catalog entry or custom MIDI number)
- Config generation
"""

from pathlib import Path

from .config import Config, DeviceConfig, load_config, write_config
from .devices import list_input_ports, list_output_ports
from .errors import InvalidInstrumentError
from .instruments import INSTRUMENTS, Instrument, parse_instrument


class SetupCancelled(Exception):
    """User left the wizard with Ctrl+C or EOF."""


def ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except (KeyboardInterrupt, EOFError):
        raise SetupCancelled() from None


def get_port_pattern(port_name: str) -> str:
    """Extract a reasonable pattern from a port name."""
    # Common patterns: "Device Name:Port 0" or "Device Name"
    if ":" in port_name:
        return port_name.split(":")[0].strip()
    return port_name


def pick_port(title: str, ports: list[str]) -> str | None:
    """
    Ask the user to choose a port by number.

    Returns:
        The chosen port name, or None for "no device".
    """
    print(f"Available MIDI {title} devices:")
    print()
    print("  [0] No device")
    for i, port in enumerate(ports, 1):
        print(f"  [{i}] {port}")
    print()

    while True:
        choice = ask(f"Select {title} device (number): ")
        try:
            idx = int(choice)
        except ValueError:
            print("Please enter a number.")
            continue
        if idx == 0:
            return None
        if 1 <= idx <= len(ports):
            return ports[idx - 1]
        print("Invalid selection. Try again.")


def pick_instrument(extra: list[Instrument]) -> int | None:
    """Ask for a catalog entry by number, a name, or a custom MIDI number with '#'."""
    catalog = [*INSTRUMENTS, *extra]
    print("Instruments:")
    print()
    print("  [0] No instrument")
    for i, instrument in enumerate(catalog, 1):
        print(f"  [{i}] {instrument}")
    print()
    print("Enter a list number, an instrument name, or #<MIDI number> for a custom instrument.")

    while True:
        choice = ask("Select instrument: ")
        if choice.startswith("#"):
            try:
                return parse_instrument(choice[1:], extra)
            except InvalidInstrumentError as e:
                print(e)
                continue
        try:
            idx = int(choice)
        except ValueError:
            try:
                return parse_instrument(choice, extra)
            except InvalidInstrumentError as e:
                print(e)
                continue
        if idx == 0:
            return None
        if 1 <= idx <= len(catalog):
            return catalog[idx - 1].identifier
        print("Invalid selection. Try again.")


def build_config(
    existing: Config,
    input_port: str | None,
    output_port: str | None,
    instrument: int | None,
) -> Config:
    """Merge the wizard's answers into an existing config."""
    return Config(
        input=DeviceConfig(
            match=get_port_pattern(input_port) if input_port else existing.input.match,
            enabled=input_port is not None,
        ),
        output=DeviceConfig(
            match=get_port_pattern(output_port) if output_port else existing.output.match,
            enabled=output_port is not None,
        ),
        instrument=instrument,
        reverb=existing.reverb,
        verbose=existing.verbose,
        instruments=existing.instruments,
        nrpn_presets=existing.nrpn_presets,
    )


def run_setup_wizard(config_path: Path) -> int:
    """
    Run the interactive setup wizard.

    Returns:
        Exit code (0 for success).
    """
    print("=" * 60)
    print("Wind Synth Router Setup Wizard")
    print("=" * 60)
    print()

    inputs = list_input_ports()
    outputs = list_output_ports()
    if not inputs and not outputs:
        print("No MIDI devices found!")
        print("Connect a MIDI device and try again.")
        return 1

    existing = load_config(config_path)

    try:
        input_port = pick_port("input", inputs)
        print(f"\nSelected input: {input_port or 'none'}\n")
        output_port = pick_port("output", outputs)
        print(f"\nSelected output: {output_port or 'none'}\n")
        instrument = pick_instrument(existing.instruments)
    except SetupCancelled:
        print("\nSetup cancelled.")
        return 1

    config = build_config(existing, input_port, output_port, instrument)
    write_config(config_path, config)
    print(f"\nConfig written to: {config_path}")

    print()
    print("Next steps:")
    print(f"  1. Edit {config_path} to add reverb, NRPN presets or custom instruments")
    print("  2. Run: python -m windsynth_router run")
    print()

    return 0
