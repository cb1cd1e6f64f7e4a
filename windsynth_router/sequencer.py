"""
Configuration sequencer.

Turns instrument selection, reverb and NRPN requests into ordered
Control Change / Program Change sequences and sends them to the output.
"""

from dataclasses import dataclass, field
from typing import Callable

from .errors import InvalidNrpnError, NoDeviceSelectedError, NoInstrumentSelectedError, RouterError
from .instruments import is_layered, layer_programs
from .messages import (
    CC_BANK_SELECT,
    Frame,
    encode_control_change,
    encode_nrpn,
    encode_program_change,
)
from .router import FrameSender
from .state import EngineState, StateStore

LAYERED_BANK = 10
SIMPLE_BANK = 0

# NRPN parameter addressing reverb depth on the target synthesizer
REVERB_NRPN_MSB = 0x37
REVERB_NRPN_LSB = 0x58


def instrument_sequence(identifier: int) -> list[Frame]:
    """Bank select followed by program change, for each channel of the instrument."""
    bank = LAYERED_BANK if is_layered(identifier) else SIMPLE_BANK
    frames: list[Frame] = []
    for channel, program in layer_programs(identifier):
        frames.append(encode_control_change(channel, CC_BANK_SELECT, bank))
        frames.append(encode_program_change(channel, program))
    return frames


def nrpn_sequence(msb: int | None, lsb: int | None, value: int | None) -> list[Frame]:
    """
    Build an NRPN sequence, validating mandatory parts first.

    Raises:
        InvalidNrpnError: If msb or value is missing.
    """
    if msb is None or value is None:
        raise InvalidNrpnError(f"Invalid MSB and Value for NRPN message (msb={msb}, lsb={lsb}, value={value})")
    return encode_nrpn(msb, lsb, value)


def reverb_sequence(value: int | None) -> list[Frame]:
    return nrpn_sequence(REVERB_NRPN_MSB, REVERB_NRPN_LSB, value)


@dataclass
class SendReport:
    """Outcome of sending one sequence."""
    frames: list[Frame] = field(default_factory=list)
    failures: int = 0

    @property
    def ok(self) -> bool:
        return self.failures == 0


@dataclass
class ConfigurationSequencer:
    """Sends configuration sequences to the selected output."""
    session: FrameSender
    store: StateStore
    verbose: bool = False

    def select_instrument(self, identifier: int | None = None) -> SendReport:
        """
        Send the bank/program sequence for an instrument.

        Args:
            identifier: Instrument to send. Defaults to the selected one.

        Raises:
            NoDeviceSelectedError: If no output is selected.
            NoInstrumentSelectedError: If no instrument is given or selected.
        """
        state = self._require_output()
        if identifier is None:
            identifier = state.instrument
        if identifier is None:
            raise NoInstrumentSelectedError()
        return self._send(state, instrument_sequence(identifier), f"Instrument {identifier}")

    def set_reverb(self, value: int | None) -> SendReport:
        """Send the reverb depth NRPN."""
        state = self._require_output()
        return self._send(state, reverb_sequence(value), f"Reverb {value}")

    def send_nrpn(self, msb: int | None, lsb: int | None, value: int | None) -> SendReport:
        """Send an arbitrary NRPN. lsb=None leaves out the LSB frame."""
        state = self._require_output()
        frames = nrpn_sequence(msb, lsb, value)
        return self._send(state, frames, f"NRPN msb={msb} lsb={lsb} value={value}")

    def watch_instrument(self) -> Callable[[], None]:
        """
        Re-send the instrument sequence whenever the selected instrument changes.

        Returns:
            Function that stops watching.
        """
        def on_change(old: EngineState, new: EngineState) -> None:
            if new.instrument is None or new.instrument == old.instrument:
                return
            print(f"Selected instrument: {new.instrument}")
            try:
                self.select_instrument(new.instrument)
            except RouterError as e:
                print(f"  -> Error: {e}")

        return self.store.subscribe(on_change)

    def _require_output(self) -> EngineState:
        state = self.store.snapshot()
        if not state.has_output:
            raise NoDeviceSelectedError()
        return state

    def _send(self, state: EngineState, frames: list[Frame], description: str) -> SendReport:
        report = SendReport(frames=frames)
        for frame in frames:
            if not self.session.send(state.output_id, frame):
                report.failures += 1
            elif self.verbose:
                print(f"  -> Sent {frame}")

        if report.ok:
            print(f"  -> {description}: sent {len(frames)} frame(s)")
        else:
            print(f"  -> Error: {description}: {report.failures}/{len(frames)} frame(s) not delivered")
        return report
