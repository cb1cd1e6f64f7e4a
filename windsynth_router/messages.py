"""
MIDI wire codec.

Provides the raw 3-byte Frame, typed dataclasses for decoded input events,
and the encoders used to build output frames.
"""

from dataclasses import dataclass
from typing import Sequence

import mido

# Controller numbers
CC_BANK_SELECT = 0
CC_DATA_ENTRY = 6
CC_EXPRESSION = 7
CC_KEY_PRESSED = 14
CC_KEY_RELEASED = 15
CC_NRPN_LSB = 98
CC_NRPN_MSB = 99

# Status bases (channel is added to the low nibble)
NOTE_OFF = 0x80
NOTE_ON = 0x90
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0

# Second data byte of a Program Change frame; never transmitted.
PROGRAM_CHANGE_FILLER = 0x00


@dataclass(frozen=True)
class Frame:
    """Raw MIDI frame: status byte plus two data bytes."""
    status: int
    data1: int
    data2: int

    @classmethod
    def from_bytes(cls, data: Sequence[int]) -> "Frame":
        """Build a frame from raw bytes, padding missing data bytes with 0."""
        padded = list(data[:3]) + [0] * (3 - min(len(data), 3))
        return cls(status=padded[0], data1=padded[1], data2=padded[2])

    def wire_bytes(self) -> list[int]:
        """Bytes as transmitted. Program Change and Channel Pressure carry one data byte."""
        if 0xC0 <= self.status <= 0xDF:
            return [self.status, self.data1]
        return [self.status, self.data1, self.data2]

    def __str__(self) -> str:
        return f"{self.status:02X} {self.data1:02X} {self.data2:02X}"


@dataclass(frozen=True)
class NoteOn:
    """Note On input event."""
    note: int
    velocity: int
    frame: Frame

    def __str__(self) -> str:
        return f"NoteOn note={self.note} vel={self.velocity}"


@dataclass(frozen=True)
class NoteOff:
    """Note Off input event."""
    note: int
    velocity: int
    frame: Frame

    def __str__(self) -> str:
        return f"NoteOff note={self.note} vel={self.velocity}"


@dataclass(frozen=True)
class ControllerEvent:
    """Controller input event (key press/release or expression)."""
    control: int
    value: int
    frame: Frame

    def __str__(self) -> str:
        return f"CC cc={self.control} val={self.value}"


@dataclass(frozen=True)
class Unrecognized:
    """Frame with a status byte that is not in the decode table."""
    frame: Frame

    @property
    def status(self) -> int:
        return self.frame.status

    def __str__(self) -> str:
        return f"Unrecognized: {self.frame}"


DecodedEvent = NoteOn | NoteOff | ControllerEvent | Unrecognized


# Both firmware generations of the input device, mapped to one event type.
# The older firmware sends on channel 0, newer ones (>v3.0.3) on channel 7.
STATUS_TABLE: dict[int, type] = {
    144: NoteOn,
    151: NoteOn,
    128: NoteOff,
    135: NoteOff,
    176: ControllerEvent,
    183: ControllerEvent,
}


def decode(frame: Frame) -> DecodedEvent:
    """Decode a raw frame into a typed event. Never fails."""
    event_type = STATUS_TABLE.get(frame.status)
    if event_type is NoteOn:
        return NoteOn(note=frame.data1, velocity=frame.data2, frame=frame)
    elif event_type is NoteOff:
        return NoteOff(note=frame.data1, velocity=frame.data2, frame=frame)
    elif event_type is ControllerEvent:
        return ControllerEvent(control=frame.data1, value=frame.data2, frame=frame)
    return Unrecognized(frame=frame)


def encode_control_change(channel: int, control: int, value: int) -> Frame:
    """Encode a Control Change frame. Ranges are not checked."""
    return Frame(CONTROL_CHANGE + channel, control, value)


def encode_program_change(channel: int, program: int) -> Frame:
    """Encode a Program Change frame."""
    return Frame(PROGRAM_CHANGE + channel, program, PROGRAM_CHANGE_FILLER)


def encode_note_on(channel: int, note: int, velocity: int) -> Frame:
    return Frame(NOTE_ON + channel, note, velocity)


def encode_note_off(channel: int, note: int, velocity: int) -> Frame:
    return Frame(NOTE_OFF + channel, note, velocity)


def encode_nrpn(msb: int, lsb: int | None, value: int, channel: int = 0) -> list[Frame]:
    """
    Encode an NRPN write as an ordered list of Control Change frames.

    Args:
        msb: Parameter number MSB (CC 99).
        lsb: Parameter number LSB (CC 98), or None to leave it out.
        value: Data entry value (CC 6).
        channel: Output channel.

    Returns:
        Parameter select frames followed by the data entry frame.
    """
    frames = [encode_control_change(channel, CC_NRPN_MSB, msb)]
    if lsb is not None:
        frames.append(encode_control_change(channel, CC_NRPN_LSB, lsb))
    frames.append(encode_control_change(channel, CC_DATA_ENTRY, value))
    return frames


def frame_from_mido(msg: mido.Message) -> Frame:
    """Convert a mido message into a raw frame."""
    return Frame.from_bytes(msg.bytes())


def frame_to_mido(frame: Frame) -> mido.Message:
    """Convert a frame into a mido message. Raises ValueError for invalid bytes."""
    return mido.Message.from_bytes(frame.wire_bytes())
