"""
Instrument catalog.

Identifiers 0-127 are General MIDI programs played on a single channel.
Identifiers from 128 up are layered instruments spread over 5 channels.
"""

from dataclasses import dataclass
from typing import Iterable

from .errors import InvalidInstrumentError

LAYERED_THRESHOLD = 128
LAYER_COUNT = 5


@dataclass(frozen=True)
class Instrument:
    """A named catalog entry."""
    name: str
    identifier: int

    def __str__(self) -> str:
        return f"{self.name} (MIDI Number: {self.identifier})"


@dataclass(frozen=True)
class InstrumentClass:
    """How an identifier maps onto output channels."""
    is_layered: bool
    channel_count: int


INSTRUMENTS: tuple[Instrument, ...] = (
    Instrument("Tenor", 128),
    Instrument("Alto", 129),
    Instrument("Soprano", 130),
    Instrument("Piano", 0),
    Instrument("Bajo", 32),
    Instrument("Harmonica", 22),
    Instrument("violin", 40),
    Instrument("viola", 41),
    Instrument("cello", 42),
    Instrument("trumpet", 56),
    Instrument("trombon", 57),
    Instrument("tuba", 58),
    Instrument("bajo synth", 63),
    Instrument("clarinet", 71),
    Instrument("Ocarina", 79),
    Instrument("Pad Choir", 91),
)


def is_layered(identifier: int) -> bool:
    return identifier >= LAYERED_THRESHOLD


def resolve(identifier: int) -> InstrumentClass:
    """
    Classify an instrument identifier.

    No upper bound is applied, so custom identifiers are accepted.

    Raises:
        InvalidInstrumentError: If the identifier is negative.
    """
    if identifier < 0:
        raise InvalidInstrumentError(f"Instrument identifier must be >= 0, got {identifier}")
    if is_layered(identifier):
        return InstrumentClass(is_layered=True, channel_count=LAYER_COUNT)
    return InstrumentClass(is_layered=False, channel_count=1)


def layer_programs(identifier: int) -> list[tuple[int, int]]:
    """Return (channel, program) pairs for every channel an instrument uses."""
    if not resolve(identifier).is_layered:
        return [(0, identifier)]
    base = LAYER_COUNT * (identifier - LAYERED_THRESHOLD)
    return [(channel, base + channel) for channel in range(LAYER_COUNT)]


def find_instrument(name: str, extra: Iterable[Instrument] = ()) -> Instrument | None:
    """Look up an instrument by name (case-insensitive). Extra entries win."""
    wanted = name.strip().lower()
    for instrument in (*extra, *INSTRUMENTS):
        if instrument.name.lower() == wanted:
            return instrument
    return None


def parse_instrument(text: str, extra: Iterable[Instrument] = ()) -> int:
    """
    Parse a catalog name or a custom numeric identifier.

    Raises:
        InvalidInstrumentError: If the text is neither.
    """
    text = text.strip()
    try:
        identifier = int(text, 10)
    except ValueError:
        instrument = find_instrument(text, extra)
        if instrument is None:
            raise InvalidInstrumentError(f"Unknown instrument: {text}") from None
        return instrument.identifier
    resolve(identifier)
    return identifier
