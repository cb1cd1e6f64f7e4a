"""
Routing engine for input events.

Simple instruments get the original frame forwarded untouched. Layered
instruments get notes and expression fanned out over the layer channels.
"""

import threading
from dataclasses import dataclass, field
from typing import Protocol

from .instruments import LAYER_COUNT, is_layered
from .messages import (
    CC_EXPRESSION,
    CC_KEY_PRESSED,
    CC_KEY_RELEASED,
    ControllerEvent,
    DecodedEvent,
    Frame,
    NoteOff,
    NoteOn,
    Unrecognized,
    decode,
    encode_control_change,
    encode_note_off,
    encode_note_on,
)
from .state import EngineState, StateStore


class FrameSender(Protocol):
    """The part of the device session the engine sends through."""

    def send(self, device_id: str, frame: Frame) -> bool:
        ...


def fan_out(event: DecodedEvent) -> list[Frame]:
    """Re-emit an event on every layer channel, lowest channel first."""
    if isinstance(event, NoteOn):
        return [encode_note_on(ch, event.note, event.velocity) for ch in range(LAYER_COUNT)]
    elif isinstance(event, NoteOff):
        return [encode_note_off(ch, event.note, event.velocity) for ch in range(LAYER_COUNT)]
    elif isinstance(event, ControllerEvent):
        # Key press/release are observation only
        if event.control != CC_EXPRESSION:
            return []
        return [encode_control_change(ch, event.control, event.value) for ch in range(LAYER_COUNT)]
    elif isinstance(event, Unrecognized):
        return []
    raise TypeError(f"Unhandled event type: {type(event).__name__}")


def route(event: DecodedEvent, state: EngineState) -> list[Frame]:
    """
    Compute the output frames for one input event.

    Args:
        event: The decoded input event.
        state: Snapshot of the selections, read once for this event.

    Returns:
        Frames to send, in order. Empty when nothing should be sent.
    """
    if not state.has_output or state.instrument is None:
        return []

    if isinstance(event, Unrecognized):
        return []

    if is_layered(state.instrument):
        return fan_out(event)

    return [event.frame]


@dataclass
class RouteResult:
    """What happened to one input frame."""
    event: DecodedEvent
    frames: list[Frame] = field(default_factory=list)
    failures: int = 0


@dataclass
class RoutingEngine:
    """
    Decodes input frames, routes them and sends the result.

    One frame is processed to completion before the next one starts.
    """
    session: FrameSender
    store: StateStore
    verbose: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def handle(self, device_name: str, frame: Frame) -> RouteResult:
        """
        Process one raw frame from the input device.

        Args:
            device_name: Name of the device that sent the frame.
            frame: The raw frame.
        """
        with self._lock:
            event = decode(frame)
            self._report(device_name, event)

            state = self.store.snapshot()
            result = RouteResult(event=event, frames=route(event, state))

            for out in result.frames:
                # Each channel is an independent voice, keep going on failure
                if not self.session.send(state.output_id, out):
                    result.failures += 1
                elif self.verbose:
                    print(f"  -> Sent {out}")

            if result.failures:
                print(f"  -> Error: {result.failures}/{len(result.frames)} frame(s) not delivered")
            return result

    def _report(self, device_name: str, event: DecodedEvent) -> None:
        if isinstance(event, Unrecognized):
            print(f"[{device_name}] {event}")
            print(f"  -> Warning: Command code not found: {event.status}")
            return

        if not self.verbose:
            return

        print(f"[{device_name}] {event}")
        if isinstance(event, ControllerEvent):
            if event.control == CC_KEY_PRESSED:
                print(f"  -> Key pressed: {event.value}")
            elif event.control == CC_KEY_RELEASED:
                print(f"  -> Key released: {event.value}")
