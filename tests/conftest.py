"""
Shared fixtures: an in-memory session standing in for the MIDI ports.
"""

import pytest

from windsynth_router.devices import DeviceHandle
from windsynth_router.engine import create_engine
from windsynth_router.messages import Frame


class FakeSession:
    """Records sent frames; fails the sends whose index is in fail_on."""

    def __init__(self, fail_on: set[int] | None = None):
        self.sent: list[tuple[str, Frame]] = []
        self.attempts = 0
        self.fail_on = fail_on or set()
        self.callbacks: dict[str, object] = {}
        self.removed: list[str] = []

    def send(self, device_id: str, frame: Frame) -> bool:
        index = self.attempts
        self.attempts += 1
        if index in self.fail_on:
            return False
        self.sent.append((device_id, frame))
        return True

    def on_message(self, device: DeviceHandle, callback) -> None:
        self.callbacks[device.id] = callback

    def remove_callback(self, device: DeviceHandle) -> None:
        self.removed.append(device.id)
        self.callbacks.pop(device.id, None)

    def feed(self, device: DeviceHandle, frame: Frame):
        return self.callbacks[device.id](device, frame)

    @property
    def frames(self) -> list[Frame]:
        return [frame for _, frame in self.sent]


SAX = DeviceHandle(id="-271543291", name="TravelSax2 Bluetooth")
SYNTH = DeviceHandle(id="-1318638608", name="SAM2695 Synth")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def engine(session):
    engine = create_engine(session)
    yield engine
    engine.close()


@pytest.fixture
def connected(engine):
    """Engine with input and output selected but no instrument."""
    engine.connect_input(SAX)
    engine.connect_output(SYNTH)
    return engine
