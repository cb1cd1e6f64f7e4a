"""
Wiring of state, routing and sequencing around a device session.
"""

from dataclasses import dataclass, field
from typing import Callable

from .devices import DeviceHandle, DeviceSession
from .instruments import resolve
from .router import RoutingEngine
from .sequencer import ConfigurationSequencer, SendReport
from .state import StateStore


@dataclass
class Engine:
    """
    Front end for the UI layer.

    Selections go through here so that the routing engine and the
    sequencer always see the same state.
    """
    session: DeviceSession
    store: StateStore
    router: RoutingEngine
    sequencer: ConfigurationSequencer
    _unwatch: Callable[[], None] | None = field(default=None, repr=False)

    def connect_input(self, device: DeviceHandle) -> None:
        """Select an input device and route its frames."""
        previous = self.store.snapshot().input_id
        if previous is not None and previous != device.id:
            self.session.remove_callback(DeviceHandle(id=previous, name=previous))
        self.store.select_input(device.id)
        self.session.on_message(device, lambda dev, frame: self.router.handle(dev.name, frame))
        print(f"Selected input device: {device}")

    def connect_output(self, device: DeviceHandle | None) -> None:
        """Select an output device, or None to stop sending."""
        self.store.select_output(device.id if device else None)
        if device is not None:
            print(f"Selected output device: {device}")

    def select_instrument(self, identifier: int) -> SendReport | None:
        """
        Select an instrument.

        A change is sent by the instrument watcher. Selecting the current
        instrument again re-sends its sequence explicitly.

        Raises:
            InvalidInstrumentError: If the identifier is negative.
        """
        resolve(identifier)
        if self.store.snapshot().instrument == identifier:
            return self.sequencer.select_instrument(identifier)
        self.store.select_instrument(identifier)
        return None

    def close(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None


def create_engine(session: DeviceSession, verbose: bool = False) -> Engine:
    """
    Create an engine around a device session.

    Args:
        session: Device session providing send/on_message/remove_callback.
        verbose: Print every decoded event and sent frame.

    Returns:
        Engine with no device and no instrument selected.
    """
    store = StateStore()
    sequencer = ConfigurationSequencer(session=session, store=store, verbose=verbose)
    engine = Engine(
        session=session,
        store=store,
        router=RoutingEngine(session=session, store=store, verbose=verbose),
        sequencer=sequencer,
    )
    engine._unwatch = sequencer.watch_instrument()
    return engine
