"""
Engine state.

The selected input, output and instrument live in one frozen snapshot that
is replaced as a whole on every selection.
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Callable

StateListener = Callable[["EngineState", "EngineState"], None]


@dataclass(frozen=True)
class EngineState:
    """Snapshot of the user's selections. Everything starts unset."""
    input_id: str | None = None
    output_id: str | None = None
    instrument: int | None = None

    @property
    def has_output(self) -> bool:
        return self.output_id is not None


@dataclass
class StateStore:
    """
    Holds the current EngineState.

    Selections replace the snapshot under a lock and notify listeners with
    the (old, new) pair. Readers take one snapshot per operation.
    """
    _state: EngineState = field(default_factory=EngineState)
    _listeners: list[StateListener] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def snapshot(self) -> EngineState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def select_input(self, input_id: str | None) -> EngineState:
        return self._update(input_id=input_id)

    def select_output(self, output_id: str | None) -> EngineState:
        return self._update(output_id=output_id)

    def select_instrument(self, instrument: int | None) -> EngineState:
        return self._update(instrument=instrument)

    def reset(self) -> EngineState:
        """Clear every selection."""
        return self._update(input_id=None, output_id=None, instrument=None)

    def _update(self, **changes) -> EngineState:
        with self._lock:
            old = self._state
            new = replace(old, **changes)
            self._state = new

        if new != old:
            for listener in list(self._listeners):
                listener(old, new)
        return new
