"""
MIDI device session with mido.

Handles port discovery, input callbacks and frame transport to outputs.
"""

import asyncio
import threading
from dataclasses import dataclass
from typing import Callable

import mido

from .errors import NoDevicesFoundError
from .messages import Frame, frame_from_mido, frame_to_mido

FrameCallback = Callable[["DeviceHandle", Frame], None]


@dataclass(frozen=True)
class DeviceHandle:
    """A MIDI port. The id is opaque; with mido it is the port name."""
    id: str
    name: str

    def __str__(self) -> str:
        return self.name


def list_input_ports() -> list[str]:
    """List all available MIDI input ports."""
    return mido.get_input_names()


def list_output_ports() -> list[str]:
    """List all available MIDI output ports."""
    return mido.get_output_names()


def port_matches(pattern: str, port_name: str) -> bool:
    """Wildcard "*" matches any port, anything else is a substring match."""
    return pattern == "*" or pattern in port_name


def find_matching_port(pattern: str, devices: list[DeviceHandle]) -> DeviceHandle | None:
    """Return the first device whose name matches the pattern."""
    for device in devices:
        if port_matches(pattern, device.name):
            return device
    return None


class DeviceSession:
    """
    Owns the open MIDI ports.

    Input frames are delivered through one callback per input device; a new
    registration replaces the previous one. Output ports are opened on first
    send and kept open until close().
    """

    def __init__(self):
        self._inputs: dict[str, mido.ports.BaseInput] = {}
        self._callbacks: dict[str, FrameCallback] = {}
        self._outputs: dict[str, mido.ports.BaseOutput] = {}
        self._outputs_lock = threading.Lock()
        self._stop_event: asyncio.Event | None = None

    def list_inputs(self) -> list[DeviceHandle]:
        return [DeviceHandle(id=name, name=name) for name in list_input_ports()]

    def list_outputs(self) -> list[DeviceHandle]:
        return [DeviceHandle(id=name, name=name) for name in list_output_ports()]

    def discover(self) -> tuple[list[DeviceHandle], list[DeviceHandle]]:
        """
        List input and output devices.

        Raises:
            NoDevicesFoundError: If there are no ports at all.
        """
        inputs = self.list_inputs()
        outputs = self.list_outputs()
        if not inputs and not outputs:
            raise NoDevicesFoundError("No MIDI devices found.")
        return inputs, outputs

    def find_input(self, pattern: str) -> DeviceHandle | None:
        return find_matching_port(pattern, self.list_inputs())

    def find_output(self, pattern: str) -> DeviceHandle | None:
        return find_matching_port(pattern, self.list_outputs())

    def on_message(self, device: DeviceHandle, callback: FrameCallback) -> None:
        """
        Deliver every frame from a device to callback.

        Any earlier callback for the device is replaced.
        """
        self._callbacks[device.id] = callback

        def dispatch(raw_msg: mido.Message) -> None:
            current = self._callbacks.get(device.id)
            if current is None:
                return
            try:
                current(device, frame_from_mido(raw_msg))
            except Exception as e:
                print(f"  -> Error handling message from {device}: {e}")

        port = self._inputs.get(device.id)
        if port is None:
            self._inputs[device.id] = mido.open_input(device.id, callback=dispatch)
        else:
            port.callback = dispatch

    def remove_callback(self, device: DeviceHandle) -> None:
        """Stop delivering frames from a device and close its port."""
        self._callbacks.pop(device.id, None)
        port = self._inputs.pop(device.id, None)
        if port is not None:
            port.close()

    def open_output(self, device_id: str) -> mido.ports.BaseOutput:
        """Return the open port for an output device, opening it once."""
        # Input callbacks and the main thread both send
        with self._outputs_lock:
            port = self._outputs.get(device_id)
            if port is None:
                port = mido.open_output(device_id)
                self._outputs[device_id] = port
            return port

    def send(self, device_id: str, frame: Frame) -> bool:
        """
        Send one frame to an output device.

        Returns:
            True if the frame was handed to the port, False otherwise.
        """
        try:
            msg = frame_to_mido(frame)
            self.open_output(device_id).send(msg)
            return True
        except Exception as e:
            print(f"  -> Error sending {frame} to {device_id}: {e}")
            return False

    async def run(self) -> None:
        """Wait while callbacks deliver frames, until stop() is called."""
        if not self._inputs:
            print("No MIDI input connected.")
            return

        self._stop_event = asyncio.Event()
        for device_id in self._inputs:
            print(f"Listening on: {device_id}")

        try:
            await self._stop_event.wait()
        except asyncio.CancelledError:
            pass
        finally:
            self._stop_event = None

    def stop(self) -> None:
        """Make run() return."""
        if self._stop_event is not None:
            self._stop_event.set()

    def close(self) -> None:
        """Close all open ports."""
        self.stop()
        for port in self._inputs.values():
            port.close()
        with self._outputs_lock:
            for port in self._outputs.values():
                port.close()
            self._outputs.clear()
        self._inputs.clear()
        self._callbacks.clear()
