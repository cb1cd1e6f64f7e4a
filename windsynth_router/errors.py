"""
Error types raised by the router.

All of them describe expected, recoverable runtime states. The CLI reports
them and exits; the routing loop never raises them.
"""


class RouterError(Exception):
    """Base class for all router errors."""


class NoDeviceSelectedError(RouterError):
    """An operation needs an output device but none is selected."""

    def __init__(self, message: str = "Please select a MIDI output device"):
        super().__init__(message)


class NoInstrumentSelectedError(RouterError):
    """Select Instrument was triggered without an instrument."""

    def __init__(self, message: str = "Please select an instrument"):
        super().__init__(message)


class InvalidNrpnError(RouterError):
    """NRPN request is missing its MSB or its value."""


class InvalidInstrumentError(RouterError):
    """Instrument name or identifier cannot be resolved."""


class NoDevicesFoundError(RouterError):
    """Discovery found no MIDI ports."""


class ConfigError(RouterError):
    """Config file contents are invalid."""
