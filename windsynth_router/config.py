"""
Configuration loading and validation.

Handles YAML config parsing with environment variable expansion.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError, InvalidInstrumentError
from .instruments import Instrument, parse_instrument

DEFAULT_INPUT_MATCH = "TravelSax2"
DEFAULT_OUTPUT_MATCH = "*"


@dataclass
class DeviceConfig:
    """Which port to use for one direction."""
    match: str
    enabled: bool = True


@dataclass
class NrpnPreset:
    """A named NRPN message."""
    msb: int
    value: int
    lsb: int | None = None


@dataclass
class Config:
    """Root configuration object."""
    input: DeviceConfig = field(default_factory=lambda: DeviceConfig(match=DEFAULT_INPUT_MATCH))
    output: DeviceConfig = field(default_factory=lambda: DeviceConfig(match=DEFAULT_OUTPUT_MATCH))
    instrument: int | None = None
    reverb: int | None = None
    verbose: bool = False
    instruments: list[Instrument] = field(default_factory=list)
    nrpn_presets: dict[str, NrpnPreset] = field(default_factory=dict)


def expand_env_vars(value: str) -> str:
    """Expand environment variables in a string.

    Supports ${VAR} syntax.
    """
    pattern = re.compile(r'\$\{([^}]+)\}')

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return pattern.sub(replacer, value)


def expand_env_vars_recursive(obj: Any) -> Any:
    """Recursively expand environment variables in a data structure."""
    if isinstance(obj, str):
        return expand_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: expand_env_vars_recursive(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [expand_env_vars_recursive(item) for item in obj]
    return obj


def parse_data_byte(value: Any, name: str, optional: bool = False) -> int | None:
    """Parse a 0-127 value. Strings from env expansion are accepted."""
    if value is None or value == "":
        if optional:
            return None
        raise ConfigError(f"Missing value for {name}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {name}: {value!r}") from None
    if not 0 <= number <= 127:
        raise ConfigError(f"Value for {name} out of range 0-127: {number}")
    return number


def parse_bool(value: Any, name: str) -> bool:
    """Parse a boolean. Strings from env expansion are accepted."""
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return False
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "1"):
        return True
    if text in ("false", "no", "off", "0"):
        return False
    raise ConfigError(f"Invalid value for {name}: {value!r}")


def parse_device_config(data: Any, default_match: str, name: str) -> DeviceConfig:
    """Parse an input/output section. A bare string is a match pattern."""
    if data is None:
        return DeviceConfig(match=default_match)
    if isinstance(data, str):
        return DeviceConfig(match=data)
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {name} section: {data!r}")
    return DeviceConfig(
        match=str(data.get("match", default_match)),
        enabled=parse_bool(data.get("enabled", True), f"{name}.enabled"),
    )


def parse_instrument_value(value: Any, extra: list[Instrument]) -> int | None:
    """Parse an instrument given as catalog name or identifier."""
    if value is None or value == "":
        return None
    try:
        return parse_instrument(str(value), extra)
    except InvalidInstrumentError as e:
        raise ConfigError(str(e)) from None


def parse_instruments(data: list[dict[str, Any]]) -> list[Instrument]:
    """Parse user-defined catalog entries."""
    instruments = []
    for entry in data:
        try:
            identifier = int(entry["identifier"])
            name = str(entry["name"])
        except (KeyError, TypeError, ValueError):
            raise ConfigError(f"Invalid instrument entry: {entry!r}") from None
        if identifier < 0:
            raise ConfigError(f"Instrument identifier must be >= 0: {entry!r}")
        instruments.append(Instrument(name=name, identifier=identifier))
    return instruments


def parse_nrpn_preset(name: str, data: dict[str, Any]) -> NrpnPreset:
    """Parse a named NRPN preset. msb and value are mandatory."""
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid NRPN preset {name}: {data!r}")
    return NrpnPreset(
        msb=parse_data_byte(data.get("msb"), f"nrpn_presets.{name}.msb"),
        lsb=parse_data_byte(data.get("lsb"), f"nrpn_presets.{name}.lsb", optional=True),
        value=parse_data_byte(data.get("value"), f"nrpn_presets.{name}.value"),
    )


def parse_config(raw: dict[str, Any] | None) -> Config:
    """Build a Config from parsed YAML data."""
    raw = expand_env_vars_recursive(raw or {})
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")

    instruments = parse_instruments(raw.get("instruments") or [])

    presets = {
        name: parse_nrpn_preset(name, data)
        for name, data in (raw.get("nrpn_presets") or {}).items()
    }

    return Config(
        input=parse_device_config(raw.get("input"), DEFAULT_INPUT_MATCH, "input"),
        output=parse_device_config(raw.get("output"), DEFAULT_OUTPUT_MATCH, "output"),
        instrument=parse_instrument_value(raw.get("instrument"), instruments),
        reverb=parse_data_byte(raw.get("reverb"), "reverb", optional=True),
        verbose=parse_bool(raw.get("verbose", False), "verbose"),
        instruments=instruments,
        nrpn_presets=presets,
    )


def load_config(path: Path) -> Config:
    """Load configuration from a YAML file. A missing file gives the defaults."""
    if not path.exists():
        return Config()

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from None

    return parse_config(raw)


def config_to_dict(config: Config) -> dict[str, Any]:
    """Convert a Config back into YAML-ready data."""
    data: dict[str, Any] = {
        "input": {"match": config.input.match},
        "output": {"match": config.output.match},
    }
    if config.instrument is not None:
        data["instrument"] = config.instrument
    if config.reverb is not None:
        data["reverb"] = config.reverb
    data["verbose"] = config.verbose
    if config.instruments:
        data["instruments"] = [
            {"name": i.name, "identifier": i.identifier} for i in config.instruments
        ]
    if config.nrpn_presets:
        data["nrpn_presets"] = {}
        for name, preset in config.nrpn_presets.items():
            entry: dict[str, Any] = {"msb": preset.msb}
            if preset.lsb is not None:
                entry["lsb"] = preset.lsb
            entry["value"] = preset.value
            data["nrpn_presets"][name] = entry
    return data


def write_config(path: Path, config: Config) -> None:
    """Write a Config to a YAML file."""
    with open(path, "w") as f:
        yaml.dump(config_to_dict(config), f, default_flow_style=False, sort_keys=False, allow_unicode=True)
