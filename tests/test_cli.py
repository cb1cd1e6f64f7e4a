"""
CLI and setup wizard tests.
"""

import argparse

import pytest

from windsynth_router import cli, setup_wizard
from windsynth_router.config import Config, load_config
from windsynth_router.devices import DeviceHandle
from windsynth_router.errors import InvalidNrpnError, NoDeviceSelectedError
from windsynth_router.messages import Frame
from windsynth_router.sequencer import instrument_sequence

from .conftest import FakeSession


class FakeDeviceSession(FakeSession):
    outputs = [DeviceHandle(id="SAM2695 Synth", name="SAM2695 Synth")]
    instances: list["FakeDeviceSession"] = []

    def __init__(self):
        super().__init__()
        self.closed = False
        FakeDeviceSession.instances.append(self)

    def find_output(self, pattern):
        for device in self.outputs:
            if pattern == "*" or pattern in device.name:
                return device
        return None

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session(monkeypatch):
    FakeDeviceSession.instances = []
    monkeypatch.setattr(cli, "DeviceSession", FakeDeviceSession)
    return FakeDeviceSession


def args(tmp_path, **kwargs):
    return argparse.Namespace(config=str(tmp_path / "config.yaml"), **kwargs)


def test_select_instrument_by_name(tmp_path, fake_session):
    assert cli.cmd_select_instrument(args(tmp_path, instrument="Alto")) == 0

    session = fake_session.instances[0]
    assert session.frames == instrument_sequence(129)
    assert session.closed


def test_set_reverb(tmp_path, fake_session):
    assert cli.cmd_set_reverb(args(tmp_path, value=70)) == 0
    assert fake_session.instances[0].frames[-1] == Frame(0xB0, 6, 70)


def test_send_nrpn_preset(tmp_path, fake_session):
    (tmp_path / "config.yaml").write_text("nrpn_presets:\n  vib: {msb: 1, value: 9}\n")

    code = cli.cmd_send_nrpn(args(tmp_path, msb=None, lsb=None, value=None, preset="vib"))

    assert code == 0
    assert fake_session.instances[0].frames == [Frame(0xB0, 99, 1), Frame(0xB0, 6, 9)]


def test_send_nrpn_unknown_preset(tmp_path, fake_session):
    with pytest.raises(InvalidNrpnError):
        cli.cmd_send_nrpn(args(tmp_path, msb=None, lsb=None, value=None, preset="nope"))


def test_send_nrpn_missing_value(tmp_path, fake_session):
    with pytest.raises(InvalidNrpnError):
        cli.cmd_send_nrpn(args(tmp_path, msb=1, lsb=None, value=None, preset=None))
    assert fake_session.instances[0].attempts == 0


def test_missing_output(tmp_path, fake_session):
    (tmp_path / "config.yaml").write_text("output: FluidSynth\n")
    with pytest.raises(NoDeviceSelectedError):
        cli.cmd_set_reverb(args(tmp_path, value=1))


def test_failed_send_exit_code(tmp_path, fake_session, monkeypatch):
    monkeypatch.setattr(FakeDeviceSession, "send", lambda self, device_id, frame: False)
    assert cli.cmd_select_instrument(args(tmp_path, instrument="0")) == 1


def test_list_instruments(tmp_path, capsys):
    (tmp_path / "config.yaml").write_text("instruments:\n  - {name: Flute, identifier: 73}\n")
    assert cli.cmd_list_instruments(args(tmp_path)) == 0
    out = capsys.readouterr().out
    assert "Tenor" in out
    assert "Flute" in out
    assert "layered" in out


@pytest.mark.parametrize("text, ok", [("0", True), ("127", True), ("128", False), ("-1", False)])
def test_data_byte(text, ok):
    if ok:
        assert cli.data_byte(text) == int(text)
    else:
        with pytest.raises(argparse.ArgumentTypeError):
            cli.data_byte(text)


def test_port_pattern():
    assert setup_wizard.get_port_pattern("TravelSax2:TravelSax2 MIDI 1 20:0") == "TravelSax2"
    assert setup_wizard.get_port_pattern("FluidSynth") == "FluidSynth"


def test_build_config_keeps_existing_settings():
    existing = Config(reverb=30)
    config = setup_wizard.build_config(existing, "TravelSax2:port", None, 130)

    assert config.input.match == "TravelSax2"
    assert config.input.enabled
    assert not config.output.enabled
    assert config.instrument == 130
    assert config.reverb == 30


def test_wizard_writes_config(tmp_path, monkeypatch):
    answers = iter(["1", "9", "1", "Soprano"])
    monkeypatch.setattr(setup_wizard, "list_input_ports", lambda: ["TravelSax2"])
    monkeypatch.setattr(setup_wizard, "list_output_ports", lambda: ["SAM2695 Synth"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    path = tmp_path / "config.yaml"

    assert setup_wizard.run_setup_wizard(path) == 0

    config = load_config(path)
    assert config.input.match == "TravelSax2"
    assert config.output.match == "SAM2695 Synth"
    assert config.instrument == 130


def test_wizard_custom_instrument_number(monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt="": "#200")
    assert setup_wizard.pick_instrument([]) == 200


def test_wizard_cancel(tmp_path, monkeypatch):
    def cancel(prompt=""):
        raise EOFError

    monkeypatch.setattr(setup_wizard, "list_input_ports", lambda: ["TravelSax2"])
    monkeypatch.setattr(setup_wizard, "list_output_ports", lambda: [])
    monkeypatch.setattr("builtins.input", cancel)
    path = tmp_path / "config.yaml"

    assert setup_wizard.run_setup_wizard(path) == 1
    assert not path.exists()
