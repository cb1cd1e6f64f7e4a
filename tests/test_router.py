"""
Routing engine tests.
"""

import pytest

from windsynth_router.messages import Frame, decode
from windsynth_router.router import RoutingEngine, route
from windsynth_router.state import EngineState, StateStore

from .conftest import FakeSession

LAYERED = EngineState(output_id="out", instrument=130)
SIMPLE = EngineState(output_id="out", instrument=0)


def test_layered_note_on_fans_out_in_channel_order():
    frames = route(decode(Frame(144, 60, 100)), LAYERED)
    assert frames == [Frame(0x90 + ch, 60, 100) for ch in range(5)]


def test_layered_fan_out_ignores_input_generation():
    assert route(decode(Frame(151, 60, 100)), LAYERED) == route(decode(Frame(144, 60, 100)), LAYERED)


def test_layered_note_off_fans_out():
    frames = route(decode(Frame(135, 61, 0)), LAYERED)
    assert frames == [Frame(0x80 + ch, 61, 0) for ch in range(5)]


def test_layered_expression_fans_out():
    frames = route(decode(Frame(183, 7, 88)), LAYERED)
    assert frames == [Frame(0xB0 + ch, 7, 88) for ch in range(5)]


@pytest.mark.parametrize("control", [14, 15, 1, 64])
def test_layered_other_controllers_are_not_forwarded(control):
    assert route(decode(Frame(176, control, 3)), LAYERED) == []


@pytest.mark.parametrize("status", [144, 151])
def test_simple_forwards_original_frame(status):
    frame = Frame(status, 60, 100)
    assert route(decode(frame), SIMPLE) == [frame]


def test_simple_forwards_key_press():
    frame = Frame(176, 14, 5)
    assert route(decode(frame), SIMPLE) == [frame]


def test_127_is_simple():
    frame = Frame(144, 60, 100)
    assert route(decode(frame), EngineState(output_id="out", instrument=127)) == [frame]


def test_128_is_layered():
    frames = route(decode(Frame(144, 60, 100)), EngineState(output_id="out", instrument=128))
    assert len(frames) == 5


@pytest.mark.parametrize("state", [LAYERED, SIMPLE])
def test_unrecognized_never_forwarded(state):
    assert route(decode(Frame(0xE0, 0, 64)), state) == []


@pytest.mark.parametrize("instrument", [0, 130])
def test_no_output_no_frames(instrument):
    state = EngineState(instrument=instrument)
    assert route(decode(Frame(144, 60, 100)), state) == []


def test_no_instrument_no_frames():
    state = EngineState(output_id="out")
    assert route(decode(Frame(144, 60, 100)), state) == []


def make_engine(state: EngineState, fail_on=None):
    session = FakeSession(fail_on=fail_on)
    store = StateStore()
    store.select_output(state.output_id)
    store.select_instrument(state.instrument)
    return session, RoutingEngine(session=session, store=store)


def test_engine_sends_to_selected_output():
    session, engine = make_engine(LAYERED)
    result = engine.handle("sax", Frame(144, 60, 100))

    assert [device for device, _ in session.sent] == ["out"] * 5
    assert session.frames == result.frames
    assert result.failures == 0


def test_engine_continues_after_send_failure(capsys):
    session, engine = make_engine(LAYERED, fail_on={1})
    result = engine.handle("sax", Frame(144, 60, 100))

    assert session.attempts == 5
    assert session.frames == [Frame(0x90 + ch, 60, 100) for ch in (0, 2, 3, 4)]
    assert result.failures == 1
    assert "1/5" in capsys.readouterr().out


def test_engine_reports_unrecognized_and_keeps_going(capsys):
    session, engine = make_engine(SIMPLE)
    engine.handle("sax", Frame(0xF8, 0, 0))
    engine.handle("sax", Frame(144, 60, 100))

    assert "Warning: Command code not found: 248" in capsys.readouterr().out
    assert session.frames == [Frame(144, 60, 100)]


def test_engine_verbose_reports_key_presses(capsys):
    session, engine = make_engine(LAYERED)
    engine.verbose = True
    engine.handle("sax", Frame(183, 14, 3))

    out = capsys.readouterr().out
    assert "Key pressed: 3" in out
    assert session.sent == []


def test_engine_quiet_by_default(capsys):
    _, engine = make_engine(EngineState(instrument=130))
    engine.handle("sax", Frame(144, 60, 100))
    assert capsys.readouterr().out == ""
