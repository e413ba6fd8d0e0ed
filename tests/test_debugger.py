#!/usr/bin/env python3
"""
Debug controller tests: breakpoints, verbose and step modes.
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from bfx import build, new_session
from bfx.debugger import DebugMode, SessionOptions
from bfx.engine import (
    Failed,
    Halted,
    PausedAtBreakpoint,
    PausedForStep,
    Running,
    buffer_input,
    collect_output,
)
from bfx.errors import ErrorKind
from bfx.program import AdjustCell, Breakpoint


def make_session(source, options=None, **kwargs):
    out = []
    session = new_session(
        build(source),
        options,
        output=collect_output(out),
        input=buffer_input(b""),
        **kwargs
    )
    return session, out


def test_breakpoint_pauses_and_resumes():
    session, out = make_session("+#+#+.")
    status = session.resume()
    assert status == PausedAtBreakpoint(1)
    assert session.state.tape[0] == 1

    assert session.resume() == PausedAtBreakpoint(3)
    assert session.state.tape[0] == 2

    assert isinstance(session.resume(), Halted)
    assert out == [3]


def test_breakpoint_fires_once_per_loop_iteration():
    session, _ = make_session("+++[#-]")
    seen = []
    status = session.resume()
    while isinstance(status, PausedAtBreakpoint):
        seen.append(session.state.tape[0])
        status = session.resume()
    assert seen == [3, 2, 1]
    assert isinstance(status, Halted)


def test_breakpoint_as_last_instruction():
    session, _ = make_session("+#")
    assert session.resume() == PausedAtBreakpoint(1)
    assert isinstance(session.resume(), Halted)
    assert isinstance(session.resume(), Halted)


def test_breakpoints_disabled():
    session, out = make_session("+#+.", SessionOptions(breakpoints_enabled=False))
    assert isinstance(session.resume(), Halted)
    assert out == [2]


def test_resume_is_deterministic():
    outputs = []
    for _ in range(2):
        session, out = make_session("++#[>+++#<-]>.")
        while not isinstance(session.resume(), Halted):
            pass
        outputs.append((tuple(out), session.state.pointer, session.state.tape.snapshot()))
    assert outputs[0] == outputs[1]


def test_verbose_emits_one_observation_per_step():
    observed = []
    session, _ = make_session(
        "++>",
        SessionOptions(debug_mode=DebugMode.VERBOSE, window=2),
        observer=observed.append,
    )
    assert isinstance(session.resume(), Halted)
    assert [o.instruction_index for o in observed] == [0, 1, 2]
    assert observed[0].instruction == AdjustCell(1)
    assert observed[0].tape_window == (1, 0, 0)
    assert observed[1].tape_window == (2, 0, 0)
    assert observed[2].pointer == 1
    assert observed[2].window_start == 0
    assert observed[2].tape_window == (2, 0, 0, 0)


def test_observation_comes_before_breakpoint_pause():
    events = []
    session, _ = make_session(
        "+#+",
        SessionOptions(debug_mode=DebugMode.VERBOSE),
        observer=lambda o: events.append(o.instruction_index),
    )
    assert session.resume() == PausedAtBreakpoint(1)
    assert events == [0, 1]
    assert isinstance(session.observe().instruction, Breakpoint)


def test_step_mode_without_acknowledge_yields_each_step():
    observed = []
    session, _ = make_session(
        "+++",
        SessionOptions(debug_mode=DebugMode.STEP),
        observer=observed.append,
    )
    assert session.resume() == PausedForStep(0)
    assert session.resume() == PausedForStep(1)
    assert isinstance(session.resume(), Halted)
    assert len(observed) == 3


def test_step_mode_blocks_on_acknowledge():
    acks = []

    def acknowledge(obs):
        acks.append(obs.instruction_index)
        return True

    session, out = make_session(
        "++.",
        SessionOptions(debug_mode=DebugMode.STEP),
        observer=lambda o: None,
        acknowledge=acknowledge,
    )
    assert isinstance(session.resume(), Halted)
    assert acks == [0, 1]
    assert out == [2]


def test_step_mode_declined_acknowledge_pauses():
    session, _ = make_session(
        "+++",
        SessionOptions(debug_mode=DebugMode.STEP),
        acknowledge=lambda obs: False,
    )
    assert session.resume() == PausedForStep(0)
    assert session.state.tape[0] == 1


def test_breakpoint_wins_over_step_pause():
    acks = []
    session, _ = make_session(
        "#+",
        SessionOptions(debug_mode=DebugMode.STEP),
        acknowledge=lambda obs: acks.append(obs) or True,
    )
    assert session.resume() == PausedAtBreakpoint(0)
    assert acks == []


def test_step_once():
    session, _ = make_session("+#+")
    assert isinstance(session.step_once(), Running)
    assert session.step_once() == PausedAtBreakpoint(1)
    assert isinstance(session.step_once(), Halted)
    assert session.state.tape[0] == 2


def test_step_once_in_step_mode_never_blocks():
    session, _ = make_session(
        "++",
        SessionOptions(debug_mode=DebugMode.STEP),
        acknowledge=lambda obs: pytest.fail("acknowledge called"),
    )
    assert session.step_once() == PausedForStep(0)


def test_runtime_error_surfaces_as_status():
    session, _ = make_session("+<")
    status = session.resume()
    assert isinstance(status, Failed)
    assert status.kind is ErrorKind.POINTER_UNDERFLOW
    assert session.resume() == status
    assert session.step_once() == status


def test_max_steps_returns_running():
    session, _ = make_session("+[]")
    assert isinstance(session.resume(max_steps=10), Running)
    assert session.state.steps == 10


def test_interrupt_from_observer():
    session = None

    def observer(obs):
        if obs.steps == 5:
            session.interrupt()

    session, _ = make_session(
        "+[]",
        SessionOptions(debug_mode=DebugMode.VERBOSE),
        observer=observer,
    )
    assert isinstance(session.resume(), Running)
    assert session.state.steps == 5


def test_reentrant_stepping_refused():
    session = None
    errors = []

    def observer(obs):
        try:
            session.step_once()
        except RuntimeError as e:
            errors.append(e)

    session, _ = make_session(
        "++",
        SessionOptions(debug_mode=DebugMode.VERBOSE),
        observer=observer,
    )
    session.resume()
    assert len(errors) == 2


def test_interrupt_before_resume_is_kept():
    session, _ = make_session("+[]")
    session.interrupt()
    assert isinstance(session.resume(max_steps=1000), Running)
    assert session.state.steps == 0
    assert isinstance(session.resume(max_steps=10), Running)
    assert session.state.steps == 10


def test_interrupt_while_paused_applies_to_next_resume():
    session, _ = make_session("+#+[]")
    assert session.resume() == PausedAtBreakpoint(1)
    session.interrupt()
    assert isinstance(session.resume(), Running)
    assert session.state.steps == 2
