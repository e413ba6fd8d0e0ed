from __future__ import annotations

from typing import List

from .debugger import Observation
from .engine import Failed, Halted, PausedAtBreakpoint, PausedForStep, Running, RunStatus
from .program import JumpIfNonZero, JumpIfZero, symbol_of


def describe_instruction(ins) -> str:
    sym = symbol_of(ins)
    if isinstance(ins, (JumpIfZero, JumpIfNonZero)):
        return f"{sym} (target: {ins.target})"
    return sym


def render_observation(obs: Observation) -> str:
    """Multi-line text view of one debug observation, tape centred on the pointer."""
    vals: List[str] = []
    ptrs: List[str] = []
    addrs: List[str] = []
    for offset, value in enumerate(obs.tape_window):
        addr = obs.window_start + offset
        vals.append(f"{value:3d}")
        ptrs.append(" ^ " if addr == obs.pointer else "   ")
        addrs.append(f"{addr:3d}")

    head = (f"Step {obs.steps}: '{describe_instruction(obs.instruction)}' "
            f"at {obs.instruction_index}, pointer={obs.pointer}")
    return "\n".join([
        head,
        "Memory:   [" + "|".join(vals) + "]",
        "Pointer:   " + " ".join(ptrs),
        "Address:   " + " ".join(addrs),
    ])


def render_status(status: RunStatus) -> str:
    if isinstance(status, Halted):
        return "halted"
    if isinstance(status, Running):
        return "running"
    if isinstance(status, PausedAtBreakpoint):
        return f"paused at breakpoint {status.ip}"
    if isinstance(status, PausedForStep):
        return f"paused after instruction {status.ip}"
    if isinstance(status, Failed):
        return f"failed: {status.error}"
    return repr(status)
