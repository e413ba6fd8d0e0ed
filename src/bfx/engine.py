from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from .errors import BFXRuntimeError, ErrorKind, make_pointer_underflow
from .program import (
    AdjustCell,
    Breakpoint,
    Input,
    Instruction,
    JumpIfNonZero,
    JumpIfZero,
    MovePointer,
    Output,
    Program,
)
from .state import DEFAULT_TAPE_SIZE, ExecutionState, Tape

OutputSink = Callable[[int], None]
InputSource = Callable[[], Optional[int]]


# ---------------- Run status ----------------
@dataclass(frozen=True)
class Running:
    pass

@dataclass(frozen=True)
class Halted:
    pass

@dataclass(frozen=True)
class PausedAtBreakpoint:
    ip: int  # index of the breakpoint instruction

@dataclass(frozen=True)
class PausedForStep:
    ip: int  # index of the instruction just executed

@dataclass(frozen=True)
class Failed:
    kind: ErrorKind
    error: BFXRuntimeError

RunStatus = Union[Running, Halted, PausedAtBreakpoint, PausedForStep, Failed]

RUNNING = Running()
HALTED = Halted()


# ---------------- I/O collaborators ----------------
def stdout_sink(value: int) -> None:
    sys.stdout.write(chr(value))
    sys.stdout.flush()


def stdin_source() -> Optional[int]:
    stream = getattr(sys.stdin, "buffer", None)
    if stream is None:
        char = sys.stdin.read(1)
        return ord(char) & 0xFF if char else None
    data = stream.read(1)
    if not data:
        return None
    return data[0]


def buffer_input(data: Union[bytes, str, Iterable[int]]) -> InputSource:
    """Input source that yields the given bytes, then reports exhaustion."""
    if isinstance(data, str):
        data = data.encode('latin-1')
    it = iter(data)

    def read() -> Optional[int]:
        return next(it, None)

    return read


def collect_output(buffer: List[int]) -> OutputSink:
    return buffer.append


class Engine:
    """
    Single-pass interpreter over a built Program.

    Owns the tape, the data pointer and the instruction pointer. Each call
    to step() executes exactly one instruction; errors are reported through
    the returned status, never raised.
    """

    def __init__(self, program: Program, *, output: Optional[OutputSink] = None,
                 input: Optional[InputSource] = None, tape_size: int = DEFAULT_TAPE_SIZE):
        self.program = program
        self.output = stdout_sink if output is None else output
        self.input = stdin_source if input is None else input
        self.state = ExecutionState(tape=Tape(tape_size))
        self.status: RunStatus = HALTED if len(program) == 0 else RUNNING
        self.last_index: Optional[int] = None

    @property
    def last_instruction(self) -> Optional[Instruction]:
        if self.last_index is None:
            return None
        return self.program[self.last_index]

    @property
    def finished(self) -> bool:
        return isinstance(self.status, (Halted, Failed))

    def step(self) -> RunStatus:
        if self.finished:
            return self.status

        state = self.state
        ip = state.ip
        ins = self.program[ip]
        next_ip = ip + 1

        if isinstance(ins, AdjustCell):
            state.tape.add(state.pointer, ins.delta)
        elif isinstance(ins, MovePointer):
            pointer = state.pointer + ins.delta
            if pointer < 0:
                error = make_pointer_underflow(ip=ip, pointer=state.pointer)
                self.last_index = ip
                self.status = Failed(error.kind, error)
                return self.status
            state.pointer = pointer
            state.tape.touch(pointer)
        elif isinstance(ins, JumpIfZero):
            if state.tape[state.pointer] == 0:
                next_ip = ins.target + 1
        elif isinstance(ins, JumpIfNonZero):
            if state.tape[state.pointer] != 0:
                next_ip = ins.target + 1
        elif isinstance(ins, Output):
            self.output(state.tape[state.pointer])
        elif isinstance(ins, Input):
            value = self.input()
            if value is not None:
                state.tape[state.pointer] = value
        elif isinstance(ins, Breakpoint):
            pass
        else:
            raise TypeError(f"Unknown instruction: {ins!r}")

        state.ip = next_ip
        state.steps += 1
        self.last_index = ip
        if next_ip >= len(self.program):
            self.status = HALTED
        return self.status

    def run(self, max_steps: Optional[int] = None) -> RunStatus:
        """Step until halted or failed, or until max_steps instructions have run."""
        done = 0
        while not self.finished:
            if max_steps is not None and done >= max_steps:
                break
            self.step()
            done += 1
        return self.status
