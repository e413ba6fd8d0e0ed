from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .engine import (
    RUNNING,
    Engine,
    Failed,
    Halted,
    InputSource,
    OutputSink,
    PausedAtBreakpoint,
    PausedForStep,
    RunStatus,
)
from .program import Breakpoint, Instruction, Program
from .state import DEFAULT_TAPE_SIZE, ExecutionState

log = logging.getLogger(__name__)


class DebugMode(enum.Enum):
    NONE = 'none'
    VERBOSE = 'verbose'
    STEP = 'step'


@dataclass(frozen=True)
class SessionOptions:
    breakpoints_enabled: bool = True
    debug_mode: DebugMode = DebugMode.NONE
    window: int = 8  # cells shown on each side of the pointer


@dataclass(frozen=True)
class Observation:
    instruction_index: int
    pointer: int
    instruction: Instruction
    tape_window: Tuple[int, ...]
    window_start: int
    steps: int


Observer = Callable[[Observation], None]
Acknowledge = Callable[[Observation], bool]


class Session:
    """
    Debug controller around one Engine.

    Per step the order is: execute the instruction, emit an Observation
    (verbose and step modes), then decide whether to suspend. A breakpoint
    pause wins over a step pause on the same instruction.

    In step mode an acknowledge callable, when given, is called after each
    observation and blocks until the operator answers; a falsy answer stops
    the run with PausedForStep. Without one, resume() returns PausedForStep
    after every instruction and the caller decides when to continue.
    """

    def __init__(self, program: Program, options: Optional[SessionOptions] = None, *,
                 output: Optional[OutputSink] = None, input: Optional[InputSource] = None,
                 observer: Optional[Observer] = None, acknowledge: Optional[Acknowledge] = None,
                 tape_size: int = DEFAULT_TAPE_SIZE):
        self.options = options or SessionOptions()
        self.engine = Engine(program, output=output, input=input, tape_size=tape_size)
        self.observer = observer
        self.acknowledge = acknowledge
        self._active = False
        self._interrupted = False
        self._status: RunStatus = self.engine.status

    @property
    def program(self) -> Program:
        return self.engine.program

    @property
    def state(self) -> ExecutionState:
        return self.engine.state

    @property
    def status(self) -> RunStatus:
        return self._status

    def interrupt(self) -> None:
        """
        Ask resume() to return at the next step boundary.

        A request made while the session is idle applies to the next resume().
        """
        self._interrupted = True

    def observe(self) -> Optional[Observation]:
        """Observation for the most recently executed instruction."""
        index = self.engine.last_index
        if index is None:
            return None
        state = self.engine.state
        start, values = state.tape.window(state.pointer, self.options.window)
        return Observation(
            instruction_index=index,
            pointer=state.pointer,
            instruction=self.program[index],
            tape_window=values,
            window_start=start,
            steps=state.steps,
        )

    def _advance(self, *, blocking: bool) -> RunStatus:
        engine = self.engine
        if engine.finished:
            return engine.status
        status = engine.step()
        index = engine.last_index

        if isinstance(status, Failed):
            log.info("execution failed at instruction %s: %s", index, status.error)
            return status

        mode = self.options.debug_mode
        obs = None
        if mode is not DebugMode.NONE and self.observer is not None:
            obs = self.observe()
            self.observer(obs)

        if self.options.breakpoints_enabled and isinstance(engine.last_instruction, Breakpoint):
            log.debug("breakpoint hit at instruction %d", index)
            return PausedAtBreakpoint(index)

        if isinstance(status, Halted):
            log.debug("halted after %d steps", engine.state.steps)
            return status

        if mode is DebugMode.STEP:
            if not blocking or self.acknowledge is None:
                return PausedForStep(index)
            if not self.acknowledge(obs if obs is not None else self.observe()):
                return PausedForStep(index)

        return status

    def _enter(self) -> None:
        if self._active:
            raise RuntimeError("Session is already stepping")
        self._active = True

    def step_once(self) -> RunStatus:
        """Execute exactly one instruction."""
        self._enter()
        try:
            self._status = self._advance(blocking=False)
        finally:
            self._active = False
        return self._status

    def resume(self, max_steps: Optional[int] = None) -> RunStatus:
        """
        Run until the program halts, fails or pauses.

        Returns Running when max_steps instructions ran or interrupt() was
        called without reaching any of those.
        """
        self._enter()
        try:
            status = self.engine.status
            done = 0
            while not self.engine.finished:
                if self._interrupted:
                    self._interrupted = False
                    status = RUNNING
                    break
                if max_steps is not None and done >= max_steps:
                    status = RUNNING
                    break
                status = self._advance(blocking=True)
                done += 1
                if isinstance(status, (PausedAtBreakpoint, PausedForStep)):
                    break
            else:
                status = self.engine.status
            self._status = status
        finally:
            self._active = False
        return self._status
