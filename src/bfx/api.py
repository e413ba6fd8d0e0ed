from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .debugger import Acknowledge, Observer, Session, SessionOptions
from .engine import InputSource, OutputSink, RunStatus, buffer_input, collect_output
from .macros import preprocess
from .program import Program, build_program
from .state import ExecutionState


@dataclass(frozen=True)
class RunResult:
    output: bytes
    status: RunStatus
    state: ExecutionState

    @property
    def text(self) -> str:
        return self.output.decode('latin-1')


def build(source: str) -> Program:
    """Preprocess and build source; raises BFXBuildError on malformed input."""
    return build_program(preprocess(source), source=source)


def build_file(path: str | Path, *, encoding: str = "utf-8") -> Program:
    p = Path(path)
    return build(p.read_text(encoding=encoding))


def new_session(program: Program, options: Optional[SessionOptions] = None, *,
                output: Optional[OutputSink] = None, input: Optional[InputSource] = None,
                observer: Optional[Observer] = None, acknowledge: Optional[Acknowledge] = None) -> Session:
    return Session(program, options, output=output, input=input, observer=observer, acknowledge=acknowledge)


def run_string(source: str, input_data: Union[bytes, str, Iterable[int]] = b"", *,
               max_steps: Optional[int] = None) -> RunResult:
    """Build and run source to completion with in-memory I/O, ignoring breakpoints."""
    out: List[int] = []
    session = new_session(
        build(source),
        SessionOptions(breakpoints_enabled=False),
        output=collect_output(out),
        input=buffer_input(input_data),
    )
    status = session.resume(max_steps=max_steps)
    return RunResult(output=bytes(out), status=status, state=session.state)
