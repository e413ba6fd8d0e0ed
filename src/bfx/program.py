from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

from .errors import ErrorKind, make_build_error
from .lexer import Token

log = logging.getLogger(__name__)


# ---------------- Instructions ----------------
@dataclass(frozen=True)
class MovePointer:
    delta: int  # +1 for '>', -1 for '<'

@dataclass(frozen=True)
class AdjustCell:
    delta: int  # +1 for '+', -1 for '-'

@dataclass(frozen=True)
class Output:
    pass

@dataclass(frozen=True)
class Input:
    pass

@dataclass(frozen=True)
class JumpIfZero:
    target: int  # index of the matching JumpIfNonZero

@dataclass(frozen=True)
class JumpIfNonZero:
    target: int  # index of the matching JumpIfZero

@dataclass(frozen=True)
class Breakpoint:
    pass

Instruction = Union[MovePointer, AdjustCell, Output, Input, JumpIfZero, JumpIfNonZero, Breakpoint]

_SIMPLE = {
    '>': MovePointer(1),
    '<': MovePointer(-1),
    '+': AdjustCell(1),
    '-': AdjustCell(-1),
    '.': Output(),
    ',': Input(),
    '#': Breakpoint(),
}


def symbol_of(ins: Instruction) -> str:
    if isinstance(ins, MovePointer):
        return '>' if ins.delta > 0 else '<'
    if isinstance(ins, AdjustCell):
        return '+' if ins.delta > 0 else '-'
    if isinstance(ins, Output):
        return '.'
    if isinstance(ins, Input):
        return ','
    if isinstance(ins, JumpIfZero):
        return '['
    if isinstance(ins, JumpIfNonZero):
        return ']'
    if isinstance(ins, Breakpoint):
        return '#'
    raise TypeError(f"Unknown instruction: {ins!r}")


@dataclass(frozen=True)
class Program:
    instructions: Tuple[Instruction, ...]
    offsets: Tuple[int, ...] = ()
    source: str = field(default='', repr=False, compare=False)

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def __iter__(self):
        return iter(self.instructions)

    @property
    def jump_table(self) -> Dict[int, int]:
        return {
            i: ins.target
            for i, ins in enumerate(self.instructions)
            if isinstance(ins, (JumpIfZero, JumpIfNonZero))
        }

    @property
    def breakpoints(self) -> List[int]:
        return [i for i, ins in enumerate(self.instructions) if isinstance(ins, Breakpoint)]

    def to_source(self) -> str:
        """Flatten the program back to instruction symbols."""
        return ''.join(symbol_of(ins) for ins in self.instructions)


def build_program(tokens: Sequence[Token], source: str = '') -> Program:
    """
    Turn expanded tokens into a Program with a precomputed jump table.

    Brackets are paired with an explicit stack of open positions. A ']'
    with nothing open, or a '[' still open at the end, is rejected.
    """
    out: List[Instruction] = []
    offsets: List[int] = []
    stack: List[int] = []

    for tok in tokens:
        if tok.is_call:
            raise ValueError(f"Unexpanded macro call @{tok.name}@")
        idx = len(out)
        if tok.symbol == '[':
            stack.append(idx)
            out.append(JumpIfZero(-1))
        elif tok.symbol == ']':
            if not stack:
                raise make_build_error(
                    ErrorKind.UNMATCHED_BRACKET,
                    message=f"Unmatched ']' at instruction {idx}",
                    source=source,
                    offset=tok.offset,
                    position=idx,
                )
            start = stack.pop()
            out[start] = JumpIfZero(idx)
            out.append(JumpIfNonZero(start))
        else:
            out.append(_SIMPLE[tok.symbol])
        offsets.append(tok.offset)

    if stack:
        pos = stack[-1]
        raise make_build_error(
            ErrorKind.UNMATCHED_BRACKET,
            message=f"Unmatched '[' at instruction {pos}",
            source=source,
            offset=offsets[pos],
            position=pos,
        )

    log.debug("built program with %d instructions, %d breakpoints", len(out), sum(isinstance(i, Breakpoint) for i in out))
    return Program(instructions=tuple(out), offsets=tuple(offsets), source=source)
