from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class ErrorKind(enum.Enum):
    DUPLICATE_MACRO_DEFINITION = 'DuplicateMacroDefinition'
    UNTERMINATED_MACRO_BODY = 'UnterminatedMacroBody'
    UNDEFINED_MACRO = 'UndefinedMacro'
    RECURSIVE_MACRO_CALL = 'RecursiveMacroCall'
    UNMATCHED_BRACKET = 'UnmatchedBracket'
    MALFORMED_MACRO = 'MalformedMacro'
    POINTER_UNDERFLOW = 'PointerUnderflow'


def line_of(source: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return source.count('\n', 0, max(0, offset)) + 1


def _build_context(lines: List[str], line_no_1: int, *, context: int = 2) -> str:
    if not lines:
        return ''
    idx = min(max(1, line_no_1), len(lines))
    start = max(1, idx - context)
    end = min(len(lines), idx + context)

    out: List[str] = []
    for i in range(start, end + 1):
        prefix = '>' if i == idx else ' '
        out.append(f"{prefix} {i:4d} | {lines[i - 1]}")
    return "\n".join(out)


def _hint_for(kind: ErrorKind) -> Optional[str]:
    if kind is ErrorKind.RECURSIVE_MACRO_CALL:
        return 'Macros may call other macros but never themselves, directly or through a chain.'
    if kind is ErrorKind.UNTERMINATED_MACRO_BODY:
        return 'Check for a missing closing "}" in a macro definition.'
    if kind is ErrorKind.UNDEFINED_MACRO:
        return 'Define the macro with: name { body } and check spelling (names are case-sensitive).'
    if kind is ErrorKind.UNMATCHED_BRACKET:
        return 'Every "[" needs a matching "]", including brackets coming from macro bodies.'
    if kind is ErrorKind.MALFORMED_MACRO:
        return 'Definitions look like: name { body }. Calls look like: @name@.'
    return None


@dataclass
class BFXError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class BFXBuildError(BFXError):
    kind: ErrorKind
    line: int = 0
    context: str = ''


@dataclass
class DuplicateMacroDefinition(BFXBuildError):
    name: str = ''


@dataclass
class UnterminatedMacroBody(BFXBuildError):
    name: str = ''


@dataclass
class UndefinedMacro(BFXBuildError):
    name: str = ''


@dataclass
class RecursiveMacroCall(BFXBuildError):
    chain: Tuple[str, ...] = field(default_factory=tuple)


@dataclass
class UnmatchedBracket(BFXBuildError):
    position: int = 0


@dataclass
class MalformedMacro(BFXBuildError):
    pass


@dataclass
class BFXRuntimeError(BFXError):
    kind: ErrorKind
    ip: int = 0
    pointer: int = 0


@dataclass
class PointerUnderflow(BFXRuntimeError):
    pass


_BUILD_ERRORS = {
    ErrorKind.DUPLICATE_MACRO_DEFINITION: DuplicateMacroDefinition,
    ErrorKind.UNTERMINATED_MACRO_BODY: UnterminatedMacroBody,
    ErrorKind.UNDEFINED_MACRO: UndefinedMacro,
    ErrorKind.RECURSIVE_MACRO_CALL: RecursiveMacroCall,
    ErrorKind.UNMATCHED_BRACKET: UnmatchedBracket,
    ErrorKind.MALFORMED_MACRO: MalformedMacro,
}


def make_build_error(kind: ErrorKind, *, message: str, source: str, offset: int, **extra) -> BFXBuildError:
    line = line_of(source, offset)
    ctx = _build_context(source.split('\n'), line)
    hint = _hint_for(kind)
    hint_block = f"\nHint: {hint}" if hint else ""
    ctx_block = f"\n{ctx}" if ctx else ""
    cls = _BUILD_ERRORS[kind]
    return cls(
        message=f"{kind.value}: {message} (line {line}){ctx_block}{hint_block}",
        kind=kind,
        line=line,
        context=ctx,
        **extra,
    )


def make_pointer_underflow(*, ip: int, pointer: int) -> PointerUnderflow:
    return PointerUnderflow(
        message=f"{ErrorKind.POINTER_UNDERFLOW.value}: pointer moved left of cell 0 (instruction {ip})",
        kind=ErrorKind.POINTER_UNDERFLOW,
        ip=ip,
        pointer=pointer,
    )
