from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import ErrorKind, make_build_error

PRIMITIVES = '+-<>.,[]'
BREAKPOINT = '#'
CALL = '@'
SYMBOLS = PRIMITIVES + BREAKPOINT

_NAME_STOP = '{}@'


@dataclass(frozen=True)
class Token:
    symbol: str  # one of SYMBOLS, or CALL for a macro invocation
    offset: int
    name: Optional[str] = None

    @property
    def is_call(self) -> bool:
        return self.symbol == CALL

    def __str__(self) -> str:
        if self.is_call:
            return f"@{self.name}@"
        return self.symbol


@dataclass(frozen=True)
class MacroDefinition:
    name: str
    body: Tuple[Token, ...]
    offset: int = 0


def _is_name_char(ch: str) -> bool:
    return not ch.isspace() and ch not in _NAME_STOP


class _Scanner:
    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.tokens: List[Token] = []
        self.macros: Dict[str, MacroDefinition] = {}

    def error(self, kind: ErrorKind, message: str, offset: int, **extra):
        return make_build_error(kind, message=message, source=self.source, offset=offset, **extra)

    def _skip_space(self, i: int) -> int:
        src = self.source
        while i < len(src) and src[i].isspace():
            i += 1
        return i

    def _read_word(self, i: int) -> int:
        src = self.source
        while i < len(src) and _is_name_char(src[i]):
            i += 1
        return i

    def _read_call(self, out: List[Token]) -> None:
        start = self.pos
        end = self._read_word(start + 1)
        if end == start + 1 or end >= len(self.source) or self.source[end] != CALL:
            raise self.error(ErrorKind.MALFORMED_MACRO, 'Malformed macro call, expected @name@', start)
        out.append(Token(CALL, start, self.source[start + 1:end]))
        self.pos = end + 1

    def _read_body(self, name: str, name_offset: int) -> Tuple[Token, ...]:
        src = self.source
        body: List[Token] = []
        while True:
            self.pos = self._skip_space(self.pos)
            if self.pos >= len(src):
                raise self.error(
                    ErrorKind.UNTERMINATED_MACRO_BODY,
                    f"Macro '{name}' is missing its closing '}}'",
                    name_offset,
                    name=name,
                )
            ch = src[self.pos]
            if ch == '}':
                self.pos += 1
                return tuple(body)
            if ch == '{':
                raise self.error(
                    ErrorKind.MALFORMED_MACRO,
                    f"Nested macro definition inside '{name}'",
                    self.pos,
                )
            if ch == CALL:
                self._read_call(body)
                continue
            end = self._read_word(self.pos)
            self._emit_symbols(self.pos, end, body)
            self.pos = end

    def _define(self, name: str, name_offset: int) -> None:
        if name in self.macros:
            raise self.error(
                ErrorKind.DUPLICATE_MACRO_DEFINITION,
                f"Macro '{name}' is already defined",
                name_offset,
                name=name,
            )
        body = self._read_body(name, name_offset)
        self.macros[name] = MacroDefinition(name=name, body=body, offset=name_offset)

    def _emit_symbols(self, start: int, end: int, out: List[Token]) -> None:
        for i in range(start, end):
            ch = self.source[i]
            if ch in SYMBOLS:
                out.append(Token(ch, i))

    def scan(self) -> Tuple[List[Token], Dict[str, MacroDefinition]]:
        src = self.source
        while True:
            self.pos = self._skip_space(self.pos)
            if self.pos >= len(src):
                break
            ch = src[self.pos]
            if ch == CALL:
                self._read_call(self.tokens)
                continue
            if ch == '{':
                raise self.error(ErrorKind.MALFORMED_MACRO, "Macro definition without a name", self.pos)
            if ch == '}':
                raise self.error(ErrorKind.MALFORMED_MACRO, "Unexpected '}' outside a macro definition", self.pos)

            start = self.pos
            end = self._read_word(start)
            after = self._skip_space(end)
            if after < len(src) and src[after] == '{':
                self.pos = after + 1
                self._define(src[start:end], start)
                continue

            self._emit_symbols(start, end, self.tokens)
            self.pos = end

        return self.tokens, self.macros


def tokenize(source: str) -> Tuple[List[Token], Dict[str, MacroDefinition]]:
    """
    Split source text into tokens and collect macro definitions.

    Words are runs of characters other than whitespace, braces and '@'.
    A word followed by '{' names a macro whose body runs to the next '}'.
    '@name@' is a macro call. Any other word contributes one token per
    instruction or breakpoint character it contains; the rest is comment.

    Returns:
        (tokens, macros) where macros maps each name to its definition
    """
    return _Scanner(source).scan()


def format_tokens(tokens) -> str:
    return ''.join(str(t) for t in tokens)
