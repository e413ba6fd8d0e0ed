from __future__ import annotations

import logging
from typing import Dict, List, Sequence, Tuple

from .errors import ErrorKind, make_build_error
from .lexer import MacroDefinition, Token, tokenize

log = logging.getLogger(__name__)


def _recursion_error(chain: Sequence[str], *, source: str, offset: int):
    shown = ' -> '.join(chain)
    return make_build_error(
        ErrorKind.RECURSIVE_MACRO_CALL,
        message=f"Recursive macro call: {shown}",
        source=source,
        offset=offset,
        chain=tuple(chain),
    )


def _undefined_error(name: str, *, source: str, offset: int):
    return make_build_error(
        ErrorKind.UNDEFINED_MACRO,
        message=f"Undefined macro '{name}'",
        source=source,
        offset=offset,
        name=name,
    )


def check_macros(macros: Dict[str, MacroDefinition], *, source: str = '') -> None:
    """
    Validate the whole macro table before any expansion.

    Every call inside a body must name a defined macro, and the call graph
    must be acyclic. Walks the graph depth-first with an explicit stack so
    a long chain of macros cannot exhaust the interpreter stack.
    """
    done = set()
    for root in sorted(macros):
        if root in done:
            continue
        path: List[str] = [root]
        on_path = {root}
        stack: List[Tuple[str, int]] = [(root, 0)]
        while stack:
            name, idx = stack[-1]
            body = macros[name].body
            if idx >= len(body):
                stack.pop()
                path.pop()
                on_path.discard(name)
                done.add(name)
                continue
            stack[-1] = (name, idx + 1)
            tok = body[idx]
            if not tok.is_call:
                continue
            callee = tok.name
            if callee not in macros:
                raise _undefined_error(callee, source=source, offset=tok.offset)
            if callee in on_path:
                chain = path[path.index(callee):] + [callee]
                raise _recursion_error(chain, source=source, offset=tok.offset)
            if callee in done:
                continue
            path.append(callee)
            on_path.add(callee)
            stack.append((callee, 0))


def expand(tokens: Sequence[Token], macros: Dict[str, MacroDefinition], *, source: str = '') -> List[Token]:
    """
    Replace every macro call with the body of the macro it names.

    Nested calls are expanded in place. The names currently being expanded
    are kept on an explicit stack; calling one of them again is a recursive
    call and is rejected with the offending chain.
    """
    out: List[Token] = []
    active: List[str] = []
    frames: List[List] = [[None, tokens, 0]]

    while frames:
        frame = frames[-1]
        name, body, idx = frame
        if idx >= len(body):
            frames.pop()
            if name is not None:
                active.pop()
            continue
        frame[2] = idx + 1

        tok = body[idx]
        if not tok.is_call:
            out.append(tok)
            continue

        callee = tok.name
        macro = macros.get(callee)
        if macro is None:
            raise _undefined_error(callee, source=source, offset=tok.offset)
        if callee in active:
            chain = active[active.index(callee):] + [callee]
            raise _recursion_error(chain, source=source, offset=tok.offset)
        active.append(callee)
        frames.append([callee, macro.body, 0])

    return out


def preprocess(source: str) -> List[Token]:
    """Tokenize source and expand all macro calls."""
    tokens, macros = tokenize(source)
    check_macros(macros, source=source)
    expanded = expand(tokens, macros, source=source)
    log.debug("preprocessed %d tokens (%d macros) into %d tokens", len(tokens), len(macros), len(expanded))
    return expanded
