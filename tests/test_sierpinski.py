#!/usr/bin/env python3
"""
End-to-end regression: Sierpinski triangle (iteration 5).
"""

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from bfx import build_file, run_string
from bfx.engine import Halted

FIXTURE = os.path.join(os.path.dirname(__file__), 'fixtures', 'sierpinski.b')
CAPTURE = os.path.join(os.path.dirname(__file__), 'fixtures', 'sierpinski.out')


def _run():
    with open(FIXTURE) as f:
        return run_string(f.read())


def expected_row(r):
    return ' '.join('*' if (k & r) == k else ' ' for k in range(r + 1))


def test_sierpinski_output():
    result = _run()
    assert isinstance(result.status, Halted)

    text = result.text
    assert text.endswith('\n')
    rows = text.split('\n')[:-1]
    assert len(rows) == 32
    assert set(text) <= {' ', '*', '\n'}

    for r, row in enumerate(rows):
        assert row.strip() == expected_row(r)

    indents = [len(row) - len(row.lstrip(' ')) for row in rows]
    assert all(a - b == 1 for a, b in zip(indents, indents[1:]))


def test_sierpinski_is_reproducible():
    first = _run()
    second = _run()
    assert first.output == second.output
    assert len(first.output) == len(second.output)
    assert first.state.steps == second.state.steps


def test_sierpinski_builds_from_file():
    program = build_file(FIXTURE)
    assert len(program) > 0
    assert program.breakpoints == []


def test_sierpinski_matches_capture():
    with open(CAPTURE, 'rb') as f:
        expected = f.read()
    result = _run()
    assert len(result.output) == 1552
    assert result.output == expected
