from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

DEFAULT_TAPE_SIZE = 30000


class Tape:
    """8-bit wrapping cells, addressable from 0 and growing to the right on demand."""

    def __init__(self, size: int = DEFAULT_TAPE_SIZE):
        self.cells = np.zeros(max(1, size), dtype=np.uint8)
        self.high = 0  # highest address touched so far

    def __len__(self) -> int:
        return len(self.cells)

    def _reserve(self, address: int) -> None:
        if address < len(self.cells):
            return
        new_size = len(self.cells)
        while new_size <= address:
            new_size *= 2
        grown = np.zeros(new_size, dtype=np.uint8)
        grown[:len(self.cells)] = self.cells
        self.cells = grown

    def __getitem__(self, address: int) -> int:
        if address >= len(self.cells):
            return 0
        return int(self.cells[address])

    def __setitem__(self, address: int, value: int) -> None:
        self._reserve(address)
        self.cells[address] = value & 0xFF
        if address > self.high:
            self.high = address

    def add(self, address: int, delta: int) -> int:
        value = (self[address] + delta) & 0xFF
        self[address] = value
        return value

    def touch(self, address: int) -> None:
        if address > self.high:
            self.high = address

    def window(self, center: int, radius: int) -> Tuple[int, Tuple[int, ...]]:
        """Cells around center as (start_address, values), clipped at address 0."""
        start = max(0, center - radius)
        end = center + radius + 1
        values = tuple(self[i] for i in range(start, end))
        return start, values

    def snapshot(self) -> Tuple[int, ...]:
        """Every cell from 0 up to the highest address touched."""
        return tuple(int(v) for v in self.cells[:self.high + 1])


@dataclass
class ExecutionState:
    tape: Tape = field(default_factory=Tape)
    pointer: int = 0
    ip: int = 0
    steps: int = 0

    @property
    def cell(self) -> int:
        return self.tape[self.pointer]
