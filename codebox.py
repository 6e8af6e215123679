from __future__ import annotations
from typing import List

import numpy as np
from numpy.typing import NDArray


class FishError(Exception):
    """Base class for interpreter errors."""


# Padded cells hold a value above any code point. They read back as a space
# and `g` sees them as 0.
PAD = 0xFFFFFFFF
SPACE = " "


def split_rows(text: str) -> List[str]:
    rows = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if len(rows) > 1 and rows[-1] == "":
        rows.pop()
    return rows


class Grid:
    """Immutable codebox with toroidal addressing.

    Each cell holds one code point, so an astral character occupies a single
    cell and a combining sequence occupies one cell per code point.
    """

    def __init__(self, text: str) -> None:
        rows = split_rows(text)
        self.height = max(len(rows), 1)
        self.width = max((len(row) for row in rows), default=0) or 1
        cells: NDArray[np.uint32] = np.full((self.height, self.width), PAD, dtype=np.uint32)
        for y, row in enumerate(rows):
            if row:
                cells[y, : len(row)] = [ord(ch) for ch in row]
        cells.flags.writeable = False
        self._cells = cells
        self._rows = tuple(rows)

    @property
    def cells(self) -> NDArray[np.uint32]:
        return self._cells

    def _raw(self, x: int, y: int) -> int:
        if 0 <= x < self.width and 0 <= y < self.height:
            return int(self._cells[y, x])
        return PAD

    def code_at(self, x: int, y: int) -> int:
        code = self._raw(x, y)
        return 0 if code == PAD else code

    def char_at(self, x: int, y: int) -> str:
        code = self._raw(x, y)
        if code == PAD:
            return SPACE
        return chr(code)

    def row(self, y: int) -> str:
        if 0 <= y < len(self._rows):
            return self._rows[y]
        return ""

    def __repr__(self) -> str:
        return f"Grid(width={self.width}, height={self.height})"
