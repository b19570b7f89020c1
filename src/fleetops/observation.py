"""Numeric views of a Board for the presentation layer.

Cell codes
==========
0 = unknown / open water
1 = ship (only when ``reveal`` is set)
2 = hit
3 = miss
"""

from __future__ import annotations

import numpy as np

from .battleship import Board, CellState

CELL_CODES = {
    CellState.EMPTY: 0,
    CellState.SHIP: 1,
    CellState.HIT: 2,
    CellState.MISS: 3,
}


def encode_board(board: Board, *, reveal: bool = False) -> np.ndarray:
    """Return an N×N int8 grid of cell codes; ships hidden unless *reveal*."""
    grid = np.zeros((board.size, board.size), dtype=np.int8)
    for r, c in board.coords():
        state = board.cell(r, c).state
        if state is CellState.SHIP and not reveal:
            continue
        grid[r, c] = CELL_CODES[state]
    return grid

