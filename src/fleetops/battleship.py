"""
battleship.py

Contains core data structures and logic for the Fleet Command rules, including:
 - Cell / Board value types storing ship positions, hits and misses
 - Ship / Fleet types tracking per-ship damage
 - resolve_attack(), the only code path that turns a cell into a hit or a miss

Boards and fleets are never mutated in place. Every operation that changes
them returns a fresh copy, so a caller can always discard an attempt.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]

ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))


class CellState(str, enum.Enum):
    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"


# Single-char symbols used when dumping a board to the log
CELL_SYMBOLS = {
    CellState.EMPTY: ".",
    CellState.SHIP: "S",
    CellState.HIT: "X",
    CellState.MISS: "o",
}


@dataclass(frozen=True)
class Cell:
    state: CellState = CellState.EMPTY
    ship_id: Optional[int] = None

    @property
    def resolved(self) -> bool:
        """True once the cell has been fired at (terminal state)."""
        return self.state in (CellState.HIT, CellState.MISS)


EMPTY_CELL = Cell()


class Board:
    """
    Represents a single square board.
    We store:
      - self.size: edge length N
      - self._grid: N rows of N Cell values

    A Board owns no rules. Placement and attack logic live in
    ``placement`` and ``resolve_attack`` and produce new boards through
    ``with_cells()``.
    """

    __slots__ = ("size", "_grid")

    def __init__(self, size: int, grid: Optional[Sequence[Sequence[Cell]]] = None):
        """Create a *size*×*size* board, empty unless *grid* is given."""
        self.size = size
        if grid is None:
            self._grid: Tuple[Tuple[Cell, ...], ...] = tuple(
                tuple(EMPTY_CELL for _ in range(size)) for _ in range(size)
            )
        else:
            if len(grid) != size or any(len(row) != size for row in grid):
                raise ValueError(f"grid must be {size}x{size}")
            self._grid = tuple(tuple(row) for row in grid)

    @classmethod
    def empty(cls, size: int) -> "Board":
        return cls(size)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, row: int, col: int) -> Cell:
        if not self.in_bounds(row, col):
            raise IndexError(f"({row}, {col}) is outside a {self.size}x{self.size} board")
        return self._grid[row][col]

    def __getitem__(self, rc: Coord) -> Cell:
        return self.cell(*rc)

    def is_resolved(self, row: int, col: int) -> bool:
        return self._grid[row][col].resolved

    def coords(self) -> Iterator[Coord]:
        for r in range(self.size):
            for c in range(self.size):
                yield (r, c)

    def unresolved_cells(self) -> List[Coord]:
        """Every coordinate that may still be fired at."""
        return [(r, c) for r, c in self.coords() if not self._grid[r][c].resolved]

    def cells_of(self, ship_id: int) -> List[Coord]:
        """Coordinates carrying *ship_id*, in row-major order."""
        return [(r, c) for r, c in self.coords() if self._grid[r][c].ship_id == ship_id]

    def neighbours(self, row: int, col: int) -> List[Coord]:
        """In-bounds orthogonal neighbours of (*row*, *col*)."""
        return [(row + dr, col + dc) for dr, dc in ORTHOGONAL if self.in_bounds(row + dr, col + dc)]

    def count(self, state: CellState) -> int:
        return sum(1 for row in self._grid for cell in row if cell.state is state)

    # ------------------------------------------------------------------ #
    # Copy-on-write
    # ------------------------------------------------------------------ #
    def with_cells(self, changes: Mapping[Coord, Cell]) -> "Board":
        """Return a copy of this board with *changes* applied."""
        grid = [list(row) for row in self._grid]
        for (r, c), cell in changes.items():
            if not self.in_bounds(r, c):
                raise IndexError(f"({r}, {c}) is outside a {self.size}x{self.size} board")
            grid[r][c] = cell
        return Board(self.size, grid)

    def rows(self, *, reveal: bool = False) -> List[str]:
        """Board → [". . S X o …", …]; ships shown only when *reveal*."""
        out = []
        for row in self._grid:
            symbols = []
            for cell in row:
                if cell.state is CellState.SHIP and not reveal:
                    symbols.append(CELL_SYMBOLS[CellState.EMPTY])
                else:
                    symbols.append(CELL_SYMBOLS[cell.state])
            out.append(" ".join(symbols))
        return out

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self._grid == other._grid

    def __hash__(self) -> int:
        return hash((self.size, self._grid))

    def __repr__(self) -> str:
        return f"Board(size={self.size}, ships={self.count(CellState.SHIP)}, hits={self.count(CellState.HIT)}, misses={self.count(CellState.MISS)})"


@dataclass(frozen=True)
class Ship:
    id: int
    name: str
    width: int
    length: int
    hits: int = 0
    sunk: bool = False

    @property
    def size(self) -> int:
        """Total cell count of the footprint."""
        return self.width * self.length

    def damaged(self) -> "Ship":
        """Return a copy with one more hit recorded."""
        hits = min(self.hits + 1, self.size)
        return replace(self, hits=hits, sunk=hits == self.size)


@dataclass(frozen=True)
class Fleet:
    """Ordered collection of ships for one side."""

    ships: Tuple[Ship, ...]

    @classmethod
    def from_roster(cls, roster: Iterable[Tuple[str, int, int]]) -> "Fleet":
        """Build an undamaged fleet; ship ids are assigned 1..n in roster order."""
        return cls(tuple(Ship(i, name, width, length) for i, (name, width, length) in enumerate(roster, start=1)))

    def __iter__(self) -> Iterator[Ship]:
        return iter(self.ships)

    def __len__(self) -> int:
        return len(self.ships)

    def get(self, ship_id: Optional[int]) -> Optional[Ship]:
        for ship in self.ships:
            if ship.id == ship_id:
                return ship
        return None

    def with_ship(self, ship: Ship) -> "Fleet":
        return Fleet(tuple(ship if s.id == ship.id else s for s in self.ships))

    def all_sunk(self) -> bool:
        """Return True if every ship in this fleet has been sunk."""
        return all(ship.sunk for ship in self.ships)


class AttackOutcome(str, enum.Enum):
    HIT = "hit"
    MISS = "miss"
    ALREADY_RESOLVED = "already_resolved"
    INVALID = "invalid"  # coordinate outside the board

    @property
    def accepted(self) -> bool:
        return self in (AttackOutcome.HIT, AttackOutcome.MISS)


@dataclass(frozen=True)
class AttackResult:
    board: Board
    fleet: Fleet
    outcome: AttackOutcome
    ship: Optional[Ship] = None  # struck ship after the hit was recorded
    fleet_destroyed: bool = False

    @property
    def sunk(self) -> bool:
        """True when this very shot sank ``ship``."""
        return self.ship is not None and self.outcome is AttackOutcome.HIT and self.ship.sunk


def resolve_attack(board: Board, fleet: Fleet, row: int, col: int) -> AttackResult:
    """Apply a shot at (*row*, *col*) and return the new board/fleet plus outcome.

    A cell that is already ``hit`` or ``miss`` is never touched again: the
    call is rejected and the inputs come back unchanged. Deciding the winner
    is left to the caller; ``fleet_destroyed`` only reports the fact.
    """
    if not board.in_bounds(row, col):
        logger.debug("resolve_attack: (%d, %d) out of bounds", row, col)
        return AttackResult(board, fleet, AttackOutcome.INVALID)

    cell = board.cell(row, col)
    if cell.state is CellState.SHIP:
        new_board = board.with_cells({(row, col): Cell(CellState.HIT, cell.ship_id)})
        ship = fleet.get(cell.ship_id)
        if ship is None:
            # Cell carries an id unknown to this fleet; the hit still counts on the board.
            logger.warning("resolve_attack: ship id %r at (%d, %d) not in fleet", cell.ship_id, row, col)
            return AttackResult(new_board, fleet, AttackOutcome.HIT)
        ship = ship.damaged()
        new_fleet = fleet.with_ship(ship)
        if ship.sunk:
            logger.debug("resolve_attack: %s sunk", ship.name)
        return AttackResult(new_board, new_fleet, AttackOutcome.HIT, ship, new_fleet.all_sunk())
    elif cell.state is CellState.EMPTY:
        new_board = board.with_cells({(row, col): Cell(CellState.MISS)})
        return AttackResult(new_board, fleet, AttackOutcome.MISS)
    else:
        return AttackResult(board, fleet, AttackOutcome.ALREADY_RESOLVED)
