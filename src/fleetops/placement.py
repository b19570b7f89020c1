"""Ship placement rules: footprint validation, commit, auto-placement and
reconstruction of a ship's position from board cells.

Ships may never touch, not even diagonally. ``can_place`` is side-effect
free so the presentation layer can call it on every hover.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from .battleship import Board, Cell, CellState, Coord, Fleet, Ship
from .errors import PlacementError

logger = logging.getLogger(__name__)


class Orientation(str, enum.Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def toggled(self) -> "Orientation":
        return Orientation.VERTICAL if self is Orientation.HORIZONTAL else Orientation.HORIZONTAL


def _extent(width: int, length: int, orientation: Orientation) -> Tuple[int, int]:
    """(rows, cols) covered by a width×length ship in *orientation*."""
    if orientation is Orientation.HORIZONTAL:
        return width, length
    return length, width


def footprint(row: int, col: int, width: int, length: int, orientation: Orientation) -> List[Coord]:
    """Cells covered by a ship anchored at (*row*, *col*); bounds not checked."""
    height, span = _extent(width, length, Orientation(orientation))
    return [(r, c) for r in range(row, row + height) for c in range(col, col + span)]


def can_place(board: Board, row: int, col: int, width: int, length: int, orientation: Orientation) -> bool:
    """Return `True` if a width×length ship fits at (*row*,*col*) without touching another ship."""
    height, span = _extent(width, length, Orientation(orientation))
    if row < 0 or col < 0 or row + height > board.size or col + span > board.size:
        return False

    # The one-cell border also covers the footprint itself, so a single scan
    # rejects both overlap and adjacency.
    for r in range(max(row - 1, 0), min(row + height + 1, board.size)):
        for c in range(max(col - 1, 0), min(col + span + 1, board.size)):
            if board.cell(r, c).state is CellState.SHIP:
                return False
    return True


def place(board: Board, row: int, col: int, width: int, length: int, orientation: Orientation, ship_id: int) -> Board:
    """Write *ship_id* into the footprint of a copy of *board*.

    No validation happens here; call ``can_place`` first.
    """
    cell = Cell(CellState.SHIP, ship_id)
    return board.with_cells({rc: cell for rc in footprint(row, col, width, length, orientation)})


def preview(board: Board, row: int, col: int, width: int, length: int, orientation: Orientation) -> List[Coord]:
    """Footprint to highlight while hovering; empty when the spot is invalid."""
    if not can_place(board, row, col, width, length, orientation):
        return []
    return footprint(row, col, width, length, orientation)


@dataclass(frozen=True)
class Placement:
    ship_id: int
    name: str
    size: int
    width: int
    length: int
    start_row: int
    start_col: int
    orientation: Orientation


def derive_placement(board: Board, ship: Ship) -> Optional[Placement]:
    """Rebuild where *ship* sits from the cells that carry its id.

    Orientation comes from the bounding box: wider than tall means
    horizontal. A 2-wide ship lying horizontally spans two rows, so counting
    distinct rows would misclassify it.
    """
    coords = board.cells_of(ship.id)
    if not coords:
        return None
    rows = [r for r, _ in coords]
    cols = [c for _, c in coords]
    row_span = max(rows) - min(rows) + 1
    col_span = max(cols) - min(cols) + 1
    orientation = Orientation.HORIZONTAL if col_span > row_span else Orientation.VERTICAL
    return Placement(
        ship_id=ship.id,
        name=ship.name,
        size=ship.size,
        width=ship.width,
        length=ship.length,
        start_row=min(rows),
        start_col=min(cols),
        orientation=orientation,
    )


def derive_placements(board: Board, fleet: Fleet, *, sunk_only: bool = False) -> List[Placement]:
    """Placements of every placed ship in fleet order (only sunk ones if *sunk_only*)."""
    result = []
    for ship in fleet:
        if sunk_only and not ship.sunk:
            continue
        placement = derive_placement(board, ship)
        if placement is not None:
            result.append(placement)
    return result


def auto_place(
    ships: Union[Fleet, Iterable[Ship]],
    size: int,
    *,
    rng: Optional[random.Random] = None,
    max_attempts: int = 1000,
) -> Board:
    """Randomly position *ships* on an empty *size*×*size* board.

    Raises PlacementError when a ship cannot be placed within
    *max_attempts* random tries. A half-filled board is never returned.
    """
    rnd = rng or random.Random()
    board = Board.empty(size)
    for ship in ships:
        for _ in range(max_attempts):
            orientation = rnd.choice((Orientation.HORIZONTAL, Orientation.VERTICAL))
            row = rnd.randrange(size)
            col = rnd.randrange(size)
            if can_place(board, row, col, ship.width, ship.length, orientation):
                board = place(board, row, col, ship.width, ship.length, orientation, ship.id)
                break
        else:
            raise PlacementError(f"could not place {ship.name} after {max_attempts} attempts")
    return board


def auto_place_with_retry(
    ships: Union[Fleet, Iterable[Ship]],
    size: int,
    *,
    rng: Optional[random.Random] = None,
    max_attempts: int = 1000,
    retries: int = 25,
) -> Board:
    """Run ``auto_place`` from a fresh board until it succeeds or *retries* run out."""
    ships = list(ships)
    last_exc: Optional[PlacementError] = None
    for attempt in range(1, retries + 1):
        try:
            return auto_place(ships, size, rng=rng, max_attempts=max_attempts)
        except PlacementError as exc:
            logger.debug("auto-placement attempt %d/%d failed: %s", attempt, retries, exc)
            last_exc = exc
    raise PlacementError(f"fleet does not fit after {retries} full-board retries") from last_exc
