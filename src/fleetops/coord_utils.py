import re
from typing import Tuple

# Row letter followed by a 1-based column number, e.g. A1, O15
COORD_RE = re.compile(r"^([A-Z])([1-9][0-9]?)$")


def format_coord(row: int, col: int) -> str:
    """
    Convert zero-based (row, col) to coordinate string like 'A1'.
    """
    return f"{chr(ord('A') + row)}{col + 1}"


def parse_coord(coord: str, size: int) -> Tuple[int, int]:
    """
    Convert a coordinate like 'B7' to a zero-based (row, col) tuple on a
    *size*×*size* board. Raises ValueError when malformed or off the board.
    """
    m = COORD_RE.match(coord.strip().upper())
    if not m:
        raise ValueError(f"Invalid coordinate: {coord!r}")
    row = ord(m.group(1)) - ord("A")
    col = int(m.group(2)) - 1
    if not (0 <= row < size and 0 <= col < size):
        raise ValueError(f"Coordinate {coord!r} is outside a {size}x{size} board")
    return row, col
