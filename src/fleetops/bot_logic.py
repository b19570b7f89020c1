from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from .battleship import AttackOutcome, AttackResult, Board, Coord

logger = logging.getLogger(__name__)


class BoardExhausted(RuntimeError):
    """Raised when every cell of the target board has already been fired at."""


@dataclass(frozen=True)
class Lead:
    """A queued candidate cell and the ship whose hit put it there."""

    coord: Coord
    ship_id: Optional[int] = None


class TargetingEngine:
    """
    Hunt/target opponent
    --------------------
    1. Queue-hunt: pop candidates queued around earlier hits, skipping any
       that were resolved in the meantime.
    2. Follow-up: fire at a random unresolved orthogonal neighbour of the
       last confirmed hit.
    3. Search: fire at a uniformly random unresolved cell.

    The board is handed in on every call and never cached, so the engine
    always decides on the state as it is *now*.
    """

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #
    def __init__(self, rng: Optional[random.Random] = None, *, clear_queue_on_sink: bool = False) -> None:
        self.rng = rng or random.Random()
        self.clear_queue_on_sink = clear_queue_on_sink

        # State
        self.target_queue: Deque[Lead] = deque()
        self.last_hit: Optional[Coord] = None
        self.last_mode: Optional[str] = None  # "queue" | "follow-up" | "search"
        self.shots: int = 0

    # ------------------------------------------------------------------ #
    # Helper utilities
    # ------------------------------------------------------------------ #
    @staticmethod
    def _open(board: Board, rc: Coord) -> bool:
        """Inside board and never fired at."""
        return board.in_bounds(*rc) and not board.is_resolved(*rc)

    def enqueue(self, rc: Coord, ship_id: Optional[int] = None) -> None:
        self.target_queue.append(Lead(rc, ship_id))

    @property
    def pending(self) -> List[Coord]:
        """Queued candidate coordinates, front first."""
        return [lead.coord for lead in self.target_queue]

    # ------------------------------------------------------------------ #
    # Shot selection
    # ------------------------------------------------------------------ #
    def choose_shot(self, board: Board) -> Coord:
        """Pick the next target on *board*; never returns a resolved cell."""
        while self.target_queue:
            lead = self.target_queue.popleft()
            if self._open(board, lead.coord):
                self.last_mode = "queue"
                return lead.coord
            logger.debug("discarding stale lead %s", lead.coord)

        if self.last_hit is not None:
            options = [rc for rc in board.neighbours(*self.last_hit) if not board.is_resolved(*rc)]
            if options:
                self.last_mode = "follow-up"
                return self.rng.choice(options)
            self.last_hit = None

        unresolved = board.unresolved_cells()
        if not unresolved:
            raise BoardExhausted("no unresolved cells left to fire at")
        self.last_mode = "search"
        return self.rng.choice(unresolved)

    # ------------------------------------------------------------------ #
    # Result handling
    # ------------------------------------------------------------------ #
    def register_result(self, rc: Coord, result: AttackResult) -> None:
        """
        Record the outcome of firing at *rc*.

        ``result.board`` is the board after the shot; neighbours are read
        from it so a cell resolved by this very shot is never queued.
        """
        if not result.outcome.accepted:
            return
        self.shots += 1
        if result.outcome is not AttackOutcome.HIT:
            return

        ship_id = result.ship.id if result.ship is not None else None
        self.last_hit = rc
        for nbr in result.board.neighbours(*rc):
            if not result.board.is_resolved(*nbr):
                self.enqueue(nbr, ship_id)

        if result.sunk:
            self.last_hit = None
            if self.clear_queue_on_sink:
                self.target_queue.clear()
            else:
                # Ships never touch, so every lead queued from the sunk ship
                # was one of its cells or open water.
                self.target_queue = deque(lead for lead in self.target_queue if lead.ship_id != ship_id)
            logger.debug("target sunk; %d lead(s) kept", len(self.target_queue))

    # ------------------------------------------------------------------ #
    # Reset
    # ------------------------------------------------------------------ #
    def reset(self) -> None:
        """Forget every lead and the last hit."""
        self.target_queue.clear()
        self.last_hit = None
        self.last_mode = None
        self.shots = 0
