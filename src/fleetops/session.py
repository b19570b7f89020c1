"""Turn controller for a single human-vs-computer match.

The class in this module owns the *only* authoritative copy of the game
state. A presentation layer drives it with three commands and reads it back
with ``snapshot()``:

Commands
--------
attempt_placement(row, col[, orientation, ship_id])   Deploy the next (or a given) ship.
attempt_attack(row, col)                              Fire at the computer's board.
reset()                                               Start over with fresh boards and fleets.

Phases
------
placement   Human deploys every ship; the computer fleet is auto-placed on the last one.
battle      Shots alternate. A hit keeps the turn, a miss hands it over, for both sides.
game_over   Terminal. One fleet is sunk and ``winner`` names the other side.

Every accepted shot is resolved after a cosmetic delay through the injected
scheduler. The ``in_flight`` flag is raised the moment a shot is accepted and
lowered only once the shot and any chained follow-up (including the
computer's complete reply) have resolved; attack requests arriving in
between are ignored.
"""

from __future__ import annotations

import enum
import logging
import random
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .battleship import AttackOutcome, AttackResult, Board, Coord, Fleet, Ship, resolve_attack
from .bot_logic import TargetingEngine
from .config import GameConfig
from .coord_utils import format_coord
from .errors import FleetOpsError
from .events import Category, Event
from .placement import Orientation, Placement, auto_place_with_retry, can_place, derive_placements, place, preview
from .scheduler import ImmediateScheduler, Scheduler

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    PLACEMENT = "placement"
    BATTLE = "battle"
    GAME_OVER = "game_over"


class Side(str, enum.Enum):
    PLAYER = "player"
    AI = "ai"

    @property
    def opponent(self) -> "Side":
        return Side.AI if self is Side.PLAYER else Side.PLAYER


# Status line texts, keyed by (attacker, what happened)
MESSAGES = {
    (Side.PLAYER, "hit"): "DIRECT HIT! Enemy vessel damaged!",
    (Side.PLAYER, "sunk"): "ENEMY {name} DESTROYED! Outstanding work, Admiral!",
    (Side.PLAYER, "win"): "TOTAL VICTORY! Enemy fleet annihilated!",
    (Side.PLAYER, "miss"): "MISS! Shells hit open water.",
    (Side.AI, "hit"): "INCOMING FIRE! Our vessel is hit!",
    (Side.AI, "sunk"): "CRITICAL DAMAGE! Our {name} has been sunk!",
    (Side.AI, "win"): "DEFEAT! Our fleet has been destroyed!",
    (Side.AI, "miss"): "Enemy salvo missed! We remain unscathed.",
}
BATTLE_STATIONS = "BATTLE STATIONS! Select enemy coordinates to fire!"


@dataclass(frozen=True)
class GameView:
    """Read-only snapshot handed to the presentation layer."""

    phase: Phase
    turn: Side
    winner: Optional[Side]
    message: str
    in_flight: bool
    player_board: Board
    ai_board: Board
    player_fleet: Fleet
    ai_fleet: Fleet
    player_placements: List[Placement]
    revealed_ai_placements: List[Placement]  # computer ships, once sunk
    next_ship: Optional[Ship]
    orientation: Orientation
    shots: Dict[Side, int]


class GameSession:
    """State machine managing a single match."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        engine: Optional[TargetingEngine] = None,
    ):
        """Create a session in the placement phase.

        Args:
            config: Board size, roster and pacing. Defaults to ``GameConfig()``.
            scheduler: Runs the delayed resolution steps. Defaults to an
                ImmediateScheduler, which ignores the delays.
            rng: Source of randomness for auto-placement and the computer
                opponent. Seeded from ``config.seed`` when omitted.
            engine: Computer targeting strategy.
        """
        self.config = config if config is not None else GameConfig()
        self.scheduler: Scheduler = scheduler if scheduler is not None else ImmediateScheduler()
        self.rng = rng if rng is not None else random.Random(self.config.seed)
        self.engine = engine if engine is not None else TargetingEngine(
            self.rng, clear_queue_on_sink=self.config.ai_clear_queue_on_sink
        )
        # Serialises UI commands with scheduler callbacks (which may run on timer threads)
        self._lock = threading.RLock()
        # Bumped by reset(); callbacks from an older game are dropped
        self._epoch = 0
        # Event subscribers
        self._subs: List[Callable[[Event], None]] = []
        self._init_state()

    def _init_state(self) -> None:
        size = self.config.board_size
        self._boards: Dict[Side, Board] = {Side.PLAYER: Board.empty(size), Side.AI: Board.empty(size)}
        self._fleets: Dict[Side, Fleet] = {
            Side.PLAYER: Fleet.from_roster(self.config.ships),
            Side.AI: Fleet.from_roster(self.config.ships),
        }
        self._placed: set = set()
        self._phase = Phase.PLACEMENT
        self._turn = Side.PLAYER
        self._in_flight = False
        self._winner: Optional[Side] = None
        self._orientation = Orientation.HORIZONTAL
        self._shots: Dict[Side, int] = {Side.PLAYER: 0, Side.AI: 0}
        self._message = self._deploy_message(self.next_ship)

    # -------------------- queries --------------------
    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def turn(self) -> Side:
        return self._turn

    @property
    def winner(self) -> Optional[Side]:
        return self._winner

    @property
    def message(self) -> str:
        return self._message

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def orientation(self) -> Orientation:
        return self._orientation

    def board(self, side: Side) -> Board:
        return self._boards[Side(side)]

    def fleet(self, side: Side) -> Fleet:
        return self._fleets[Side(side)]

    @property
    def next_ship(self) -> Optional[Ship]:
        """First roster ship the human has not deployed yet."""
        for ship in self._fleets[Side.PLAYER]:
            if ship.id not in self._placed:
                return ship
        return None

    def snapshot(self) -> GameView:
        with self._lock:
            return GameView(
                phase=self._phase,
                turn=self._turn,
                winner=self._winner,
                message=self._message,
                in_flight=self._in_flight,
                player_board=self._boards[Side.PLAYER],
                ai_board=self._boards[Side.AI],
                player_fleet=self._fleets[Side.PLAYER],
                ai_fleet=self._fleets[Side.AI],
                player_placements=derive_placements(self._boards[Side.PLAYER], self._fleets[Side.PLAYER]),
                revealed_ai_placements=derive_placements(
                    self._boards[Side.AI], self._fleets[Side.AI], sunk_only=True
                ),
                next_ship=self.next_ship,
                orientation=self._orientation,
                shots=dict(self._shots),
            )

    # -------------------- event bus --------------------
    def subscribe(self, cb: Callable[[Event], None]) -> None:
        """Allow external components (UI shell/logger) to receive game events."""
        self._subs.append(cb)

    def _emit(self, ev: Event) -> bool:
        """Deliver *ev*; return False if a subscriber reset the game meanwhile."""
        epoch = self._epoch
        for cb in tuple(self._subs):
            try:
                cb(ev)
            except Exception:
                # A misbehaving subscriber must not corrupt the turn sequence
                logger.exception("Event subscriber failed for %s", ev)
        return epoch == self._epoch

    # -------------------- placement --------------------
    @staticmethod
    def _deploy_message(ship: Optional[Ship]) -> str:
        if ship is None:
            return BATTLE_STATIONS
        return f"DEPLOY {ship.name.upper()} - {ship.size} grid units"

    def rotate(self) -> Orientation:
        """Toggle the orientation used for the next placement."""
        with self._lock:
            if self._phase is Phase.PLACEMENT:
                self._orientation = self._orientation.toggled()
            return self._orientation

    def preview(self, row: int, col: int, orientation: Optional[Orientation] = None) -> List[Coord]:
        """Footprint of the next ship at (*row*, *col*), or [] if it cannot go there."""
        with self._lock:
            ship = self.next_ship
            if self._phase is not Phase.PLACEMENT or ship is None:
                return []
            orient = Orientation(orientation) if orientation is not None else self._orientation
            return preview(self._boards[Side.PLAYER], row, col, ship.width, ship.length, orient)

    def attempt_placement(
        self,
        row: int,
        col: int,
        orientation: Optional[Orientation] = None,
        ship_id: Optional[int] = None,
    ) -> bool:
        """Deploy a human ship with its top-left cell at (*row*, *col*).

        Places the next undeployed ship unless *ship_id* picks one. Returns
        False, changing nothing on the board, when the placement is invalid.
        Deploying the last ship auto-places the computer fleet and starts the
        battle; PlacementError propagates if that fails.
        """
        with self._lock:
            if self._phase is not Phase.PLACEMENT:
                logger.debug("placement ignored: phase is %s", self._phase.value)
                return False
            ship = self.next_ship if ship_id is None else self._fleets[Side.PLAYER].get(ship_id)
            if ship is None or ship.id in self._placed:
                logger.debug("placement ignored: ship %r unavailable", ship_id)
                return False
            orient = Orientation(orientation) if orientation is not None else self._orientation
            board = self._boards[Side.PLAYER]
            if not can_place(board, row, col, ship.width, ship.length, orient):
                self._message = f"Cannot deploy {ship.name.upper()} at {format_coord(row, col)}"
                self._emit(Event(Category.PLACEMENT, "rejected", {"ship": ship.name, "row": row, "col": col}))
                return False

            last = len(self._placed) + 1 == len(self._fleets[Side.PLAYER])
            ai_board = None
            if last:
                # Placed before committing the human ship, so a failure leaves the session untouched
                ai_board = auto_place_with_retry(
                    self._fleets[Side.AI],
                    self.config.board_size,
                    rng=self.rng,
                    max_attempts=self.config.placement_attempts,
                    retries=self.config.placement_retries,
                )

            self._boards[Side.PLAYER] = place(board, row, col, ship.width, ship.length, orient, ship.id)
            self._placed.add(ship.id)
            logger.debug("placed %s at %s (%s)", ship.name, format_coord(row, col), orient.value)
            placed = Event(
                Category.PLACEMENT,
                "placed",
                {"ship": ship.name, "row": row, "col": col, "orientation": orient.value},
            )
            if not self._emit(placed):
                return True

            if ai_board is not None:
                self._start_battle(ai_board)
            else:
                self._message = self._deploy_message(self.next_ship)
            return True

    def _start_battle(self, ai_board: Board) -> None:
        self._boards[Side.AI] = ai_board
        self._phase = Phase.BATTLE
        self._turn = Side.PLAYER
        self._message = BATTLE_STATIONS
        logger.info("All ships deployed – battle begins")
        self._emit(Event(Category.PHASE, "battle", {"turn": self._turn.value}))

    # -------------------- battle --------------------
    def attempt_attack(self, row: int, col: int) -> bool:
        """Fire at the computer's board. Returns False (and does nothing) when rejected.

        Rejections are silent: wrong phase, not the human's turn, a shot still
        in flight, a coordinate off the board, or a cell already fired at.
        """
        with self._lock:
            if self._phase is not Phase.BATTLE or self._turn is not Side.PLAYER or self._in_flight:
                logger.debug(
                    "attack ignored: phase=%s turn=%s in_flight=%s",
                    self._phase.value,
                    self._turn.value,
                    self._in_flight,
                )
                return False
            board = self._boards[Side.AI]
            if not board.in_bounds(row, col) or board.is_resolved(row, col):
                logger.debug("attack ignored: (%d, %d) not a legal target", row, col)
                return False
            self._fire(Side.PLAYER, (row, col))
            return True

    def _fire(self, attacker: Side, rc: Coord) -> None:
        """Commit a shot: lock the board now, resolve after the shot delay."""
        self._in_flight = True
        if not self._emit(Event(Category.TURN, "accepted", {"attacker": attacker.value, "coord": rc})):
            return
        self._later(self.config.shot_delay, lambda: self._resolve_shot(attacker, rc))

    def _later(self, delay: float, fn: Callable[[], None]) -> None:
        epoch = self._epoch

        def run() -> None:
            with self._lock:
                if epoch != self._epoch:
                    logger.debug("dropping callback from a previous game")
                    return
                fn()

        self.scheduler.call_later(delay, run)

    def _resolve_shot(self, attacker: Side, rc: Coord) -> None:
        defender = attacker.opponent
        row, col = rc
        # Read the defender's state now, not when the shot was accepted
        result = resolve_attack(self._boards[defender], self._fleets[defender], row, col)
        if not result.outcome.accepted:
            logger.warning("%s shot at %s rejected late (%s)", attacker.value, format_coord(row, col), result.outcome.value)
            self._retry_after_rejection(attacker)
            return

        self._boards[defender] = result.board
        self._fleets[defender] = result.fleet
        self._shots[attacker] += 1
        if attacker is Side.AI:
            self.engine.register_result(rc, result)

        shot = self._emit(
            Event(
                Category.TURN,
                "shot",
                {
                    "attacker": attacker.value,
                    "coord": rc,
                    "result": result.outcome.value,
                    "sunk": result.ship.name if result.sunk else None,
                },
            )
        )
        if not shot:
            return
        if result.outcome is AttackOutcome.HIT:
            self._message = MESSAGES[(attacker, "hit")]
            if result.sunk:
                self._message = MESSAGES[(attacker, "sunk")].format(name=result.ship.name.upper())
                logger.info("%s sank %s at %s", attacker.value, result.ship.name, format_coord(row, col))
                if not self._emit(Event(Category.TURN, "sunk", {"attacker": attacker.value, "ship": result.ship.name})):
                    return
        else:
            self._message = MESSAGES[(attacker, "miss")]

        self._advance(attacker, result)

    def _advance(self, attacker: Side, result: AttackResult) -> None:
        """The one turn rule, applied identically to both sides."""
        if result.fleet_destroyed:
            self._conclude(attacker)
        elif result.outcome is AttackOutcome.HIT:
            # Same side fires again
            if attacker is Side.PLAYER:
                self._later(self.config.handoff_delay, self._unlock)
            else:
                self._ai_turn()
        else:
            self._later(self.config.handoff_delay, lambda: self._hand_over(attacker.opponent))

    def _retry_after_rejection(self, attacker: Side) -> None:
        if attacker is Side.AI:
            self._ai_turn()
        else:
            self._unlock()

    def _unlock(self) -> None:
        self._in_flight = False

    def _hand_over(self, side: Side) -> None:
        self._turn = side
        if not self._emit(Event(Category.TURN, "handoff", {"turn": side.value})):
            return
        if side is Side.AI:
            # Board stays locked for the human until the computer is done
            self._ai_turn()
        else:
            self._unlock()

    def _ai_turn(self) -> None:
        self._in_flight = True
        self._later(self.config.ai_think_delay, self._ai_fire)

    def _ai_fire(self) -> None:
        board = self._boards[Side.PLAYER]
        target = self.engine.choose_shot(board)
        if not board.in_bounds(*target) or board.is_resolved(*target):
            raise FleetOpsError(f"targeting engine chose an illegal cell {target!r}")
        logger.debug("computer targets %s (%s)", format_coord(*target), self.engine.last_mode)
        self._fire(Side.AI, target)

    def _conclude(self, winner: Side) -> None:
        self._phase = Phase.GAME_OVER
        self._winner = winner
        self._in_flight = False
        self._message = MESSAGES[(winner, "win")]
        shots = self._shots[winner]
        logger.info("Game over – %s won with %d shots", winner.value, shots)
        for side in Side:
            logger.debug("%s board:\n%s", side.value, "\n".join(self._boards[side].rows(reveal=True)))
        self._emit(Event(Category.PHASE, "game_over", {"winner": winner.value, "shots": shots}))

    # -------------------- reset --------------------
    def reset(self) -> None:
        """Return to the placement phase with fresh boards and fleets."""
        with self._lock:
            self._epoch += 1
            self.engine.reset()
            self._init_state()
            logger.info("Session reset")
            self._emit(Event(Category.PHASE, "reset", {}))
