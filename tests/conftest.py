import logging
import random
import sys
from pathlib import Path
from typing import Optional

import pytest

# Ensure local `src` directory is importable before project is installed.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from fleetops.battleship import Board, Fleet
from fleetops.config import GameConfig
from fleetops.game import configure_logging
from fleetops.placement import Orientation, place
from fleetops.scheduler import ManualScheduler
from fleetops.session import GameSession, Side

# Suppress INFO & DEBUG logs from sessions during tests
configure_logging(logging.WARNING)

# Small roster that fits comfortably on an 8x8 board
SMALL_ROSTER = (("Cruiser", 1, 3), ("Patrol", 1, 2))

# Known computer layout for SMALL_ROSTER: Cruiser on A1-A3, Patrol on C1-C2
AI_LAYOUT = {1: (0, 0, Orientation.HORIZONTAL), 2: (2, 0, Orientation.HORIZONTAL)}


def build_board(size: int, fleet: Fleet, layout) -> Board:
    """Build a board from {ship_id: (row, col, orientation)} without rule checks."""
    board = Board.empty(size)
    for ship in fleet:
        r, c, o = layout[ship.id]
        board = place(board, r, c, ship.width, ship.length, o, ship.id)
    return board


def deploy_player_fleet(sess: GameSession) -> None:
    """Deploy every human ship on its own even row, starting at column 0."""
    row = 0
    while sess.next_ship is not None:
        assert sess.attempt_placement(row, 0, Orientation.HORIZONTAL)
        row += 2


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def small_config() -> GameConfig:
    return GameConfig.headless(board_size=8, ships=SMALL_ROSTER, seed=7)


@pytest.fixture
def board_builder():
    return build_board


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def session_factory(small_config):
    """Factory that builds a GameSession, optionally already in battle with a known computer layout."""

    def _factory(*, config: Optional[GameConfig] = None, scheduler=None, battle: bool = False) -> GameSession:
        cfg = config or small_config
        sess = GameSession(cfg, scheduler=scheduler, rng=random.Random(99))
        if battle:
            deploy_player_fleet(sess)
            assert sess.phase.value == "battle"
            # Swap in a known computer layout so tests can aim at it
            sess._boards[Side.AI] = build_board(cfg.board_size, sess.fleet(Side.AI), AI_LAYOUT)
        return sess

    return _factory
