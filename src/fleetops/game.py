"""Game utilities re-exporting core classes and functions for external import."""

from __future__ import annotations

import logging
from typing import Optional

from . import config as _cfg
from .battleship import AttackOutcome, AttackResult, Board, Cell, CellState, Fleet, Ship, resolve_attack
from .bot_logic import BoardExhausted, TargetingEngine
from .config import GameConfig
from .errors import ConfigError, FleetOpsError, PlacementError
from .events import Category, Event
from .observation import encode_board
from .placement import (
    Orientation,
    Placement,
    auto_place,
    auto_place_with_retry,
    can_place,
    derive_placement,
    derive_placements,
    place,
)
from .scheduler import ImmediateScheduler, ManualScheduler, ThreadingScheduler
from .session import GameSession, GameView, Phase, Side


def configure_logging(level: Optional[int] = None) -> None:
    """Install a root handler; DEBUG when FLEET_DEBUG=1, INFO otherwise."""
    if level is None:
        level = logging.DEBUG if _cfg.DEBUG else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


__all__ = [
    "AttackOutcome",
    "AttackResult",
    "Board",
    "BoardExhausted",
    "Category",
    "Cell",
    "CellState",
    "ConfigError",
    "Event",
    "Fleet",
    "FleetOpsError",
    "GameConfig",
    "GameSession",
    "GameView",
    "ImmediateScheduler",
    "ManualScheduler",
    "Orientation",
    "Phase",
    "Placement",
    "PlacementError",
    "Ship",
    "Side",
    "TargetingEngine",
    "ThreadingScheduler",
    "auto_place",
    "auto_place_with_retry",
    "can_place",
    "configure_logging",
    "derive_placement",
    "derive_placements",
    "encode_board",
    "place",
    "resolve_attack",
]
