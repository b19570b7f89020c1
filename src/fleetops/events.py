"""Lightweight event model used by GameSession to decouple game logic from presentation.

The goal is to emit strongly-typed events that a UI shell can translate into
animations and HUD updates, and that other subscribers (e.g. logging) can
consume without parsing the free-text status message.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict


class Category(Enum):
    """High-level event categories."""

    PHASE = auto()  # placement / battle / game over / reset
    PLACEMENT = auto()  # ship placed or rejected
    TURN = auto()  # per-shot lifecycle (accepted, shot, sunk, handoff)


@dataclass(frozen=True)
class Event:
    """Immutable event emitted by GameSession."""

    category: Category
    type: str  # finer-grained identifier, e.g. "shot", "sunk", "handoff"
    payload: Dict[str, Any] = field(default_factory=dict)
