"""Central configuration for runtime-tunable parameters.

All constants can be overridden via environment variables so that an
interactive shell gets the full animation pacing by default, while the
automated test-suite can shrink the board or zero the delays if necessary.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .errors import ConfigError


# ===========================================================================
# Board & Fleet
# ===========================================================================
# FLEET_BOARD_SIZE: Defines the width and height of the game board.
#   Defaults to 15 (for a 15x15 grid).
#   Example: export FLEET_BOARD_SIZE=10
BOARD_SIZE: int = int(os.getenv("FLEET_BOARD_SIZE", "15"))

# Rows are labelled A..Z, so a board can be at most 26 cells wide.
MAX_BOARD_SIZE = 26

# Standard ship roster: list of (name, width, length) tuples. Both sides
# receive the identical roster. Not typically overridden by env vars.
SHIPS = [
    ("Carrier", 2, 7),
    ("Battleship", 1, 7),
    ("Cruiser", 1, 5),
    ("Destroyer", 1, 4),
    ("Submarine", 1, 5),
    ("Rescue", 1, 4),
    ("Patrol", 1, 2),
]


# ===========================================================================
# Auto-placement
# ===========================================================================
# FLEET_PLACEMENT_ATTEMPTS: Random positions tried per ship before the
#   current board is abandoned.
#   Defaults to 1000.
PLACEMENT_ATTEMPTS: int = int(os.getenv("FLEET_PLACEMENT_ATTEMPTS", "1000"))

# FLEET_PLACEMENT_RETRIES: Fresh empty boards tried before auto-placement
#   gives up for good and raises PlacementError.
#   Defaults to 25.
PLACEMENT_RETRIES: int = int(os.getenv("FLEET_PLACEMENT_RETRIES", "25"))


# ===========================================================================
# Timing Controls
# ===========================================================================
# These are purely cosmetic: they leave room for the projectile and impact
# animations of the presentation layer. Set them to 0 for headless play.
#
# FLEET_SHOT_DELAY: Seconds between an accepted shot and its resolution.
#   Defaults to 0.6.
SHOT_DELAY: float = float(os.getenv("FLEET_SHOT_DELAY", "0.6"))

# FLEET_AI_THINK_DELAY: Seconds the computer waits before picking a target.
#   Defaults to 1.0.
AI_THINK_DELAY: float = float(os.getenv("FLEET_AI_THINK_DELAY", "1.0"))

# FLEET_HANDOFF_DELAY: Seconds after a resolution before the board unlocks
#   again (hit) or control passes to the other side (miss).
#   Defaults to 1.5.
HANDOFF_DELAY: float = float(os.getenv("FLEET_HANDOFF_DELAY", "1.5"))


# ===========================================================================
# Computer opponent
# ===========================================================================
# FLEET_AI_CLEAR_QUEUE_ON_SINK: If "1", sinking a ship wipes the whole target
#   queue, including leads on other damaged ships. Defaults to "0" (only the
#   leads that came from the sunk ship are dropped).
AI_CLEAR_QUEUE_ON_SINK: bool = os.getenv("FLEET_AI_CLEAR_QUEUE_ON_SINK", "0") == "1"

# FLEET_SEED: Optional integer seed for the session RNG (auto-placement and
#   AI targeting). Unset means non-deterministic.
SEED: Optional[int] = int(os.environ["FLEET_SEED"]) if os.getenv("FLEET_SEED") else None


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# FLEET_DEBUG: If "1", enables detailed debug logging across modules.
#   Defaults to "0" (disabled).
DEBUG: bool = os.getenv("FLEET_DEBUG", "0") == "1"


ShipSpec = Tuple[str, int, int]


@dataclass(frozen=True)
class GameConfig:
    """Bundle of product parameters injected into a GameSession.

    Defaults mirror the module constants above so ``GameConfig()`` picks up
    any environment overrides.
    """

    board_size: int = BOARD_SIZE
    ships: Tuple[ShipSpec, ...] = field(default_factory=lambda: tuple(SHIPS))
    placement_attempts: int = PLACEMENT_ATTEMPTS
    placement_retries: int = PLACEMENT_RETRIES
    shot_delay: float = SHOT_DELAY
    ai_think_delay: float = AI_THINK_DELAY
    handoff_delay: float = HANDOFF_DELAY
    ai_clear_queue_on_sink: bool = AI_CLEAR_QUEUE_ON_SINK
    seed: Optional[int] = SEED

    def __post_init__(self) -> None:
        # Accept any iterable of triples (e.g. a list) but store a tuple.
        object.__setattr__(self, "ships", tuple(tuple(s) for s in self.ships))
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError when a parameter cannot produce a playable game."""
        if not 1 <= self.board_size <= MAX_BOARD_SIZE:
            raise ConfigError(f"board_size must be between 1 and {MAX_BOARD_SIZE}, got {self.board_size}")
        if not self.ships:
            raise ConfigError("ship roster is empty")
        names = set()
        for spec in self.ships:
            if len(spec) != 3:
                raise ConfigError(f"ship entry must be (name, width, length): {spec!r}")
            name, width, length = spec
            if name in names:
                raise ConfigError(f"duplicate ship name {name!r}")
            names.add(name)
            if width < 1 or length < width:
                raise ConfigError(f"{name}: need 1 <= width <= length, got {width}x{length}")
            if length > self.board_size:
                raise ConfigError(f"{name}: length {length} exceeds board size {self.board_size}")
        if self.placement_attempts < 1 or self.placement_retries < 1:
            raise ConfigError("placement_attempts and placement_retries must be >= 1")
        if min(self.shot_delay, self.ai_think_delay, self.handoff_delay) < 0:
            raise ConfigError("delays must not be negative")

    @classmethod
    def headless(cls, **overrides) -> "GameConfig":
        """Config with every animation delay zeroed."""
        params = {"shot_delay": 0.0, "ai_think_delay": 0.0, "handoff_delay": 0.0}
        params.update(overrides)
        return cls(**params)
