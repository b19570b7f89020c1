"""Exception hierarchy for the rules core."""


class FleetOpsError(Exception):
    """Base class for all errors raised by fleetops."""


class ConfigError(FleetOpsError, ValueError):
    """Raised when a GameConfig cannot describe a playable game."""


class PlacementError(FleetOpsError):
    """Raised when a fleet cannot be auto-placed within the attempt budget."""
