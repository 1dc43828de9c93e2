import logging
import os
from dataclasses import dataclass

BOARD_SIZE = 4
WIN_VALUE = 2048
TWO_PROBABILITY = 0.9
SETTLE_DELAY = 0.16
START_TILES = 2

BEST_SCORE_KEY = "puzzle2048_bestScore"

logger = logging.getLogger(__name__)


def env_int(name, default):
    """Integer from the environment, falling back to default when unset or malformed."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r, using %d", name, raw, default)
        return default


@dataclass(frozen=True)
class GameConfig:
    """Tunable rules of a single game."""
    size: int = BOARD_SIZE
    win_value: int = WIN_VALUE
    two_probability: float = TWO_PROBABILITY
    settle_delay: float = SETTLE_DELAY
    start_tiles: int = START_TILES

    def __post_init__(self):
        if self.size < 2:
            raise ValueError(f"Board size must be at least 2, got {self.size}")
        if not 0.0 <= self.two_probability <= 1.0:
            raise ValueError(f"two_probability must be within [0, 1], got {self.two_probability}")
        if self.win_value < 4 or self.win_value & (self.win_value - 1):
            raise ValueError(f"win_value must be a power of two >= 4, got {self.win_value}")
        if self.settle_delay < 0:
            raise ValueError(f"settle_delay must not be negative, got {self.settle_delay}")


class ServerConfig:
    """Server settings, overridable through the environment."""

    HOST = os.environ.get("PUZZLE2048_HOST", "0.0.0.0")
    PORT = env_int("PUZZLE2048_PORT", 5000)
    BEST_SCORE_PATH = os.environ.get("PUZZLE2048_BEST_SCORE_PATH", "best_score.json")
    SIZE = env_int("PUZZLE2048_SIZE", BOARD_SIZE)
