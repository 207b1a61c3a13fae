from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, cast

MovementMode = Literal["manual-click", "external-feed"]
MOVEMENT_MODES: frozenset[str] = frozenset({"manual-click", "external-feed"})

# Reference location for cell (0, 0).
DEFAULT_ORIGIN_LAT = 36.997936938057016
DEFAULT_ORIGIN_LNG = -122.05703507501151


@dataclass(frozen=True, slots=True)
class GameConfig:
    # Chance an undiscovered cell spawns a token.
    spawn_probability: float = 0.2
    # Chance a spawned token is a 2 (otherwise a 4).
    double_probability: float = 0.8
    # Combines producing at least this value announce a win.
    victory_threshold: int = 16
    # Max king-move distance between player and an interactable cell.
    proximity_radius: int = 1
    movement_mode: MovementMode = "manual-click"

    # Grid geometry (degrees of lat/lng per cell).
    cell_degrees: float = 1e-4
    origin_lat: float = DEFAULT_ORIGIN_LAT
    origin_lng: float = DEFAULT_ORIGIN_LNG

    # Half-width of the window served to renderers.
    neighborhood_size: int = 8

    def __post_init__(self) -> None:
        if not 0.0 <= self.spawn_probability <= 1.0:
            raise ValueError("spawn_probability must be within [0, 1]")
        if not 0.0 <= self.double_probability <= 1.0:
            raise ValueError("double_probability must be within [0, 1]")
        if self.victory_threshold < 2:
            raise ValueError("victory_threshold must be at least 2")
        if self.proximity_radius < 0:
            raise ValueError("proximity_radius must be >= 0")
        if self.movement_mode not in MOVEMENT_MODES:
            raise ValueError(f"movement_mode must be one of: {','.join(sorted(MOVEMENT_MODES))}")
        if self.cell_degrees <= 0:
            raise ValueError("cell_degrees must be > 0")
        if self.neighborhood_size < 1:
            raise ValueError("neighborhood_size must be >= 1")


def load_config() -> GameConfig:
    """Build a GameConfig from GRIDMERGE_* environment variables, falling back to defaults."""

    defaults = GameConfig()
    env = os.environ
    return GameConfig(
        spawn_probability=float(env.get("GRIDMERGE_SPAWN_PROBABILITY", defaults.spawn_probability)),
        double_probability=float(env.get("GRIDMERGE_DOUBLE_PROBABILITY", defaults.double_probability)),
        victory_threshold=int(env.get("GRIDMERGE_VICTORY_THRESHOLD", defaults.victory_threshold)),
        proximity_radius=int(env.get("GRIDMERGE_PROXIMITY_RADIUS", defaults.proximity_radius)),
        movement_mode=cast(MovementMode, env.get("GRIDMERGE_MOVEMENT_MODE", defaults.movement_mode)),
        cell_degrees=float(env.get("GRIDMERGE_CELL_DEGREES", defaults.cell_degrees)),
        origin_lat=float(env.get("GRIDMERGE_ORIGIN_LAT", defaults.origin_lat)),
        origin_lng=float(env.get("GRIDMERGE_ORIGIN_LNG", defaults.origin_lng)),
        neighborhood_size=int(env.get("GRIDMERGE_NEIGHBORHOOD_SIZE", defaults.neighborhood_size)),
    )


def get_log_level() -> str:
    return os.environ.get("GRIDMERGE_LOG_LEVEL", "INFO").upper()


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379/0")


def get_redis_socket_timeout() -> float:
    return float(os.environ.get("GRIDMERGE_REDIS_TIMEOUT", "2.0"))
