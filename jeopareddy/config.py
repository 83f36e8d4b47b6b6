"""Runtime settings, read from the environment with safe defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from jeopareddy.ladder import TOTAL_SPOTS

logger = logging.getLogger(__name__)

RESULTS_DIR = Path("data")
DB_PATH = RESULTS_DIR / "jeopareddy.db"


def _safe_int_env(name: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    """Parse an integer environment variable, clamped to the given bounds.

    Falls back to *default* when the value is not an integer.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %d", name, raw, default)
        return default
    if min_val is not None:
        value = max(min_val, value)
    if max_val is not None:
        value = min(max_val, value)
    return value


@dataclass
class MiniGameConfig:
    """Host-side mini-game switches for one game session."""

    joker_enabled: bool = False
    joker_appearances: int = 1
    joker_spot_count: int = 1
    thief_spot_count: int = 1
    reveal_enabled: bool = False
    reveal_appearances: int = 1


@dataclass
class Settings:
    db_path: Path = DB_PATH
    seed: int | None = None
    log_level: str = "WARNING"
    minigames: MiniGameConfig = field(default_factory=MiniGameConfig)

    @classmethod
    def from_env(cls) -> Settings:
        seed_raw = os.getenv("JEOPAREDDY_SEED")
        seed = None
        if seed_raw:
            try:
                seed = int(seed_raw)
            except ValueError:
                logger.warning("Invalid JEOPAREDDY_SEED=%r, ignoring", seed_raw)

        minigames = MiniGameConfig(
            joker_appearances=_safe_int_env("JEOPAREDDY_JOKER_APPEARANCES", 1, min_val=0),
            joker_spot_count=_safe_int_env("JEOPAREDDY_JOKER_SPOTS", 1, 0, TOTAL_SPOTS),
            thief_spot_count=_safe_int_env("JEOPAREDDY_THIEF_SPOTS", 1, 0, TOTAL_SPOTS),
            reveal_appearances=_safe_int_env("JEOPAREDDY_REVEAL_APPEARANCES", 1, min_val=0),
        )
        return cls(
            db_path=Path(os.getenv("JEOPAREDDY_DB", str(DB_PATH))),
            seed=seed,
            log_level=os.getenv("JEOPAREDDY_LOG_LEVEL", "WARNING").upper(),
            minigames=minigames,
        )
