# reversi/config.py
import logging
import os
import tomllib
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

# Positional weights; corners are invaluable, the cells diagonally next to them are traps.
SIGNIFICANCE_MATRIX = [
    [9999,   5, 500, 200, 200, 500,   5, 9999],
    [   5,   1,  50, 150, 150,  50,   1,    5],
    [ 500,  50, 250, 100, 100, 250,  50,  500],
    [ 200, 150, 100,  50,  50, 100, 150,  200],
    [ 200, 150, 100,  50,  50, 100, 150,  200],
    [ 500,  50, 250, 100, 100, 250,  50,  500],
    [   5,   1,  50, 150, 150,  50,   1,    5],
    [9999,   5, 500, 200, 200, 500,   5, 9999],
]


@dataclass
class SearchConfig:
    level: int = 3
    min_level: int = 1
    max_level: int = 7


@dataclass
class EvalConfig:
    significance: List[List[int]] = field(
        default_factory=lambda: [row[:] for row in SIGNIFICANCE_MATRIX]
    )
    human_significance_factor: float = 1.5
    machine_mobility_weight: float = 3.0
    human_mobility_weight: float = 4.0
    machine_potential_weight: float = 2.5
    human_potential_weight: float = 3.0


@dataclass
class UIConfig:
    engine_name: str = "Reversi"
    api_port: int = 8000


@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "ui"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Ignoring unknown config key %s.%s", section, k)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg


# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("REVERSI_CONFIG_TOML", "config.toml"))
# allow env override of the level for quick debugging
override_level = os.environ.get("REVERSI_SEARCH_LEVEL")
if override_level:
    try:
        CONFIG.search.level = int(override_level)
    except ValueError:
        logger.warning("Ignoring malformed REVERSI_SEARCH_LEVEL=%r", override_level)
