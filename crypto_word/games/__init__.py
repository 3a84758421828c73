from .cipher import letter_code, render_cell, render_cells, to_superscript
from .engine import (
    Candidate,
    ConfigError,
    DefaultShift,
    DifficultyLevel,
    FixedShift,
    PuzzleEngine,
    RandomShift,
    load_game_config,
    parse_difficulties,
)
from .game_manager import CryptoGameManager
from .market import MarketCatalog, MarketItem, default_catalog, load_market_catalog
from .matcher import CheckResult, check_answer
from .puzzle import Cell, Puzzle

__all__ = [
    "letter_code",
    "render_cell",
    "render_cells",
    "to_superscript",
    "Candidate",
    "ConfigError",
    "DefaultShift",
    "DifficultyLevel",
    "FixedShift",
    "PuzzleEngine",
    "RandomShift",
    "load_game_config",
    "parse_difficulties",
    "CryptoGameManager",
    "MarketCatalog",
    "MarketItem",
    "default_catalog",
    "load_market_catalog",
    "CheckResult",
    "check_answer",
    "Cell",
    "Puzzle",
]
