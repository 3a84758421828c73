"""Core helpers for the Crypto Word mesh bot."""

from .replies import PendingReply
from .games import ConfigError, CryptoGameManager, PuzzleEngine, load_game_config, load_market_catalog
from .sessions import PuzzleAlreadyActive, SessionTable
from .settings import BotSettings, load_settings
from .mesh_bridge import MeshBridge

__all__ = [
    "PendingReply",
    "ConfigError",
    "CryptoGameManager",
    "PuzzleEngine",
    "load_game_config",
    "load_market_catalog",
    "PuzzleAlreadyActive",
    "SessionTable",
    "BotSettings",
    "load_settings",
    "MeshBridge",
]
