"""Bot settings loaded from ``config.json``."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

CONFIG_FILE = "config.json"

REPLACE = "replace"
REFUSE = "refuse"

DEFAULT_REPLACE_POLICY = {"private": REPLACE, "shared": REFUSE}


def safe_load_json(path: str, default_value: Any) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"⚠️ {path} not found. Using defaults.")
    except Exception as e:
        print(f"⚠️ Could not load {path}: {e}")
    return default_value


def _policy_value(value: Any, default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in {REPLACE, REFUSE} else default


@dataclass
class BotSettings:
    game_config_path: str = "game_config.json"
    market_config_path: str = "market_config.json"
    score_store_path: str = "data/crypto_scores.json"
    debug: bool = False
    clean_logs: bool = True
    use_wifi: bool = False
    wifi_host: Optional[str] = None
    wifi_port: int = 4403
    serial_port: str = ""
    chunk_delay: float = 2.0
    max_chunk_length: int = 200
    leaderboard_size: int = 10
    default_difficulty: str = "easy"
    replace_policy: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_REPLACE_POLICY))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BotSettings":
        settings = cls()
        if not isinstance(data, Mapping):
            return settings
        for key in ("game_config_path", "market_config_path", "score_store_path", "serial_port", "default_difficulty"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                setattr(settings, key, value.strip())
        for key in ("debug", "clean_logs", "use_wifi"):
            if key in data:
                setattr(settings, key, bool(data[key]))
        host = data.get("wifi_host")
        settings.wifi_host = str(host).strip() if host else None
        for key, floor in (("wifi_port", 1), ("max_chunk_length", 40), ("leaderboard_size", 1)):
            if key in data:
                try:
                    setattr(settings, key, max(floor, int(data[key])))
                except (TypeError, ValueError):
                    pass
        if "chunk_delay" in data:
            try:
                settings.chunk_delay = max(0.0, float(data["chunk_delay"]))
            except (TypeError, ValueError):
                pass
        policy = data.get("replace_policy")
        if isinstance(policy, Mapping):
            settings.replace_policy = {
                kind: _policy_value(policy.get(kind), default)
                for kind, default in DEFAULT_REPLACE_POLICY.items()
            }
        return settings

    def replaces_active(self, is_private: bool) -> bool:
        kind = "private" if is_private else "shared"
        return self.replace_policy.get(kind, DEFAULT_REPLACE_POLICY[kind]) == REPLACE


def load_settings(path: str = CONFIG_FILE) -> BotSettings:
    return BotSettings.from_mapping(safe_load_json(path, {}))


__all__ = ["BotSettings", "load_settings", "safe_load_json", "REPLACE", "REFUSE"]
