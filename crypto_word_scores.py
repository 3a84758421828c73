"""JSON-backed player score, power-up and theme store for the crypto word bot."""

from __future__ import annotations

import copy
import json
import os
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

LockType = threading.Lock

REVEAL_LETTER = "reveal_letter"

PURCHASED = "purchased"
ALREADY_OWNED = "already_owned"
NOT_ENOUGH_POINTS = "not_enough_points"


class ScoreStore:
    """Persist per-player scores, power-up counts and profile themes to one JSON file.

    Every mutation is applied in memory and written out while the lock is
    held. If the write fails the in-memory data is restored to what it was
    before the call, so a failed purchase never costs points.
    """

    def __init__(self, path: str):
        self._path = path
        self._lock: LockType = threading.Lock()
        self._data: Dict[str, Dict[str, Any]] = {}
        self._load()

    def _player_key(self, player: str) -> str:
        return str(player).strip()

    def _load(self) -> None:
        if not os.path.exists(self._path):
            self._data = {}
            return
        try:
            with open(self._path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except (OSError, ValueError):
            self._data = {}
            return
        players = raw.get("players") if isinstance(raw, dict) else None
        clean: Dict[str, Dict[str, Any]] = {}
        if isinstance(players, dict):
            for key, value in players.items():
                if not isinstance(key, str) or not isinstance(value, dict):
                    continue
                entry = self._blank_entry(value.get("name") or key)
                try:
                    entry["score"] = int(value.get("score", 0))
                except (TypeError, ValueError):
                    entry["score"] = 0
                powerups = value.get("powerups")
                if isinstance(powerups, dict):
                    entry["powerups"] = {
                        str(k): max(0, int(v)) for k, v in powerups.items() if isinstance(v, int)
                    }
                theme = value.get("theme")
                entry["theme"] = theme if isinstance(theme, str) and theme else None
                entry["updated_at"] = value.get("updated_at")
                clean[key] = entry
        self._data = clean

    def _blank_entry(self, name: str) -> Dict[str, Any]:
        return {"name": name, "score": 0, "powerups": {}, "theme": None, "updated_at": None}

    def _persist(self) -> None:
        tmp_path = f"{self._path}.tmp"
        directory = os.path.dirname(self._path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump({"players": self._data}, fh, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp_path, self._path)

    def _commit_locked(self, snapshot: Dict[str, Dict[str, Any]]) -> None:
        try:
            self._persist()
        except Exception:
            self._data = snapshot
            raise

    def _entry_locked(self, player: str, name: Optional[str] = None) -> Dict[str, Any]:
        key = self._player_key(player)
        if not key:
            raise ValueError("Player key cannot be empty")
        entry = self._data.get(key)
        if entry is None:
            entry = self._blank_entry(name or key)
            self._data[key] = entry
        elif name:
            entry["name"] = name
        entry["updated_at"] = datetime.now(timezone.utc).isoformat()
        return entry

    def ensure_player(self, player: str, name: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            snapshot = copy.deepcopy(self._data)
            entry = self._entry_locked(player, name)
            self._commit_locked(snapshot)
            return dict(entry)

    def get_score(self, player: str) -> int:
        with self._lock:
            entry = self._data.get(self._player_key(player))
            return int(entry["score"]) if entry else 0

    def get_theme(self, player: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(self._player_key(player))
            return entry.get("theme") if entry else None

    def add_points(self, player: str, points: int, name: Optional[str] = None) -> int:
        """Add ``points`` (may be negative) and return the new total."""
        with self._lock:
            snapshot = copy.deepcopy(self._data)
            entry = self._entry_locked(player, name)
            entry["score"] = int(entry["score"]) + int(points)
            self._commit_locked(snapshot)
            return entry["score"]

    def spend_points(self, player: str, cost: int) -> Optional[int]:
        """Deduct ``cost`` if the player can afford it. Returns the new total or None."""
        with self._lock:
            entry = self._data.get(self._player_key(player))
            if entry is None or int(entry["score"]) < cost:
                return None
            snapshot = copy.deepcopy(self._data)
            entry["score"] = int(entry["score"]) - int(cost)
            entry["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._commit_locked(snapshot)
            return entry["score"]

    def powerup_count(self, player: str, powerup: str = REVEAL_LETTER) -> int:
        with self._lock:
            entry = self._data.get(self._player_key(player))
            if not entry:
                return 0
            return int(entry["powerups"].get(powerup, 0))

    def adjust_powerup(self, player: str, powerup: str, delta: int) -> int:
        with self._lock:
            snapshot = copy.deepcopy(self._data)
            entry = self._entry_locked(player)
            count = max(0, int(entry["powerups"].get(powerup, 0)) + int(delta))
            entry["powerups"][powerup] = count
            self._commit_locked(snapshot)
            return count

    def consume_powerup(self, player: str, powerup: str = REVEAL_LETTER) -> Optional[int]:
        """Take one ``powerup`` if the player owns any. Returns the count left or None."""
        with self._lock:
            entry = self._data.get(self._player_key(player))
            if entry is None or int(entry["powerups"].get(powerup, 0)) <= 0:
                return None
            snapshot = copy.deepcopy(self._data)
            count = int(entry["powerups"][powerup]) - 1
            entry["powerups"][powerup] = count
            entry["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._commit_locked(snapshot)
            return count

    def buy_powerup(self, player: str, powerup: str, cost: int) -> Optional[Tuple[int, int]]:
        """Deduct ``cost`` and grant one ``powerup`` in a single write.

        Returns ``(score, count)`` or None when the player cannot afford it.
        """
        with self._lock:
            entry = self._data.get(self._player_key(player))
            if entry is None or int(entry["score"]) < cost:
                return None
            snapshot = copy.deepcopy(self._data)
            entry["score"] = int(entry["score"]) - int(cost)
            count = int(entry["powerups"].get(powerup, 0)) + 1
            entry["powerups"][powerup] = count
            entry["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._commit_locked(snapshot)
            return entry["score"], count

    def buy_theme(self, player: str, theme: str, cost: int) -> Tuple[str, int]:
        """Switch the player's profile theme for ``cost`` points.

        Returns ``(status, score)`` where status is ``PURCHASED``,
        ``ALREADY_OWNED`` or ``NOT_ENOUGH_POINTS``.
        """
        with self._lock:
            entry = self._data.get(self._player_key(player))
            score = int(entry["score"]) if entry else 0
            if entry is not None and entry.get("theme") == theme:
                return ALREADY_OWNED, score
            if score < cost:
                return NOT_ENOUGH_POINTS, score
            snapshot = copy.deepcopy(self._data)
            entry = self._entry_locked(player)
            entry["score"] = score - int(cost)
            entry["theme"] = theme
            entry["updated_at"] = datetime.now(timezone.utc).isoformat()
            self._commit_locked(snapshot)
            return PURCHASED, entry["score"]

    def rank(self, player: str) -> Optional[int]:
        key = self._player_key(player)
        for position, row in enumerate(self.top(len(self._data)), start=1):
            if row["player"] == key:
                return position
        return None

    def top(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            ranked = sorted(
                self._data.items(),
                key=lambda item: (-int(item[1]["score"]), str(item[1]["name"]).lower()),
            )
            if limit <= 0:
                return []
            return [
                {"player": key, "name": entry["name"], "score": int(entry["score"])}
                for key, entry in ranked[:limit]
            ]


__all__ = [
    "ScoreStore",
    "REVEAL_LETTER",
    "PURCHASED",
    "ALREADY_OWNED",
    "NOT_ENOUGH_POINTS",
]
