"""Puzzle generation for the crypto word game.

The engine owns the difficulty table (read-only after loading) and a single
``random.Random`` instance. Tests inject a seeded generator; the bot uses a
fresh one.

Difficulty file format (``game_config.json``)::

    {
      "difficulties": {
        "easy": {
          "points": 10,
          "hide_percentage": 30,
          "puzzles": [
            {"text": "stay alert", "shift": 0},
            {"text": "signal ready", "shift": "random"},
            {"text": "hold position"}
          ]
        }
      }
    }
"""
from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from unidecode import unidecode

from .cipher import letter_code
from .puzzle import Cell, Puzzle

FALLBACK_DIFFICULTY = "easy"
RANDOM_SHIFT_TOKEN = "random"
RANDOM_SHIFT_RANGE = (1, 10)

LogFn = Callable[..., None]


class ConfigError(Exception):
    """Difficulty data is missing or unusable for a generation request."""


# ----------------------------
# Shift policy
# ----------------------------

@dataclass(frozen=True)
class FixedShift:
    value: int

    def resolve(self, rng: random.Random) -> int:
        return self.value


@dataclass(frozen=True)
class RandomShift:
    low: int = RANDOM_SHIFT_RANGE[0]
    high: int = RANDOM_SHIFT_RANGE[1]

    def resolve(self, rng: random.Random) -> int:
        return rng.randint(self.low, self.high)


@dataclass(frozen=True)
class DefaultShift:
    def resolve(self, rng: random.Random) -> int:
        return 0


Shift = Union[FixedShift, RandomShift, DefaultShift]


def parse_shift(raw: Any) -> Shift:
    # bool is an int subclass; a stray true/false is not a shift
    if isinstance(raw, int) and not isinstance(raw, bool):
        return FixedShift(raw)
    if raw == RANDOM_SHIFT_TOKEN:
        return RandomShift()
    return DefaultShift()


# ----------------------------
# Difficulty table
# ----------------------------

@dataclass(frozen=True)
class Candidate:
    text: str
    shift: Shift = field(default_factory=DefaultShift)


@dataclass(frozen=True)
class DifficultyLevel:
    name: str
    points: int
    hide_percentage: int
    candidates: Tuple[Candidate, ...] = ()


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def parse_difficulties(raw: Mapping[str, Any], clean_log: Optional[LogFn] = None) -> Dict[str, DifficultyLevel]:
    """Build the difficulty table from an already-decoded JSON document."""
    if not isinstance(raw, Mapping):
        raise ConfigError("game config must be a JSON object")
    table = raw.get("difficulties", raw)
    if not isinstance(table, Mapping):
        raise ConfigError("'difficulties' must be a JSON object")

    levels: Dict[str, DifficultyLevel] = {}
    for name, entry in table.items():
        if not isinstance(name, str) or not isinstance(entry, Mapping):
            continue
        key = name.strip().lower()
        hide = entry.get("hide_percentage", entry.get("hidePercentage", 0))
        candidates: List[Candidate] = []
        for item in entry.get("puzzles") or entry.get("candidates") or []:
            if isinstance(item, str):
                item = {"text": item}
            if not isinstance(item, Mapping):
                continue
            text = item.get("text")
            if not isinstance(text, str) or not text.strip():
                continue
            candidates.append(Candidate(text=text, shift=parse_shift(item.get("shift"))))
        levels[key] = DifficultyLevel(
            name=key,
            points=_as_int(entry.get("points")),
            hide_percentage=max(0, min(100, _as_int(hide))),
            candidates=tuple(candidates),
        )

    if FALLBACK_DIFFICULTY not in levels and clean_log:
        clean_log(f"Game config has no '{FALLBACK_DIFFICULTY}' difficulty; unknown levels will fail", "⚠️")
    return levels


def load_game_config(path: str, clean_log: Optional[LogFn] = None) -> Dict[str, DifficultyLevel]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except OSError as exc:
        raise ConfigError(f"could not read game config file {path}: {exc}") from exc
    except ValueError as exc:
        raise ConfigError(f"could not parse game config file {path}: {exc}") from exc
    return parse_difficulties(raw, clean_log=clean_log)


# ----------------------------
# Engine
# ----------------------------

class PuzzleEngine:
    """Produces new ``Puzzle`` rounds from the difficulty table."""

    def __init__(self, difficulties: Mapping[str, DifficultyLevel], *, rng: Optional[random.Random] = None) -> None:
        self.difficulties: Dict[str, DifficultyLevel] = dict(difficulties)
        self.rng = rng or random.Random()

    def difficulty_names(self) -> List[str]:
        return list(self.difficulties.keys())

    def resolve_level(self, difficulty: str) -> DifficultyLevel:
        level = self.difficulties.get((difficulty or "").strip().lower())
        if level is None:
            level = self.difficulties.get(FALLBACK_DIFFICULTY)
        if level is None:
            raise ConfigError("missing easy difficulty")
        return level

    def generate(self, difficulty: str) -> Puzzle:
        level = self.resolve_level(difficulty)
        if not level.candidates:
            raise ConfigError("no puzzles for difficulty")

        candidate = self.rng.choice(level.candidates)
        # guesses are transliterated to ASCII, so the phrase must be too
        phrase = unidecode(candidate.text).upper()
        shift = candidate.shift.resolve(self.rng)

        letter_indices = [idx for idx, ch in enumerate(phrase) if ch.isalpha()]
        self.rng.shuffle(letter_indices)
        hide_count = len(letter_indices) * level.hide_percentage // 100
        if hide_count == 0 and len(letter_indices) > 1:
            hide_count = 1
        hidden = set(letter_indices[:hide_count])

        cells: List[Cell] = []
        for idx, ch in enumerate(phrase):
            cell = Cell(char=ch, is_hidden=idx in hidden)
            if cell.is_letter:
                cell.code = letter_code(ch, shift)
            cells.append(cell)

        solution = "".join(cell.char for cell in cells if cell.is_hidden)
        return Puzzle(
            cells=cells,
            solution=solution,
            remaining=solution,
            points=level.points,
            difficulty=level.name,
            shift=shift,
            rng=self.rng,
        )


__all__ = [
    "ConfigError",
    "FixedShift",
    "RandomShift",
    "DefaultShift",
    "Shift",
    "parse_shift",
    "Candidate",
    "DifficultyLevel",
    "parse_difficulties",
    "load_game_config",
    "PuzzleEngine",
    "FALLBACK_DIFFICULTY",
]
