"""Puzzle state: character cells, guess bookkeeping and lifecycle status."""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .cipher import render_cells

# ----------------------------
# Lifecycle states
# ----------------------------

ACTIVE = "active"
SOLVED = "solved"
FORFEITED = "forfeited"


@dataclass
class Cell:
    char: str
    is_hidden: bool = False
    is_guessed: bool = False
    code: Optional[int] = None

    @property
    def is_letter(self) -> bool:
        return self.char.isalpha()

    @property
    def is_masked(self) -> bool:
        return self.is_hidden and not self.is_guessed


@dataclass
class Puzzle:
    """One live round: the encoded phrase plus guess bookkeeping.

    ``solution`` never changes after generation. ``remaining`` holds the hidden
    letters still to be found and only ever shrinks; the round is solved once
    it is empty. ``external_message_ref`` belongs to the transport layer.
    """

    cells: List[Cell]
    solution: str
    remaining: str
    points: int
    difficulty: str = "easy"
    shift: int = 0
    external_message_ref: Optional[Any] = None
    forfeited: bool = False
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    # ------------------------
    # State queries
    # ------------------------
    @property
    def is_solved(self) -> bool:
        return self.remaining == ""

    @property
    def status(self) -> str:
        if self.forfeited:
            return FORFEITED
        if self.is_solved:
            return SOLVED
        return ACTIVE

    def masked_count(self) -> int:
        return sum(1 for cell in self.cells if cell.is_masked)

    def render_display(self) -> str:
        return render_cells(self.cells)

    # ------------------------
    # Mutation
    # ------------------------
    def update_state(self, matched_chars: str) -> None:
        """Consume ``matched_chars`` from ``remaining`` and unmask the same letters.

        Both passes draw from their own copy of the same multiset, so the number
        of letters dropped from ``remaining`` always equals the number of cells
        newly marked as guessed.
        """
        budget = Counter(matched_chars)
        kept: List[str] = []
        for ch in self.remaining:
            if budget[ch] > 0:
                budget[ch] -= 1
            else:
                kept.append(ch)
        self.remaining = "".join(kept)

        budget = Counter(matched_chars)
        for cell in self.cells:
            if cell.is_masked and budget[cell.char] > 0:
                cell.is_guessed = True
                budget[cell.char] -= 1

    def reveal_all(self) -> None:
        """Unmask every hidden cell for a forfeit.

        ``remaining`` is left as it was; ``forfeited`` is the signal callers use.
        """
        for cell in self.cells:
            if cell.is_hidden:
                cell.is_guessed = True
        self.forfeited = True

    def reveal_random_char(self) -> Tuple[Optional[str], bool]:
        masked = [idx for idx, cell in enumerate(self.cells) if cell.is_masked]
        if not masked:
            return None, False
        char = self.cells[self.rng.choice(masked)].char
        self.update_state(char)
        return char, True


__all__ = ["Cell", "Puzzle", "ACTIVE", "SOLVED", "FORFEITED"]
