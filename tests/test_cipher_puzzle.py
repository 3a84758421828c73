from __future__ import annotations

import random
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_word.games.cipher import letter_code, render_cell, to_superscript
from crypto_word.games.puzzle import ACTIVE, FORFEITED, SOLVED, Cell, Puzzle


def make_puzzle(phrase: str, hidden=None, shift: int = 0, seed: int = 0) -> Puzzle:
    """Build a puzzle by hand; ``hidden`` lists indices, default hides every letter."""
    phrase = phrase.upper()
    if hidden is None:
        hidden = [idx for idx, ch in enumerate(phrase) if ch.isalpha()]
    cells = []
    for idx, ch in enumerate(phrase):
        cell = Cell(char=ch, is_hidden=idx in hidden)
        if cell.is_letter:
            cell.code = letter_code(ch, shift)
        cells.append(cell)
    solution = "".join(c.char for c in cells if c.is_hidden)
    return Puzzle(cells=cells, solution=solution, remaining=solution, points=10, rng=random.Random(seed))


class CipherTests(unittest.TestCase):
    def test_letter_code_adds_shift_without_wraparound(self):
        self.assertEqual(letter_code("A", 0), 1)
        self.assertEqual(letter_code("Z", 0), 26)
        self.assertEqual(letter_code("C", 5), 8)
        self.assertEqual(letter_code("Z", 10), 36)

    def test_superscript_digits_keep_order(self):
        self.assertEqual(to_superscript(8), "⁸")
        self.assertEqual(to_superscript(20), "²⁰")
        self.assertEqual(to_superscript(105), "¹⁰⁵")

    def test_superscript_negative_and_zero(self):
        self.assertEqual(to_superscript(0), "⁰")
        self.assertEqual(to_superscript(-2), "⁻²")
        self.assertEqual(to_superscript(-12), "⁻¹²")

    def test_render_cell_variants(self):
        self.assertEqual(render_cell(Cell(char=" ")), "\n")
        self.assertEqual(render_cell(Cell(char="!")), "")
        self.assertEqual(render_cell(Cell(char="C", is_hidden=True, code=3)), "(_³)")
        self.assertEqual(render_cell(Cell(char="C", is_hidden=True, is_guessed=True, code=3)), "(C³)")
        self.assertEqual(render_cell(Cell(char="C", code=13)), "(C¹³)")


class PuzzleStateTests(unittest.TestCase):
    def test_render_drops_punctuation_and_breaks_on_spaces(self):
        puzzle = make_puzzle("hi there!", hidden=[])
        self.assertEqual(puzzle.render_display(), "(H⁸)(I⁹)\n(T²⁰)(H⁸)(E⁵)(R¹⁸)(E⁵)")

    def test_render_is_repeatable(self):
        puzzle = make_puzzle("cat")
        first = puzzle.render_display()
        self.assertEqual(first, "(_³)(_¹)(_²⁰)")
        self.assertEqual(puzzle.render_display(), first)
        self.assertEqual(puzzle.remaining, "CAT")

    def test_update_state_partial(self):
        puzzle = make_puzzle("cat")
        puzzle.update_state("CA")
        self.assertEqual(puzzle.remaining, "T")
        self.assertEqual(puzzle.render_display(), "(C³)(A¹)(_²⁰)")
        self.assertEqual(puzzle.status, ACTIVE)

    def test_update_state_full_solves(self):
        puzzle = make_puzzle("cat")
        puzzle.update_state("CAT")
        self.assertEqual(puzzle.remaining, "")
        self.assertTrue(puzzle.is_solved)
        self.assertEqual(puzzle.status, SOLVED)
        self.assertEqual(puzzle.solution, "CAT")

    def test_update_state_respects_letter_counts(self):
        puzzle = make_puzzle("book")
        puzzle.update_state("O")
        self.assertEqual(puzzle.remaining, "BOK")
        self.assertEqual(puzzle.render_display(), "(_²)(O¹⁵)(_¹⁵)(_¹¹)")
        self.assertEqual(puzzle.masked_count(), 3)

    def test_update_state_only_touches_hidden_cells(self):
        puzzle = make_puzzle("noon", hidden=[1])
        self.assertEqual(puzzle.solution, "O")
        puzzle.update_state("O")
        guessed = [cell.is_guessed for cell in puzzle.cells]
        self.assertEqual(guessed, [False, True, False, False])

    def test_remaining_tracks_masked_cells(self):
        puzzle = make_puzzle("stay alert out there", seed=3)
        rng = random.Random(11)
        previous = len(puzzle.remaining)
        for _ in range(30):
            guess = "".join(rng.choice("AEHLORSTUYZ") for _ in range(rng.randint(1, 4)))
            puzzle.update_state(guess)
            self.assertLessEqual(len(puzzle.remaining), previous)
            self.assertEqual(len(puzzle.remaining), puzzle.masked_count())
            previous = len(puzzle.remaining)

    def test_reveal_all_unmasks_but_keeps_remaining(self):
        puzzle = make_puzzle("cat")
        puzzle.reveal_all()
        self.assertTrue(all(cell.is_guessed for cell in puzzle.cells))
        self.assertEqual(puzzle.render_display(), "(C³)(A¹)(T²⁰)")
        self.assertEqual(puzzle.remaining, "CAT")
        self.assertEqual(puzzle.status, FORFEITED)

    def test_reveal_random_char_uses_update_path(self):
        puzzle = make_puzzle("cat", seed=5)
        char, ok = puzzle.reveal_random_char()
        self.assertTrue(ok)
        self.assertIn(char, "CAT")
        self.assertEqual(len(puzzle.remaining), 2)
        self.assertNotIn(char, puzzle.remaining)
        self.assertEqual(puzzle.masked_count(), 2)

    def test_reveal_random_char_with_nothing_hidden(self):
        puzzle = make_puzzle("cat")
        puzzle.update_state("CAT")
        before = puzzle.render_display()
        char, ok = puzzle.reveal_random_char()
        self.assertFalse(ok)
        self.assertIsNone(char)
        self.assertEqual(puzzle.render_display(), before)
        self.assertEqual(puzzle.remaining, "")


if __name__ == "__main__":
    unittest.main()
