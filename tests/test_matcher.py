from __future__ import annotations

import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from crypto_word.games.matcher import MISS, CheckResult, check_answer


class CheckAnswerTests(unittest.TestCase):
    def test_foreign_letters_miss(self):
        result = check_answer("CAT", "DOG")
        self.assertEqual(result, MISS)
        self.assertFalse(result.is_correct)
        self.assertFalse(result.is_partial)
        self.assertTrue(result.is_miss)

    def test_one_foreign_letter_voids_whole_guess(self):
        self.assertEqual(check_answer("CAT", "CAX"), MISS)

    def test_exact_match_is_case_insensitive(self):
        self.assertEqual(check_answer("CAT", "cat"), CheckResult(is_correct=True, matched_chars="CAT"))

    def test_partial_match(self):
        self.assertEqual(check_answer("CAT", "CA"), CheckResult(is_partial=True, matched_chars="CA"))

    def test_wrong_order_is_partial_with_every_letter(self):
        result = check_answer("CAT", "TAC")
        self.assertFalse(result.is_correct)
        self.assertTrue(result.is_partial)
        self.assertEqual(result.matched_chars, "TAC")

    def test_repeated_letters_only_credit_available_copies(self):
        result = check_answer("CAT", "CCA")
        self.assertTrue(result.is_partial)
        self.assertEqual(result.matched_chars, "CA")

    def test_check_is_pure(self):
        remaining = "BOOK"
        first = check_answer(remaining, "oo")
        second = check_answer(remaining, "oo")
        self.assertEqual(first, second)
        self.assertEqual(first.matched_chars, "OO")
        self.assertEqual(remaining, "BOOK")

    def test_spaces_count_as_foreign(self):
        self.assertEqual(check_answer("CAT", "C A"), MISS)


if __name__ == "__main__":
    unittest.main()
