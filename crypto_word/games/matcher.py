"""Compare a free-text guess against the letters still hidden in a puzzle."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass


@dataclass(frozen=True)
class CheckResult:
    is_correct: bool = False
    is_partial: bool = False
    matched_chars: str = ""

    @property
    def is_miss(self) -> bool:
        return not (self.is_correct or self.is_partial)


MISS = CheckResult()


def check_answer(remaining: str, guess: str) -> CheckResult:
    """Classify ``guess`` against ``remaining``.

    Any guess letter that does not appear in ``remaining`` at all voids the
    whole guess. An exact ordered match solves the round; otherwise letters are
    credited one-for-one against the multiset of ``remaining``.
    """
    guess = guess.upper()

    available = set(remaining)
    if any(ch not in available for ch in guess):
        return MISS

    if guess == remaining:
        return CheckResult(is_correct=True, matched_chars=guess)

    counts = Counter(remaining)
    matched = []
    for ch in guess:
        if counts[ch] > 0:
            matched.append(ch)
            counts[ch] -= 1

    if not matched:
        return MISS
    return CheckResult(is_partial=True, matched_chars="".join(matched))


__all__ = ["CheckResult", "check_answer", "MISS"]
