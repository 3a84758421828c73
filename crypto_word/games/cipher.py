"""Letter codes and superscript rendering for the crypto word puzzle."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .puzzle import Cell

SUPERSCRIPT_DIGITS = {
    "0": "⁰", "1": "¹", "2": "²", "3": "³", "4": "⁴",
    "5": "⁵", "6": "⁶", "7": "⁷", "8": "⁸", "9": "⁹",
}

SUPERSCRIPT_MINUS = "⁻"

LINE_BREAK = "\n"


def letter_code(letter: str, shift: int) -> int:
    """Return the numeric code for an upper-case letter (A=1 .. Z=26) plus ``shift``.

    There is no wraparound: ``Z`` with a shift of 10 is 36.
    """
    return ord(letter) - ord("A") + 1 + shift


def to_superscript(value: int) -> str:
    # a negative fixed shift can push early letters below zero
    sign = SUPERSCRIPT_MINUS if value < 0 else ""
    return sign + "".join(SUPERSCRIPT_DIGITS[digit] for digit in str(abs(value)))


def render_cell(cell: "Cell") -> str:
    if cell.char == " ":
        return LINE_BREAK
    # punctuation is dropped from the board entirely
    if not cell.is_letter:
        return ""
    code = to_superscript(cell.code)
    if cell.is_hidden and not cell.is_guessed:
        return f"(_{code})"
    return f"({cell.char}{code})"


def render_cells(cells: Iterable["Cell"]) -> str:
    return "".join(render_cell(cell) for cell in cells)


__all__ = ["letter_code", "to_superscript", "render_cell", "render_cells", "SUPERSCRIPT_DIGITS", "SUPERSCRIPT_MINUS"]
