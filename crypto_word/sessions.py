"""Chat-to-puzzle session table shared by every incoming update."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional

if TYPE_CHECKING:
    from .games.puzzle import Puzzle


class PuzzleAlreadyActive(Exception):
    """A chat already has a live puzzle and the caller asked not to replace it."""

    def __init__(self, chat_id: str) -> None:
        super().__init__(f"puzzle already active for {chat_id}")
        self.chat_id = chat_id


class SessionTable:
    """At most one puzzle per chat, every access under one re-entrant lock.

    The raw mapping is never handed out. Callers that need to read and mutate a
    puzzle as one step use ``locked(chat_id)``, which holds the lock for the
    whole block so guesses for a chat are applied one at a time.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._puzzles: Dict[str, Puzzle] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._puzzles)

    def __contains__(self, chat_id: object) -> bool:
        with self._lock:
            return chat_id in self._puzzles

    def chat_ids(self) -> List[str]:
        with self._lock:
            return list(self._puzzles.keys())

    def get(self, chat_id: str) -> Optional[Puzzle]:
        with self._lock:
            return self._puzzles.get(chat_id)

    def put(self, chat_id: str, puzzle: Puzzle) -> Optional[Puzzle]:
        """Store ``puzzle`` and return whatever it displaced."""
        with self._lock:
            previous = self._puzzles.get(chat_id)
            self._puzzles[chat_id] = puzzle
            return previous

    def delete(self, chat_id: str) -> Optional[Puzzle]:
        with self._lock:
            return self._puzzles.pop(chat_id, None)

    def compare_and_swap(self, chat_id: str, expected: Optional[Puzzle], new: Optional[Puzzle]) -> bool:
        """Replace the entry only if it is still ``expected`` (identity check).

        ``new=None`` deletes; ``expected=None`` means "only if empty".
        """
        with self._lock:
            if self._puzzles.get(chat_id) is not expected:
                return False
            if new is None:
                self._puzzles.pop(chat_id, None)
            else:
                self._puzzles[chat_id] = new
            return True

    def start(self, chat_id: str, puzzle: Puzzle, *, replace: bool) -> Optional[Puzzle]:
        """Register a new round; refuse with ``PuzzleAlreadyActive`` unless ``replace``."""
        with self._lock:
            previous = self._puzzles.get(chat_id)
            if previous is not None and not replace:
                raise PuzzleAlreadyActive(chat_id)
            self._puzzles[chat_id] = puzzle
            return previous

    @contextmanager
    def locked(self, chat_id: str) -> Iterator[Optional[Puzzle]]:
        with self._lock:
            yield self._puzzles.get(chat_id)


__all__ = ["SessionTable", "PuzzleAlreadyActive"]
