from dataclasses import dataclass
from typing import Optional


@dataclass
class PendingReply:
    text: str
    reason: str = "command"
    # rendered puzzle board, sent as its own message after ``text``
    board: Optional[str] = None
    # report the board's message ref back so replies to it count as guesses
    track_board: bool = False
    chunk_delay: Optional[float] = None
