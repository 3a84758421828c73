from __future__ import annotations

from typing import Any, Callable, List, Optional

from unidecode import unidecode

from crypto_word_scores import ALREADY_OWNED, NOT_ENOUGH_POINTS, REVEAL_LETTER, ScoreStore
from crypto_word.replies import PendingReply
from crypto_word.sessions import PuzzleAlreadyActive, SessionTable
from crypto_word.settings import BotSettings

from .engine import ConfigError, PuzzleEngine
from .market import MarketCatalog, MarketItem, default_catalog, render_template
from .matcher import check_answer
from .puzzle import Puzzle


# ----------------------------
# Utility
# ----------------------------

def _format_lines(lines: List[str]) -> str:
    return "\n".join([line.rstrip() for line in lines if line is not None])


SURRENDER_COMMANDS = {"/surrender", "/menyerah"}
SURRENDER_WORDS = {"surrender", "giveup", "stop", "menyerah"}
LEADERBOARD_WORDS = {"top", "leaderboard"}
POWERUP_ALIASES = {"reveal": REVEAL_LETTER, "letter": REVEAL_LETTER}

COMMANDS = {
    "/crypto", "/guess", "/score", "/leaderboard", "/powerups", "/market", "/profile", *SURRENDER_COMMANDS,
}


class CryptoGameManager:
    """Command dispatcher for the crypto word puzzle.

    Every read-modify-write of a chat's puzzle happens inside
    ``SessionTable.locked`` so guesses for one chat are applied in arrival
    order. Score updates run after the lock is released.
    """

    def __init__(
        self,
        *,
        engine: PuzzleEngine,
        sessions: SessionTable,
        scores: ScoreStore,
        clean_log: Callable[..., None],
        settings: Optional[BotSettings] = None,
        catalog: Optional[MarketCatalog] = None,
    ) -> None:
        self.engine = engine
        self.sessions = sessions
        self.scores = scores
        self.clean_log = clean_log
        self.settings = settings or BotSettings()
        self.catalog = catalog or default_catalog()

    # ------------------------
    # Transport hooks
    # ------------------------
    def attach_message_ref(self, chat_key: str, ref: Any) -> bool:
        with self.sessions.locked(chat_key) as puzzle:
            if puzzle is None:
                return False
            puzzle.external_message_ref = ref
            return True

    def message_ref(self, chat_key: str) -> Any:
        with self.sessions.locked(chat_key) as puzzle:
            return puzzle.external_message_ref if puzzle is not None else None

    def has_active_puzzle(self, chat_key: str) -> bool:
        return chat_key in self.sessions

    # ------------------------
    # Public dispatcher
    # ------------------------
    def handle_command(
        self,
        cmd: str,
        arguments: str,
        chat_key: str,
        sender_key: str,
        sender_short: str,
        is_private: bool,
    ) -> PendingReply:
        cmd = cmd.lower()
        args = (arguments or "").strip()
        arg_lower = args.lower()

        if cmd in SURRENDER_COMMANDS:
            return self._surrender(chat_key, sender_short)
        if cmd == "/score":
            return self._score(sender_key, sender_short)
        if cmd == "/leaderboard":
            return self._leaderboard()
        if cmd == "/profile":
            return self._profile(sender_key, sender_short)
        if cmd == "/market":
            return self._market(sender_key, sender_short, arg_lower)
        if cmd == "/guess":
            return self._explicit_guess(chat_key, sender_key, sender_short, args)
        if cmd == "/powerups":
            if arg_lower == "reveal":
                return self._use_reveal(chat_key, sender_key, sender_short)
            if arg_lower.startswith("buy"):
                return self._buy(sender_key, sender_short, arg_lower[3:].strip() or REVEAL_LETTER)
            return self._powerups_menu(sender_key)
        if cmd != "/crypto":
            return PendingReply("Command not recognized.", "crypto")

        parts = args.split(None, 1)
        sub = parts[0].lower() if parts else ""
        rest = parts[1].strip() if len(parts) > 1 else ""

        if not sub or sub == "start":
            difficulty = rest.lower() or self.settings.default_difficulty
            return self._start(chat_key, sender_short, difficulty, is_private)
        if sub == "status":
            return self._status(chat_key)
        if sub == "guess":
            return self._explicit_guess(chat_key, sender_key, sender_short, rest)
        if sub in SURRENDER_WORDS:
            return self._surrender(chat_key, sender_short)
        if sub == "reveal":
            return self._use_reveal(chat_key, sender_key, sender_short)
        if sub == "buy":
            return self._buy(sender_key, sender_short, rest.lower())
        if sub == "market":
            return self._market(sender_key, sender_short, rest.lower())
        if sub == "profile":
            return self._profile(sender_key, sender_short)
        if sub == "score":
            return self._score(sender_key, sender_short)
        if sub in LEADERBOARD_WORDS:
            return self._leaderboard()
        if sub == "help":
            return self._help()
        return self._start(chat_key, sender_short, sub, is_private)

    def handle_guess(self, chat_key: str, sender_key: str, sender_short: str, text: str) -> Optional[PendingReply]:
        """Score a free-text guess. Returns None when the chat has no puzzle."""
        guess = unidecode(text or "").strip()
        if not guess:
            return None

        with self.sessions.locked(chat_key) as puzzle:
            if puzzle is None:
                return None
            result = check_answer(puzzle.remaining, guess)
            if result.is_miss:
                return PendingReply("❌ No match. Check the numbers and try again.", "crypto guess")
            puzzle.update_state(result.matched_chars)
            board = puzzle.render_display()
            remaining = len(puzzle.remaining)
            if puzzle.is_solved:
                self.sessions.delete(chat_key)

        if remaining == 0:
            return self._award(puzzle, sender_key, sender_short, board)

        letters = " ".join(result.matched_chars)
        lines = [f"✅ Found: {letters}", f"{remaining} letter{'s' if remaining != 1 else ''} still hidden."]
        return PendingReply(_format_lines(lines), "crypto guess", board=board, track_board=True)

    # ------------------------
    # Round lifecycle
    # ------------------------
    def _start(self, chat_key: str, sender_short: str, difficulty: str, is_private: bool) -> PendingReply:
        replace = self.settings.replaces_active(is_private)
        if not replace and self.has_active_puzzle(chat_key):
            return self._already_active()

        try:
            puzzle = self.engine.generate(difficulty)
        except ConfigError as exc:
            self.clean_log(f"Crypto puzzle generation failed for '{difficulty}': {exc}", "⚠️")
            return PendingReply("⚠️ Couldn't build a puzzle right now. Try again later.", "crypto start")

        if puzzle.is_solved:
            self.clean_log(f"Crypto phrase for '{puzzle.difficulty}' has nothing to hide", "⚠️")
            return PendingReply(
                _format_lines(["🔐 That phrase had nothing to hide. Try `/crypto` again."]),
                "crypto start",
                board=puzzle.render_display(),
            )

        try:
            previous = self.sessions.start(chat_key, puzzle, replace=replace)
        except PuzzleAlreadyActive:
            return self._already_active()
        if previous is not None:
            self.clean_log(f"Crypto puzzle in {chat_key} replaced by {sender_short}", "♻️")
        self.clean_log(f"Crypto puzzle ({puzzle.difficulty}) started in {chat_key} by {sender_short}", "🔐")

        hidden = len(puzzle.solution)
        how_to = "Reply with letters or the whole answer." if is_private else "Reply to the puzzle or use `/guess <letters>`."
        lines = [
            f"🔐 New crypto puzzle ({puzzle.difficulty}) — {hidden} hidden letter{'s' if hidden != 1 else ''}, {puzzle.points} pts.",
            "Each letter shows its number code. Find the hidden ones!",
            how_to,
        ]
        return PendingReply(_format_lines(lines), "crypto start", board=puzzle.render_display(), track_board=True)

    def _already_active(self) -> PendingReply:
        return PendingReply(
            "⏳ A puzzle is already running here. Solve it or `/crypto surrender` first.",
            "crypto start",
        )

    def _no_active(self, reason: str) -> PendingReply:
        return PendingReply("No active puzzle. Start one with `/crypto`.", reason)

    def _status(self, chat_key: str) -> PendingReply:
        with self.sessions.locked(chat_key) as puzzle:
            if puzzle is None:
                return self._no_active("crypto status")
            board = puzzle.render_display()
            remaining = len(puzzle.remaining)
            lines = [f"🔐 Crypto puzzle ({puzzle.difficulty}) — {remaining} letter{'s' if remaining != 1 else ''} still hidden."]
        return PendingReply(_format_lines(lines), "crypto status", board=board, track_board=True)

    def _explicit_guess(self, chat_key: str, sender_key: str, sender_short: str, text: str) -> PendingReply:
        if not text.strip():
            return PendingReply("Use `/guess <letters or answer>`.", "crypto guess")
        reply = self.handle_guess(chat_key, sender_key, sender_short, text)
        if reply is None:
            return self._no_active("crypto guess")
        return reply

    def _surrender(self, chat_key: str, sender_short: str) -> PendingReply:
        with self.sessions.locked(chat_key) as puzzle:
            if puzzle is None:
                return self._no_active("crypto surrender")
            self.sessions.delete(chat_key)
            puzzle.reveal_all()
            board = puzzle.render_display()
        self.clean_log(f"Crypto puzzle in {chat_key} forfeited by {sender_short}", "🏳️")
        lines = [f"🏳️ Puzzle surrendered. Hidden letters: {puzzle.solution}", "`/crypto` for a new one."]
        return PendingReply(_format_lines(lines), "crypto surrender", board=board)

    def _award(self, puzzle: Puzzle, sender_key: str, sender_short: str, board: str) -> PendingReply:
        points = puzzle.points
        total: Optional[int] = None
        try:
            total = self.scores.add_points(sender_key, points, name=sender_short)
        except (OSError, ValueError) as exc:
            self.clean_log(f"Score update failed for {sender_short}: {exc}", "⚠️")
        self.clean_log(f"Crypto puzzle solved by {sender_short} (+{points})", "🎉")
        lines = [f"🎉 Solved by {sender_short}! +{points} pts."]
        if total is not None:
            lines.append(f"Total score: {total}")
        lines.append("`/crypto` for another.")
        return PendingReply(_format_lines(lines), "crypto solved", board=board)

    # ------------------------
    # Power-ups
    # ------------------------
    def _store_failed(self, reason: str, action: str, exc: Exception) -> PendingReply:
        self.clean_log(f"Score store write failed during {action}: {exc}", "⚠️", rate_limit=False)
        return PendingReply("⚠️ Couldn't save that right now. Nothing was charged, try again later.", reason)

    def _reveal_name(self) -> str:
        item = self.catalog.powerup(REVEAL_LETTER)
        return item.name if item else "Reveal Letter"

    def _use_reveal(self, chat_key: str, sender_key: str, sender_short: str) -> PendingReply:
        if not self.has_active_puzzle(chat_key):
            return self._no_active("crypto reveal")
        # take the power-up first so two reveals can never share one
        try:
            left = self.scores.consume_powerup(sender_key, REVEAL_LETTER)
        except (OSError, ValueError) as exc:
            return self._store_failed("crypto reveal", "reveal", exc)
        if left is None:
            return PendingReply(
                f"🔎 No {self._reveal_name()} power-ups left. Buy one with `/crypto buy reveal`.",
                "crypto reveal",
            )

        char: Optional[str] = None
        ok = False
        found = False
        with self.sessions.locked(chat_key) as puzzle:
            if puzzle is not None:
                found = True
                char, ok = puzzle.reveal_random_char()
                if ok:
                    board = puzzle.render_display()
                    remaining = len(puzzle.remaining)
                    if puzzle.is_solved:
                        self.sessions.delete(chat_key)

        if not ok:
            try:
                self.scores.adjust_powerup(sender_key, REVEAL_LETTER, 1)
            except (OSError, ValueError) as exc:
                self.clean_log(f"Could not refund Reveal Letter to {sender_short}: {exc}", "⚠️", rate_limit=False)
            if not found:
                return self._no_active("crypto reveal")
            return PendingReply("🔎 Nothing left to reveal.", "crypto reveal")

        self.clean_log(f"Reveal Letter used by {sender_short} in {chat_key}: {char}", "🔎")
        lines = [f"🔎 Revealed: {char} ({left} power-up{'s' if left != 1 else ''} left)"]
        if remaining == 0:
            lines.append("That was the last letter. No points for a power-up finish. `/crypto` for another.")
            return PendingReply(_format_lines(lines), "crypto reveal", board=board)
        return PendingReply(_format_lines(lines), "crypto reveal", board=board, track_board=True)

    def _buy(self, sender_key: str, sender_short: str, what: str) -> PendingReply:
        parts = what.split(None, 1)
        kind = parts[0] if parts else ""
        if kind == "theme":
            theme_id = parts[1].strip() if len(parts) > 1 else ""
            return self._buy_theme(sender_key, sender_short, theme_id)
        powerup_id = POWERUP_ALIASES.get(kind, kind or REVEAL_LETTER)
        item = self.catalog.powerup(powerup_id)
        if item is None:
            return PendingReply("🛒 That isn't sold here. See `/crypto market`.", "crypto buy")
        return self._buy_powerup(sender_key, sender_short, item)

    def _buy_powerup(self, sender_key: str, sender_short: str, item: MarketItem) -> PendingReply:
        try:
            bought = self.scores.buy_powerup(sender_key, item.id, item.price)
        except (OSError, ValueError) as exc:
            return self._store_failed("crypto buy", f"{item.id} purchase", exc)
        if bought is None:
            have = self.scores.get_score(sender_key)
            return PendingReply(f"💸 Not enough points. {item.name} costs {item.price}, you have {have}.", "crypto buy")
        total, count = bought
        self.clean_log(f"{sender_short} bought {item.name} ({item.price} pts)", "🛒")
        return PendingReply(
            f"🛒 Bought 1 {item.name}. You now have {count}. Score: {total}",
            "crypto buy",
        )

    def _buy_theme(self, sender_key: str, sender_short: str, theme_id: str) -> PendingReply:
        item = self.catalog.theme(theme_id)
        if item is None:
            return PendingReply("🎨 Unknown theme. See `/crypto market` for the list.", "crypto buy")
        try:
            status, score = self.scores.buy_theme(sender_key, item.id, item.price)
        except (OSError, ValueError) as exc:
            return self._store_failed("crypto buy", f"theme {item.id} purchase", exc)
        if status == ALREADY_OWNED:
            return PendingReply(f"🎨 {item.name} is already your profile theme.", "crypto buy")
        if status == NOT_ENOUGH_POINTS:
            return PendingReply(f"💸 Not enough points. {item.name} costs {item.price}, you have {score}.", "crypto buy")
        self.clean_log(f"{sender_short} bought theme {item.id} ({item.price} pts)", "🎨")
        return PendingReply(f"🎨 {item.name} is now your profile theme. Score: {score}. See `/profile`.", "crypto buy")

    def _powerups_menu(self, sender_key: str) -> PendingReply:
        lines = ["🎒 Your power-ups"]
        for item in self.catalog.powerups:
            count = self.scores.powerup_count(sender_key, item.id)
            lines.append(f"• {item.name}: {count} ({item.price} pts each)")
        lines.append("`/powerups reveal` uses one, `/powerups buy` buys one.")
        return PendingReply(_format_lines(lines), "crypto powerups")

    # ------------------------
    # Market and profile
    # ------------------------
    def _market(self, sender_key: str, sender_short: str, theme_id: str) -> PendingReply:
        if theme_id:
            return self._preview_theme(sender_key, sender_short, theme_id)
        current = self.scores.get_theme(sender_key)
        lines = [f"🛍️ Market (you have {self.scores.get_score(sender_key)} pts)"]
        themes = self.catalog.themes_for_sale()
        if themes:
            lines.append("Themes:")
            for item in themes:
                mark = " ✓" if item.id == current else ""
                lines.append(f"• {item.id}: {item.name} ({item.price} pts){mark}")
        if self.catalog.powerups:
            lines.append("Power-ups:")
            for item in self.catalog.powerups:
                lines.append(f"• {item.id}: {item.name} ({item.price} pts)")
        lines.append("`/crypto market <theme>` to preview, `/crypto buy theme <theme>` or `/crypto buy <power-up>`.")
        return PendingReply(_format_lines(lines), "crypto market")

    def _preview_theme(self, sender_key: str, sender_short: str, theme_id: str) -> PendingReply:
        item = self.catalog.theme(theme_id)
        if item is None:
            return PendingReply("🎨 Unknown theme. See `/crypto market` for the list.", "crypto market")
        preview = self._render_profile(item, sender_key, sender_short)
        lines = [f"🎨 {item.name} ({item.price} pts)"]
        if item.description:
            lines.append(item.description)
        lines.extend(["Preview:", preview])
        if self.scores.get_theme(sender_key) == item.id:
            lines.append("You already use this theme.")
        else:
            lines.append(f"`/crypto buy theme {item.id}` to buy it.")
        return PendingReply(_format_lines(lines), "crypto market")

    def _render_profile(self, item: MarketItem, sender_key: str, sender_short: str) -> str:
        rank = self.scores.rank(sender_key)
        return render_template(
            item.template or self.catalog.profile_theme(None).template,
            name=sender_short,
            score=self.scores.get_score(sender_key),
            rank=rank if rank is not None else "-",
        )

    def _profile(self, sender_key: str, sender_short: str) -> PendingReply:
        item = self.catalog.profile_theme(self.scores.get_theme(sender_key))
        return PendingReply(self._render_profile(item, sender_key, sender_short), "crypto profile")

    # ------------------------
    # Scores
    # ------------------------
    def _score(self, sender_key: str, sender_short: str) -> PendingReply:
        score = self.scores.get_score(sender_key)
        count = self.scores.powerup_count(sender_key, REVEAL_LETTER)
        return PendingReply(f"🏅 {sender_short}: {score} pts · {self._reveal_name()} x{count}", "crypto score")

    def _leaderboard(self) -> PendingReply:
        rows = self.scores.top(self.settings.leaderboard_size)
        if not rows:
            return PendingReply("🏆 No scores yet. Solve a `/crypto` puzzle to get on the board!", "crypto top")
        lines = ["🏆 Crypto leaderboard"]
        for rank, row in enumerate(rows, start=1):
            lines.append(f"{rank}. {row['name']} — {row['score']}")
        return PendingReply(_format_lines(lines), "crypto top")

    def _help(self) -> PendingReply:
        names = ", ".join(self.engine.difficulty_names()) or "easy"
        lines = [
            "🔐 Crypto Word",
            "",
            f"• /crypto [{names}] — start a puzzle",
            "• /crypto status — show the board again",
            "• /guess <letters> — guess hidden letters or the whole answer",
            "• /crypto surrender — give up and reveal the answer",
            "• /crypto reveal · /crypto buy reveal — power-ups",
            "• /crypto market · /crypto buy theme <id> — spend points on themes",
            "• /profile · /score · /leaderboard",
            "",
            "Letters are numbered A=1 … Z=26 plus a shift. Hidden ones show as (_ⁿ).",
        ]
        return PendingReply(_format_lines(lines), "crypto help")


__all__ = ["CryptoGameManager", "COMMANDS"]
