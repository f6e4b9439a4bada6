from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from academy.advice import FALLBACK_ADVICE, CoachAdvice
from academy.llm import ChessCoach
from academy.position import GamePosition, RulesAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Click-to-move state: the picked-up square and its highlighted targets."""
    origin: str | None = None
    highlights: dict[str, str] = field(default_factory=dict)  # square -> "selected" | "move" | "capture"


class TutorSession:
    """One player's board, advice panel and gesture state.

    All board changes happen synchronously.  Advice is fetched in a
    background task stamped with a sequence number; only the result for
    the latest number is kept, so a slow reply for an earlier position
    can never overwrite the panel.
    """

    def __init__(
        self,
        coach: ChessCoach | None = None,
        adapter: RulesAdapter | None = None,
    ):
        self._coach = coach
        self._adapter = adapter or RulesAdapter()
        self.position: GamePosition = self._adapter.new_game()
        self.advice: CoachAdvice | None = None
        self.selection = Selection()
        self._advice_seq = 0
        self._pending: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def coach_thinking(self) -> bool:
        return self._pending is not None and not self._pending.done()

    # --- Gestures ---

    def try_move(
        self, origin: str, destination: str, promotion: str | None = None
    ) -> bool:
        """Shared entry point for drag-and-drop and click-to-move."""
        result = self._adapter.attempt(self.position, origin, destination, promotion)
        if result is None:
            return False
        self.position = result
        self.selection = Selection()
        self._request_advice()
        return True

    def drop(self, source: str, target: str, promotion: str | None = None) -> bool:
        return self.try_move(source, target, promotion)

    def click(self, square: str) -> bool:
        """Handle a square click.  Returns True if it completed a move."""
        if self.selection.origin is not None:
            if self.try_move(self.selection.origin, square):
                return True

        # Not a move: the click may pick up (or switch to) a friendly piece.
        piece = self._adapter.piece_at(self.position, square)
        if piece is not None and piece.color == self.position.turn:
            self.selection = self._select(square)
        else:
            self.selection = Selection()
        return False

    def undo(self) -> None:
        self.position = self._adapter.undo(self.position)
        self.selection = Selection()
        self._clear_advice()

    def reset(self) -> None:
        self.position = self._adapter.new_game()
        self.selection = Selection()
        self._clear_advice()

    def _select(self, square: str) -> Selection:
        highlights = {
            d.square: "capture" if d.is_capture else "move"
            for d in self._adapter.destinations(self.position, square)
        }
        highlights[square] = "selected"
        return Selection(origin=square, highlights=highlights)

    # --- Advice ---

    def _clear_advice(self) -> None:
        self._advice_seq += 1
        self._pending = None
        self.advice = None

    def _request_advice(self) -> None:
        self._advice_seq += 1
        self.advice = None
        self._pending = None
        if self._coach is None:
            return
        pos = self.position
        task = asyncio.get_running_loop().create_task(
            self._fetch_advice(self._advice_seq, pos.fen, pos.last_san, pos.turn)
        )
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch_advice(
        self, seq: int, fen: str, last_move: str | None, turn: str
    ) -> None:
        try:
            advice = await self._coach.get_advice(fen, last_move, turn)
        except Exception as e:
            logger.error("Coach advice failed: %s", type(e).__name__)
            advice = FALLBACK_ADVICE
        if seq != self._advice_seq:
            logger.debug("Discarding stale advice #%d (latest #%d)", seq, self._advice_seq)
            return
        self.advice = advice

    async def wait_for_advice(self) -> None:
        """Wait until every advice request issued so far has finished.

        For callers that need the advice panel settled before reading it.
        """
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    # --- Rendering ---

    def view(self) -> dict:
        pos = self.position
        last = pos.last_move
        return {
            "fen": pos.fen,
            "turn": pos.turn,
            "status": pos.status,
            "is_check": pos.is_check,
            "is_checkmate": pos.is_checkmate,
            "is_draw": pos.is_draw,
            "last_move": {"from": last.origin, "to": last.destination} if last else None,
            "history": list(pos.history),
            "journal": [f"{i // 2 + 1}. {san}" for i, san in enumerate(pos.history)],
            "captured": {color: list(types) for color, types in pos.captured.items()},
            "selected": self.selection.origin,
            "highlights": dict(self.selection.highlights),
            "advice": self.advice.to_dict() if self.advice else None,
            "coach_thinking": self.coach_thinking,
        }


class SessionManager:
    def __init__(self, coach: ChessCoach | None = None):
        self._coach = coach
        self._sessions: dict[str, TutorSession] = {}

    def new_session(self) -> tuple[str, TutorSession]:
        """Create a session at the starting position. Returns (session_id, session)."""
        session_id = str(uuid.uuid4())
        session = TutorSession(coach=self._coach)
        self._sessions[session_id] = session
        return session_id, session

    def get(self, session_id: str) -> TutorSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Session not found: {session_id}")
        return session
