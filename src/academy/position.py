"""Immutable game position snapshots and the adapter that produces them.

Every accepted move, undo or reset yields a brand new :class:`GamePosition`.
The adapter never touches the snapshot it was given: it rebuilds an engine
from the serialized position, tries the move there, and only builds a new
snapshot when the engine accepts it.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from academy.rules import ChessRules, LegalDestination, MoveRecord, Piece, RulesEngine

# Standard per-side starting material, in display order.
STARTING_COUNTS: dict[str, int] = {"p": 8, "r": 2, "n": 2, "b": 2, "q": 1, "k": 1}


@dataclass(frozen=True)
class GamePosition:
    fen: str
    turn: str
    history: tuple[str, ...]
    moves: tuple[MoveRecord, ...]
    fens: tuple[str, ...]       # serialized position before each ply
    is_check: bool
    is_checkmate: bool
    is_draw: bool
    captured: dict[str, tuple[str, ...]]

    @property
    def last_move(self) -> MoveRecord | None:
        return self.moves[-1] if self.moves else None

    @property
    def last_san(self) -> str | None:
        return self.history[-1] if self.history else None

    @property
    def status(self) -> str:
        if self.is_checkmate:
            return "checkmate"
        if self.is_draw:
            return "draw"
        if self.is_check:
            return "check"
        return "playing"


def captured_pieces(pieces: Iterable[Piece]) -> dict[str, tuple[str, ...]]:
    """Piece types each side is missing compared to the starting set.

    Promoted pieces can push a count above its starting value; those types
    simply contribute nothing.
    """
    counts = {"w": Counter(), "b": Counter()}
    for piece in pieces:
        counts[piece.color][piece.type] += 1
    return {
        color: tuple(
            ptype
            for ptype, start in STARTING_COUNTS.items()
            for _ in range(max(0, start - counts[color][ptype]))
        )
        for color in ("w", "b")
    }


def _repetition_key(fen: str) -> str:
    # Placement, side to move, castling and en passant; clocks excluded.
    return " ".join(fen.split()[:4])


class RulesAdapter:
    """Snapshot-in, snapshot-out wrapper around a :class:`RulesEngine`."""

    def __init__(self, rules: type[RulesEngine] = ChessRules):
        self._rules = rules

    def new_game(self) -> GamePosition:
        return self._snapshot(self._rules.starting(), (), (), ())

    def attempt(
        self,
        position: GamePosition,
        origin: str,
        destination: str,
        promotion: str | None = None,
    ) -> GamePosition | None:
        """Try a move on a copy of ``position``.  None if the engine rejects it."""
        engine = self._rules.from_fen(position.fen)
        record = engine.attempt_move(origin, destination, promotion)
        if record is None:
            return None
        return self._snapshot(
            engine,
            position.history + (record.san,),
            position.moves + (record,),
            position.fens + (position.fen,),
        )

    def undo(self, position: GamePosition) -> GamePosition:
        """Position before the last ply; the same snapshot if there is none."""
        if not position.history:
            return position
        engine = self._rules.from_fen(position.fens[-1])
        return self._snapshot(
            engine, position.history[:-1], position.moves[:-1], position.fens[:-1]
        )

    def destinations(self, position: GamePosition, origin: str) -> list[LegalDestination]:
        return self._rules.from_fen(position.fen).legal_moves(origin)

    def piece_at(self, position: GamePosition, square: str) -> Piece | None:
        return self._rules.from_fen(position.fen).piece_at(square)

    def _snapshot(
        self,
        engine: RulesEngine,
        history: tuple[str, ...],
        moves: tuple[MoveRecord, ...],
        fens: tuple[str, ...],
    ) -> GamePosition:
        fen = engine.fen()
        key = _repetition_key(fen)
        repeated = 1 + sum(1 for f in fens if _repetition_key(f) == key)
        return GamePosition(
            fen=fen,
            turn=engine.turn,
            history=history,
            moves=moves,
            fens=fens,
            is_check=engine.is_check(),
            is_checkmate=engine.is_checkmate(),
            is_draw=engine.is_draw() or repeated >= 3,
            captured=captured_pieces(engine.pieces()),
        )
