"""Chess rules capability interface and its python-chess implementation.

Nothing in the academy implements chess rules itself.  Everything that
needs legality, move generation or game-end detection goes through
:class:`RulesEngine`, so a different rules library can be dropped in
without touching the session or the coach.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass

import chess


@dataclass(frozen=True)
class Piece:
    color: str  # "w" or "b"
    type: str   # "p", "n", "b", "r", "q", "k"


@dataclass(frozen=True)
class MoveRecord:
    """An accepted move, as reported by the engine."""
    origin: str
    destination: str
    uci: str
    san: str


@dataclass(frozen=True)
class LegalDestination:
    square: str
    is_capture: bool


class RulesEngine(abc.ABC):
    """A single mutable chess position backed by some rules library."""

    @classmethod
    @abc.abstractmethod
    def starting(cls) -> RulesEngine:
        """Engine holding the standard starting position."""

    @classmethod
    @abc.abstractmethod
    def from_fen(cls, fen: str) -> RulesEngine:
        """Engine holding the given position.  Raises ValueError on bad FEN."""

    @abc.abstractmethod
    def attempt_move(
        self, origin: str, destination: str, promotion: str | None = None
    ) -> MoveRecord | None:
        """Apply the move if legal.  Returns None (and changes nothing) otherwise."""

    @abc.abstractmethod
    def legal_moves(self, origin: str) -> list[LegalDestination]:
        """Legal destinations for the piece on ``origin``."""

    @abc.abstractmethod
    def undo(self) -> bool:
        """Take back the last ply made on this engine.  False if there is none."""

    @abc.abstractmethod
    def piece_at(self, square: str) -> Piece | None: ...

    @abc.abstractmethod
    def pieces(self) -> list[Piece]: ...

    @property
    @abc.abstractmethod
    def turn(self) -> str: ...

    @abc.abstractmethod
    def is_check(self) -> bool: ...

    @abc.abstractmethod
    def is_checkmate(self) -> bool: ...

    @abc.abstractmethod
    def is_draw(self) -> bool: ...

    @abc.abstractmethod
    def fen(self) -> str: ...


_PROMOTIONS = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


def _parse_square(name: str) -> chess.Square | None:
    try:
        return chess.parse_square(name)
    except (ValueError, TypeError):
        return None


def _color(color: chess.Color) -> str:
    return "w" if color == chess.WHITE else "b"


class ChessRules(RulesEngine):
    """RulesEngine on top of python-chess."""

    def __init__(self, board: chess.Board):
        self._board = board

    @classmethod
    def starting(cls) -> ChessRules:
        return cls(chess.Board())

    @classmethod
    def from_fen(cls, fen: str) -> ChessRules:
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise ValueError(f"Invalid FEN: {fen}") from e
        return cls(board)

    def attempt_move(
        self, origin: str, destination: str, promotion: str | None = None
    ) -> MoveRecord | None:
        from_sq = _parse_square(origin)
        to_sq = _parse_square(destination)
        if from_sq is None or to_sq is None:
            return None

        piece = self._board.piece_at(from_sq)
        if piece is None or piece.color != self._board.turn:
            return None

        promo = None
        if piece.piece_type == chess.PAWN and chess.square_rank(to_sq) in (0, 7):
            promo = _PROMOTIONS.get((promotion or "q").lower())
            if promo is None:
                return None

        move = chess.Move(from_sq, to_sq, promotion=promo)
        if not self._board.is_legal(move):
            return None

        san = self._board.san(move)
        self._board.push(move)
        return MoveRecord(
            origin=chess.square_name(from_sq),
            destination=chess.square_name(to_sq),
            uci=move.uci(),
            san=san,
        )

    def legal_moves(self, origin: str) -> list[LegalDestination]:
        from_sq = _parse_square(origin)
        if from_sq is None:
            return []
        seen: dict[str, LegalDestination] = {}
        # Under-promotions share a destination square; keep one entry each.
        for move in self._board.legal_moves:
            if move.from_square != from_sq:
                continue
            name = chess.square_name(move.to_square)
            if name not in seen:
                seen[name] = LegalDestination(name, self._board.is_capture(move))
        return list(seen.values())

    def undo(self) -> bool:
        if not self._board.move_stack:
            return False
        self._board.pop()
        return True

    def piece_at(self, square: str) -> Piece | None:
        sq = _parse_square(square)
        if sq is None:
            return None
        piece = self._board.piece_at(sq)
        if piece is None:
            return None
        return Piece(_color(piece.color), chess.piece_symbol(piece.piece_type))

    def pieces(self) -> list[Piece]:
        return [
            Piece(_color(p.color), chess.piece_symbol(p.piece_type))
            for p in self._board.piece_map().values()
        ]

    @property
    def turn(self) -> str:
        return _color(self._board.turn)

    def is_check(self) -> bool:
        return self._board.is_check()

    def is_checkmate(self) -> bool:
        return self._board.is_checkmate()

    def is_draw(self) -> bool:
        b = self._board
        return (
            b.is_stalemate()
            or b.is_insufficient_material()
            or b.is_fifty_moves()
            or b.is_repetition(3)
        )

    def fen(self) -> str:
        return self._board.fen()
