"""User-message formatting for coach requests."""

from __future__ import annotations


def side_name(turn: str) -> str:
    return "White" if turn == "w" else "Black"


def build_position_prompt(fen: str, last_move: str | None, turn: str) -> str:
    """Describe the position the coach should comment on.

    ``last_move`` is None before the first move; the prompt says so
    explicitly rather than leaving the line out.
    """
    lines = [
        f"Current Chess Position (FEN): {fen}",
        f"Last move played: {last_move or 'None'}",
        f"It is {side_name(turn)}'s turn.",
    ]
    return "\n".join(lines)
