"""
Move-list scanning helpers.

Move lists are space-separated SAN tokens. Side attribution is by token
index parity (even = White, odd = Black), which assumes strict alternation:
a move list with a missing ply silently credits the wrong side.
"""

from dataclasses import dataclass

KING_CASTLING_TOKENS = {"O-O", "O-O-O"}


@dataclass(frozen=True)
class KingMoves:
    """King moves made by each side in one game."""

    white: int = 0
    black: int = 0


def is_king_move(token: str) -> bool:
    """Castling or a move of the K piece."""
    return token in KING_CASTLING_TOKENS or token.startswith("K")


def count_king_moves(moves: str | None) -> KingMoves:
    """
    Count king moves per side.

    >>> count_king_moves("e4 e5 Nf3 Nc6 O-O Kd8")
    KingMoves(white=1, black=1)
    """
    if not moves:
        return KingMoves()

    white = 0
    black = 0
    for index, token in enumerate(moves.split()):
        if not is_king_move(token):
            continue
        if index % 2 == 0:
            white += 1
        else:
            black += 1

    return KingMoves(white=white, black=black)


def move_count(moves: str | None) -> int:
    """Number of plies in a move list."""
    if not moves:
        return 0
    return len(moves.split())


def first_move(moves: str | None) -> str | None:
    """White's first move, or None for an empty move list."""
    if not moves:
        return None
    tokens = moves.split()
    return tokens[0] if tokens else None
