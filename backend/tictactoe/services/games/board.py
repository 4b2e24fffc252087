from enum import Enum
from typing import List, Optional, Sequence, Tuple


class Mark(Enum):
    X = 'X'
    O = 'O'

    def opposite(self) -> "Mark":
        return Mark.O if self is Mark.X else Mark.X


Cell = Optional[Mark]
Board = Sequence[Cell]

BOARD_CELLS = 9

# Row-major indices: rows, then columns, then diagonals
WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


def empty_board() -> List[Cell]:
    return [None] * BOARD_CELLS


def find_winning_line(board: Board) -> Optional[Tuple[int, int, int]]:
    """Return the first line holding three equal marks, or None.

    Lines are checked in WINNING_LINES order, so a malformed board with
    several complete lines reports the earliest one.
    """
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] is not None and board[a] == board[b] == board[c]:
            return line
    return None


def calculate_winner(board: Board) -> Optional[Mark]:
    """Winning mark for the board, or None. Does not decide draws."""
    line = find_winning_line(board)
    if line is None:
        return None
    return board[line[0]]


def filled_count(board: Board) -> int:
    return sum(1 for cell in board if cell is not None)


def is_full(board: Board) -> bool:
    return filled_count(board) == len(board)
