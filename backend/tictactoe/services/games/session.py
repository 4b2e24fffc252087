import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .board import (
    BOARD_CELLS,
    Board,
    Cell,
    Mark,
    calculate_winner,
    empty_board,
    filled_count,
    find_winning_line,
    is_full,
)


class OutcomeKind(Enum):
    IN_PROGRESS = 'in_progress'
    WIN = 'win'
    DRAW = 'draw'


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    winner: Optional[Mark] = None

    @property
    def is_over(self) -> bool:
        return self.kind is not OutcomeKind.IN_PROGRESS


IN_PROGRESS = Outcome(OutcomeKind.IN_PROGRESS)
DRAW = Outcome(OutcomeKind.DRAW)


def outcome_for(board: Board) -> Outcome:
    """Derive the outcome: a win beats a full board."""
    winner = calculate_winner(board)
    if winner is not None:
        return Outcome(OutcomeKind.WIN, winner)
    if is_full(board):
        return DRAW
    return IN_PROGRESS


class GameSession:
    """A single game of Tic Tac Toe.

    Only the board is stored. The mark to play next and the outcome are
    recomputed from it on every query, so they can never drift out of sync
    with the cells.

    Invalid moves (out of range, occupied cell, game already over) are
    ignored: ``apply_move`` returns False and nothing changes.

    ``lock`` serialises moves and restarts; hold it to read several
    derived values as one consistent view.
    """

    def __init__(self):
        self._cells: List[Cell] = empty_board()
        self.lock = threading.RLock()

    @property
    def board(self) -> Tuple[Cell, ...]:
        return tuple(self._cells)

    @property
    def next_mark(self) -> Mark:
        return Mark.X if filled_count(self._cells) % 2 == 0 else Mark.O

    @property
    def outcome(self) -> Outcome:
        return outcome_for(self._cells)

    @property
    def is_over(self) -> bool:
        return self.outcome.is_over

    def available_moves(self) -> List[int]:
        if self.is_over:
            return []
        return [i for i, cell in enumerate(self._cells) if cell is None]

    def apply_move(self, index: Any) -> bool:
        # bool is an int subclass; True must not select square 1
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < BOARD_CELLS:
            return False
        with self.lock:
            if self._cells[index] is not None or self.is_over:
                return False
            self._cells[index] = self.next_mark
            return True

    def restart(self) -> None:
        with self.lock:
            self._cells = empty_board()

    def status_text(self) -> str:
        outcome = self.outcome
        if outcome.kind is OutcomeKind.WIN:
            return f"Winner: {outcome.winner.value}"
        if outcome.kind is OutcomeKind.DRAW:
            return 'Draw'
        return f"Next player: {self.next_mark.value}"

    def snapshot(self) -> Dict[str, Any]:
        with self.lock:
            return self._snapshot()

    def _snapshot(self) -> Dict[str, Any]:
        outcome = self.outcome
        line = find_winning_line(self._cells)
        return {
            'board': [cell.value if cell else None for cell in self._cells],
            'next_mark': self.next_mark.value,
            'outcome': outcome.kind.value,
            'winner': outcome.winner.value if outcome.winner else None,
            'winning_line': list(line) if line else None,
            'status_text': self.status_text(),
            'available_moves': self.available_moves(),
        }

    def __repr__(self):
        return f"<GameSession board={self.snapshot()['board']} outcome={self.outcome.kind.value}>"
