"""Game domain services: board evaluation, game sessions and their registry.

This package contains the pure game logic imported by HTTP routes and
socket handlers, keeping transport concerns separated from core game
mechanics.
"""

from .board import Mark, WINNING_LINES, calculate_winner, find_winning_line
from .session import GameSession, Outcome, OutcomeKind
from .registry import SessionRegistry, SessionLimitReached, sessions
