import random
import string
import threading
import time
from typing import Dict, Iterator, List, Optional, Tuple

from .session import GameSession


class SessionLimitReached(RuntimeError):
    """Raised when no more in-memory games may be created."""


def generate_game_code(length=4):
    """Generate a short game code."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class SessionRegistry:
    """In-memory games keyed by game code. Nothing is persisted.

    Each lookup records the time the game was last used, so callers can
    find games nobody has touched for a while with ``idle_codes``.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = max_sessions
        self._sessions: Dict[str, GameSession] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = threading.Lock()

    def create(self) -> Tuple[str, GameSession]:
        with self._lock:
            if self.max_sessions is not None and len(self._sessions) >= self.max_sessions:
                raise SessionLimitReached(f"limit of {self.max_sessions} games reached")
            code = generate_game_code()
            while code in self._sessions:
                code = generate_game_code()
            game = GameSession()
            self._sessions[code] = game
            self._last_seen[code] = time.time()
            return code, game

    def get(self, code: Optional[str]) -> Optional[GameSession]:
        if not code or not isinstance(code, str):
            return None
        code = code.upper()
        game = self._sessions.get(code)
        if game is not None:
            self._last_seen[code] = time.time()
        return game

    def end(self, code: Optional[str]) -> bool:
        if not code or not isinstance(code, str):
            return False
        with self._lock:
            self._last_seen.pop(code.upper(), None)
            return self._sessions.pop(code.upper(), None) is not None

    def idle_codes(self, max_idle_sec: float, now: Optional[float] = None) -> List[str]:
        """Codes of games not looked up for at least ``max_idle_sec`` seconds."""
        now = time.time() if now is None else now
        with self._lock:
            return [code for code, seen in self._last_seen.items() if now - seen >= max_idle_sec]

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._last_seen.clear()

    def __contains__(self, code) -> bool:
        return isinstance(code, str) and code.upper() in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._sessions))


# Process-wide registry; create_app() applies MAX_SESSIONS
sessions = SessionRegistry()
