from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from tictactoe import socketio
from tictactoe.services.games.registry import sessions
from tictactoe.services.games.session import GameSession
from typing import Any, Dict, List, Optional
import time


NAMESPACE = '/ws'


def _room(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def broadcast_state(game_code: str, game: GameSession) -> None:
    """Push the current snapshot to every socket watching the game."""
    socketio.emit(
        'state_update',
        {'game_code': game_code.upper(), 'state': game.snapshot()},
        to=_room(game_code),
        namespace=NAMESPACE,
    )


def end_session(game_code: str) -> bool:
    """End the session: drop the game and notify clients in its room."""
    code = game_code.upper()
    ended = sessions.end(code)
    _owner_count.pop(code, None)
    _end_deadline.pop(code, None)
    if ended:
        socketio.emit('session_ended', {'game_code': code}, to=_room(code), namespace=NAMESPACE)
        current_app.logger.info(f"[session-end] game={code} active={len(sessions)}")
    return ended


def sweep_idle_sessions() -> List[str]:
    """End games with no owner socket that nobody has used for a while."""
    max_idle = float(current_app.config.get('SESSION_IDLE_SEC', 900))
    expired = []
    for code in sessions.idle_codes(max_idle):
        if _owner_count.get(code, 0) > 0:
            continue
        if end_session(code):
            current_app.logger.info(f"[session-expired] game={code} idle>={max_idle}s")
            expired.append(code)
    return expired


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if ctx and ctx.get('is_session_owner'):
        _release_owner(ctx['game_code'])


def handle_join_game(data):
    code = _game_code_from(data)
    if code is None:
        return
    game = sessions.get(code)
    if game is None:
        emit('error', {'message': 'Game not found', 'game_code': code})
        return
    room = _room(code)
    join_room(room)

    sid = _get_sid()
    previous = _sid_to_ctx.get(sid)
    already_owner = bool(previous and previous['is_session_owner'] and previous['game_code'] == code)
    is_session_owner = already_owner or bool(data.get('is_session_owner'))
    if previous and previous['is_session_owner'] and previous['game_code'] != code:
        # Switching games gives up ownership of the old one
        _release_owner(previous['game_code'])
    _sid_to_ctx[sid] = {'game_code': code, 'is_session_owner': is_session_owner}
    if is_session_owner and not already_owner:
        _owner_count[code] = _owner_count.get(code, 0) + 1
        _cancel_scheduled_end(code)
    emit('joined', {'room': room})
    emit('state_update', {'game_code': code, 'state': game.snapshot()})


def handle_leave_game(data):
    code = _game_code_from(data)
    if code is None:
        return
    room = _room(code)
    leave_room(room)
    emit('left', {'room': room})
    sid = _get_sid()
    ctx = _sid_to_ctx.get(sid)
    if ctx and ctx.get('game_code') == code:
        _sid_to_ctx.pop(sid, None)
        if ctx.get('is_session_owner'):
            # Explicit quit: end immediately
            end_session(code)


def handle_ping(data):
    emit('pong', data or {})

# ---- Session owner lifecycle helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_owner_count: Dict[str, int] = {}
_end_deadline: Dict[str, float] = {}

def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _game_code_from(data) -> Optional[str]:
    """Validated upper-cased game code from an event payload; emits 'error' otherwise."""
    if not isinstance(data, dict):
        emit('error', {'message': 'payload must be an object'})
        return None
    game_code = data.get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return None
    if not isinstance(game_code, str):
        emit('error', {'message': 'game_code must be a string'})
        return None
    return game_code.upper()

def _release_owner(game_code: str) -> None:
    # When the last owner socket of a game goes away, the game goes too
    _owner_count[game_code] = max(0, _owner_count.get(game_code, 0) - 1)
    if _owner_count[game_code] > 0:
        return
    # In tests, end immediately for determinism; in prod, allow grace period
    if current_app.config.get('TESTING'):
        end_session(game_code)
        return
    _schedule_end_if_no_owner(
        current_app._get_current_object(),
        game_code,
        float(current_app.config.get('SESSION_GRACE_SEC', 2.0)),
    )

def _schedule_end_if_no_owner(app, game_code: str, delay_sec: float) -> None:
    deadline = time.time() + delay_sec
    _end_deadline[game_code] = deadline
    app.logger.info(f"[session-grace] game={game_code} ends in {delay_sec}s unless an owner rejoins")

    def _runner(code: str, expected_deadline: float):
        sleep_for = max(0.0, expected_deadline - time.time())
        if sleep_for:
            socketio.sleep(sleep_for)
        if _owner_count.get(code, 0) == 0 and _end_deadline.get(code) == expected_deadline:
            with app.app_context():
                end_session(code)

    socketio.start_background_task(_runner, game_code, deadline)

def _cancel_scheduled_end(game_code: str) -> None:
    _end_deadline.pop(game_code, None)


def reset_socket_state() -> None:
    _sid_to_ctx.clear()
    _owner_count.clear()
    _end_deadline.clear()


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
