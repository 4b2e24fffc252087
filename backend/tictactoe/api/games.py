from flask import Blueprint, jsonify, request, current_app
from tictactoe.services.games.registry import sessions, SessionLimitReached
from tictactoe.socketio_events import broadcast_state, end_session, sweep_idle_sessions


games = Blueprint('games', __name__)


def _not_found():
    return jsonify({'error': 'Game not found'}), 404


@games.route('/create', methods=['POST'])
def create_game():
    sweep_idle_sessions()
    try:
        code, game = sessions.create()
    except SessionLimitReached as exc:
        current_app.logger.warning(f"[create-refused] {exc}")
        return jsonify({'error': 'Too many active games, try again later'}), 503
    current_app.logger.info(f"[create] game={code} active={len(sessions)}")
    return jsonify({
        'message': 'New game created!',
        'game_code': code,
        'state': game.snapshot(),
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    game = sessions.get(game_code)
    if game is None:
        return _not_found()
    return jsonify(game.snapshot())


@games.route('/<string:game_code>/move', methods=['POST'])
def select_square(game_code):
    game = sessions.get(game_code)
    if game is None:
        return _not_found()

    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return jsonify({'error': 'JSON object body required'}), 400
    index = data.get('index')
    if index is None:
        return jsonify({'error': 'index is required'}), 400
    if isinstance(index, bool) or not isinstance(index, int):
        return jsonify({'error': 'index must be an integer'}), 400

    with game.lock:
        mark = game.next_mark
        accepted = game.apply_move(index)
        state = game.snapshot()
    if accepted:
        current_app.logger.info(
            f"[move] game={game_code.upper()} index={index} mark={mark.value} outcome={state['outcome']}"
        )
        broadcast_state(game_code, game)
    else:
        # Invalid moves leave the game untouched and are not errors
        current_app.logger.debug(
            f"[move-rejected] game={game_code.upper()} index={index} outcome={state['outcome']}"
        )
    return jsonify({'accepted': accepted, 'state': state})


@games.route('/<string:game_code>/restart', methods=['POST'])
def restart_game(game_code):
    game = sessions.get(game_code)
    if game is None:
        return _not_found()
    with game.lock:
        game.restart()
        state = game.snapshot()
    current_app.logger.info(f"[restart] game={game_code.upper()}")
    broadcast_state(game_code, game)
    return jsonify({'state': state})


@games.route('/<string:game_code>', methods=['DELETE'])
def delete_game(game_code):
    if not end_session(game_code):
        return _not_found()
    return jsonify({'message': 'Game ended', 'game_code': game_code.upper()})
