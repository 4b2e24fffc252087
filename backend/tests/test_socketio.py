import time

from tictactoe import socketio
from tictactoe.services.games.registry import sessions


def _events(sio_client, name):
    return [e for e in sio_client.get_received('/ws') if e['name'] == name]


def test_socket_connect_and_join(sio_client, client):
    assert sio_client.is_connected('/ws')
    assert any(e['name'] == 'connected' for e in sio_client.get_received('/ws'))

    code = client.post('/api/games/create').get_json()['game_code']
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    names = [pkt['name'] for pkt in received]
    assert 'joined' in names
    update = next(pkt for pkt in received if pkt['name'] == 'state_update')
    assert update['args'][0]['game_code'] == code
    assert update['args'][0]['state']['next_mark'] == 'X'


def test_join_requires_existing_game(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', {}, namespace='/ws')
    sio_client.emit('join_game', {'game_code': 'ZZZZ'}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert len(errors) == 2


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    pongs = _events(sio_client, 'pong')
    assert pongs and pongs[0]['args'][0] == {'n': 1}


def test_move_pushes_state_update(sio_client, client):
    code = client.post('/api/games/create').get_json()['game_code']
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post(f'/api/games/{code}/move', json={'index': 0})
    updates = _events(sio_client, 'state_update')
    assert updates
    assert updates[-1]['args'][0]['state']['board'][0] == 'X'

    # rejected moves do not broadcast
    client.post(f'/api/games/{code}/move', json={'index': 0})
    assert _events(sio_client, 'state_update') == []

    client.post(f'/api/games/{code}/restart')
    updates = _events(sio_client, 'state_update')
    assert updates[-1]['args'][0]['state']['board'] == [None] * 9


def test_delete_notifies_room(sio_client, client):
    code = client.post('/api/games/create').get_json()['game_code']
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    sio_client.get_received('/ws')

    client.delete(f'/api/games/{code}')
    ended = _events(sio_client, 'session_ended')
    assert ended and ended[0]['args'][0]['game_code'] == code


def test_owner_leave_ends_session(sio_client, client):
    code = client.post('/api/games/create').get_json()['game_code']
    sio_client.emit('join_game', {'game_code': code, 'is_session_owner': True}, namespace='/ws')
    sio_client.get_received('/ws')

    sio_client.emit('leave_game', {'game_code': code}, namespace='/ws')
    assert any(e['name'] == 'left' for e in sio_client.get_received('/ws'))
    assert code not in sessions


def test_host_disconnect_ends_session(flask_app, sio_client, client):
    code = client.post('/api/games/create').get_json()['game_code']

    # A separate client to simulate the owning browser tab
    host_client = socketio.test_client(flask_app, namespace='/ws')
    host_client.emit('join_game', {'game_code': code, 'is_session_owner': True}, namespace='/ws')

    # Watcher joins
    sio_client.emit('join_game', {'game_code': code}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    host_client.disconnect(namespace='/ws')
    deadline = time.time() + 3.0
    got = False
    while time.time() < deadline and not got:
        events = sio_client.get_received('/ws')
        got = any(e['name'] == 'session_ended' for e in events)
        if not got:
            time.sleep(0.1)
    assert got
    assert code not in sessions


def test_watcher_disconnect_keeps_session(flask_app, client):
    code = client.post('/api/games/create').get_json()['game_code']
    watcher = socketio.test_client(flask_app, namespace='/ws')
    watcher.emit('join_game', {'game_code': code}, namespace='/ws')
    watcher.disconnect(namespace='/ws')
    assert code in sessions


def test_malformed_payloads_answer_with_error(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_game', 'ABCD', namespace='/ws')
    sio_client.emit('join_game', {'game_code': 1234}, namespace='/ws')
    sio_client.emit('leave_game', 42, namespace='/ws')
    sio_client.emit('leave_game', {'game_code': 1234}, namespace='/ws')
    errors = _events(sio_client, 'error')
    assert len(errors) == 4
    assert errors[1]['args'][0]['message'] == 'game_code must be a string'


def test_leaving_another_room_keeps_ownership(flask_app, client):
    owned = client.post('/api/games/create').get_json()['game_code']
    other = client.post('/api/games/create').get_json()['game_code']
    owner = socketio.test_client(flask_app, namespace='/ws')
    owner.emit('join_game', {'game_code': owned, 'is_session_owner': True}, namespace='/ws')

    owner.emit('leave_game', {'game_code': other}, namespace='/ws')
    assert owned in sessions
    assert other in sessions

    # the owned game still ends with its owner
    owner.disconnect(namespace='/ws')
    assert owned not in sessions


def test_repeated_owner_join_counts_once(flask_app, client):
    code = client.post('/api/games/create').get_json()['game_code']
    owner = socketio.test_client(flask_app, namespace='/ws')
    owner.emit('join_game', {'game_code': code, 'is_session_owner': True}, namespace='/ws')
    owner.emit('join_game', {'game_code': code, 'is_session_owner': True}, namespace='/ws')
    owner.disconnect(namespace='/ws')
    assert code not in sessions


def test_owner_switching_games_releases_the_old_one(flask_app, client):
    first = client.post('/api/games/create').get_json()['game_code']
    second = client.post('/api/games/create').get_json()['game_code']
    owner = socketio.test_client(flask_app, namespace='/ws')
    owner.emit('join_game', {'game_code': first, 'is_session_owner': True}, namespace='/ws')
    owner.emit('join_game', {'game_code': second, 'is_session_owner': True}, namespace='/ws')
    assert first not in sessions
    assert second in sessions
    owner.disconnect(namespace='/ws')
    assert second not in sessions


def test_owned_games_survive_idle_sweep(flask_app, client):
    owned = client.post('/api/games/create').get_json()['game_code']
    abandoned = client.post('/api/games/create').get_json()['game_code']
    owner = socketio.test_client(flask_app, namespace='/ws')
    owner.emit('join_game', {'game_code': owned, 'is_session_owner': True}, namespace='/ws')

    flask_app.config['SESSION_IDLE_SEC'] = 0
    client.post('/api/games/create')
    assert owned in sessions
    assert abandoned not in sessions
    owner.disconnect(namespace='/ws')
