from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from tictactoe.services.games.registry import sessions
    sessions.max_sessions = flask_app.config.get('MAX_SESSIONS')

    from tictactoe.main import main
    flask_app.register_blueprint(main)

    from tictactoe.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # JSON API only; answer routing errors in JSON too
    @flask_app.errorhandler(404)
    def handle_not_found(_exc):
        return jsonify({'error': 'Not found'}), 404

    @flask_app.errorhandler(405)
    def handle_method_not_allowed(_exc):
        return jsonify({'error': 'Method not allowed'}), 405

    # Importing here ensures the handlers bind to the initialized socketio instance
    from tictactoe.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    flask_app.logger.info(
        f"[startup] max_sessions={sessions.max_sessions} origins={','.join(allowed_origins)}"
    )
    return flask_app
