from flask import Blueprint, jsonify
from tictactoe.services.games.registry import sessions

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Tic Tac Toe game server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'sessions': len(sessions)})
