from flask import Blueprint, jsonify
from empire.services.games.registry import registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Empire game server!'})


@main.route('/health')
def health():
    """Liveness probe for deployment tooling."""
    return jsonify({'status': 'ok', 'sessions': registry.count()})
