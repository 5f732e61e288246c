from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import logging
from empire.config import Config
from empire.broadcast import SocketIONotifier
from empire.services.games.registry import registry, start_sweeper

socketio = SocketIO(async_mode='threading')


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    level = getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    flask_app.logger.setLevel(level)

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Session state lives in the registry; broadcasts go out through Socket.IO rooms
    registry.init_app(flask_app, notifier=SocketIONotifier(socketio))

    from empire.main import main
    flask_app.register_blueprint(main)

    from empire.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from empire.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, testing=flask_app.config.get('TESTING', False))

    start_sweeper(flask_app, socketio)

    return flask_app
