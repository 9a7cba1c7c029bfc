from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

from bukber.gateway import SocketIOGateway
from bukber.registry import RoomRegistry

socketio = SocketIO(async_mode=None)
registry = RoomRegistry()
gateway = SocketIOGateway(socketio)


def _allowed_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Rooms live for the process lifetime only; a new app starts empty
    registry.init_app(flask_app)
    gateway.init_app(flask_app)
    from bukber.services.rooms.scheduler import clear_pending_starts
    clear_pending_starts()

    from bukber.routes import main
    flask_app.register_blueprint(main)

    from bukber.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from bukber.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    return flask_app
