from typing import Any, Optional

from bukber.models import RoomSession


class SocketIOGateway:
    """Delivers room snapshots and private messages over Socket.IO.

    Socket.IO rooms are keyed by the plain room code, so a broadcast to
    ``room_id`` reaches every connection that created or joined it.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def init_app(self, app) -> None:
        self.namespace = app.config.get('SOCKETIO_NAMESPACE', '/')

    def join(self, sid: str, room_id: str) -> None:
        self.socketio.server.enter_room(sid, room_id, namespace=self.namespace)

    def leave(self, sid: str, room_id: str) -> None:
        self.socketio.server.leave_room(sid, room_id, namespace=self.namespace)

    def send_private(self, sid: str, event: str, payload: Optional[Any] = None) -> None:
        if payload is None:
            self.socketio.emit(event, to=sid, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def broadcast(self, room_id: str, event: str, payload: Optional[Any] = None) -> None:
        if payload is None:
            self.socketio.emit(event, to=room_id, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=room_id, namespace=self.namespace)

    def broadcast_state(self, session: RoomSession) -> None:
        self.broadcast(session.room_id, 'state_update', session.to_dict())
