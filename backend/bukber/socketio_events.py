from flask import current_app, request
from flask_socketio import emit

from bukber import socketio
from bukber.errors import RoomError
from bukber.services.rooms import sessions


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _dispatch(operation, *args):
    """Run a room operation, translating domain errors for the caller.

    Surfaced errors go back privately on ``error``; races such as stale
    votes or non-host clicks are logged and otherwise ignored.
    """
    try:
        return operation(*args)
    except RoomError as exc:
        if exc.surfaced:
            emit('error', {'message': exc.message})
        current_app.logger.debug(f"[{type(exc).__name__}] sid={_get_sid()} {exc.message}")
        return None


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    _dispatch(sessions.disconnect, sid)


def handle_create_room(data):
    data = data or {}
    _dispatch(
        sessions.create_room,
        _get_sid(),
        data.get('name'),
        data.get('groupName'),
        data.get('restaurants'),
        data.get('locationData'),
    )


def handle_join_room(data):
    data = data or {}
    _dispatch(sessions.join_room, _get_sid(), data.get('name'), data.get('roomId'))


def handle_leave_room(data):
    data = data or {}
    _dispatch(sessions.leave_room, _get_sid(), data.get('roomId'))


def handle_submit_vote(data):
    data = data or {}
    _dispatch(sessions.submit_vote, _get_sid(), data.get('roomId'), data.get('round'), data.get('selection'))


def handle_admin_update_restaurants(data):
    data = data or {}
    _dispatch(sessions.update_restaurants, _get_sid(), data.get('roomId'), data.get('restaurants'))


def handle_admin_action(data):
    data = data or {}
    _dispatch(sessions.admin_action, _get_sid(), data.get('roomId'), data.get('action'))


def handle_error(exc):
    # Unexpected failures stay scoped to the event that raised them
    current_app.logger.exception(f"[handler-error] sid={_get_sid()} {exc!r}")
    emit('error', {'message': 'Something went wrong, please try again'})


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('create_room', handle_create_room, namespace=namespace)
    socketio.on_event('join_room', handle_join_room, namespace=namespace)
    socketio.on_event('leave_room', handle_leave_room, namespace=namespace)
    socketio.on_event('submit_vote', handle_submit_vote, namespace=namespace)
    socketio.on_event('admin_update_restaurants', handle_admin_update_restaurants, namespace=namespace)
    socketio.on_event('admin_action', handle_admin_action, namespace=namespace)
    socketio.on_error(namespace)(handle_error)
