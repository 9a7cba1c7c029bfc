from flask import Blueprint, jsonify

from bukber import registry
from bukber.services.rooms.aggregation import compute_results

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    """
    Returns the same snapshot that is pushed on ``state_update``.
    """
    session = registry.get(room_id)
    if session is None:
        return jsonify({'error': 'Room not found'}), 404
    with session.lock:
        return jsonify(session.to_dict())


@rooms.route('/<string:room_id>/results', methods=['GET'])
def get_room_results(room_id):
    """
    Returns the winning date and venue derived from the final ballots.
    """
    session = registry.get(room_id)
    if session is None:
        return jsonify({'error': 'Room not found'}), 404
    with session.lock:
        return jsonify(compute_results(session))
