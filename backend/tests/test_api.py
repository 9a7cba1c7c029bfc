from bukber.models import RoomSession


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_counts_rooms(client, room):
    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'rooms': 1}


def test_state_matches_broadcast_snapshot(client, room):
    room_id, host, guest = room
    guest.emit('submit_vote', {'roomId': room_id, 'round': 'lobby', 'selection': 'x'})
    host.emit('admin_action', {'roomId': room_id, 'action': 'start_round1'})
    broadcast = [pkt for pkt in guest.get_received() if pkt['name'] == 'state_update'][-1]['args'][0]

    res = client.get(f'/api/rooms/{room_id}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state == broadcast
    assert state['round'] == 'round1'
    assert [u['name'] for u in state['users']] == ['Amir', 'Budi']


def test_snapshot_round_trips_through_read_path(client, room):
    room_id, host, guest = room
    host.emit('admin_action', {'roomId': room_id, 'action': 'start_round1'})
    host.emit('submit_vote', {'roomId': room_id, 'round': 'round1', 'selection': ['2026-03-20']})
    state = client.get(f'/api/rooms/{room_id}/state').get_json()

    rebuilt = RoomSession.from_dict(state).to_dict()
    for key in ('round', 'users', 'votes', 'topDates', 'topRestaurants', 'restaurants'):
        assert rebuilt[key] == state[key]


def test_unknown_room_is_404(client):
    assert client.get('/api/rooms/9999/state').status_code == 404
    res = client.get('/api/rooms/9999/results')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Room not found'}


def test_results_default_to_tbd(client, room):
    room_id, _, _ = room
    results = client.get(f'/api/rooms/{room_id}/results').get_json()
    assert results['date'] == 'TBD'
    assert results['restaurant'] == 'TBD'
    assert results['restaurantDetail'] is None
