"""Room operations invoked by the Socket.IO handlers.

Every operation that touches a session holds ``session.lock`` from the first
read through the broadcast it causes, so each mutation is followed by
exactly one snapshot and no other handler can interleave in between.
"""

import copy
from typing import Any, Dict, List, Optional

from flask import current_app

from bukber import gateway, registry
from bukber.errors import (
    AuthorizationError,
    NotFoundError,
    StaleRoundError,
    UpstreamUnavailable,
    ValidationError,
)
from bukber.models import MAX_MULTI_SELECT, MULTI_SELECT_ROUNDS, VOTING_ROUNDS, Round, RoomSession
from .scheduler import cancel_round1_start, schedule_round1_start
from .transitions import COMPLETION_ACTIONS, Action, apply_transition, parse_action
from .venues import lookup_nearby_restaurants

VENUES_FOUND_MESSAGE = 'Menemukan {count} Restoran!'
VENUES_FALLBACK_MESSAGE = 'Gagal memuat peta OSM, menggunakan restoran cadangan.'


def _clean_name(name) -> str:
    if not isinstance(name, str):
        return ''
    return name.strip()


def _require_session(room_id) -> RoomSession:
    session = registry.get(room_id)
    if session is None:
        raise NotFoundError('Room not found')
    return session


def _login_payload(session: RoomSession, sid: str) -> Dict[str, Any]:
    user = session.users[sid]
    return {'roomId': session.room_id, 'name': user.name, 'isHost': user.is_host}


def _check_restaurants(restaurants) -> None:
    if not isinstance(restaurants, list):
        raise ValidationError('Restaurants must be a list')
    for venue in restaurants:
        if not isinstance(venue, dict) or venue.get('id') in (None, ''):
            raise ValidationError('Each restaurant needs an id')


def _seed_restaurants(sid: str, restaurants, location) -> Optional[List[Dict[str, Any]]]:
    """Pick the venue list for a new room: lookup, then client list, then defaults."""
    if location:
        try:
            found = lookup_nearby_restaurants(location, current_app.config)
        except UpstreamUnavailable as exc:
            current_app.logger.warning(f"[venues] sid={sid} lookup failed, using fallback: {exc.message}")
            gateway.send_private(sid, 'error', {'message': VENUES_FALLBACK_MESSAGE})
        else:
            current_app.logger.info(f"[venues] sid={sid} found {len(found)} venues")
            gateway.send_private(sid, 'error', {'message': VENUES_FOUND_MESSAGE.format(count=len(found))})
            return found
    if isinstance(restaurants, list) and restaurants:
        return copy.deepcopy(restaurants)
    return None


def _detach(sid: str, session: RoomSession) -> None:
    room_id = session.room_id
    with session.lock:
        if session.remove_user(sid) is None:
            return
        gateway.leave(sid, room_id)
        if registry.remove_if_empty(room_id):
            cancel_round1_start(room_id)
            current_app.logger.info(f"[room-destroy] room={room_id} last participant left")
            return
        current_app.logger.info(f"[room-leave] room={room_id} sid={sid} remaining={len(session.users)}")
        gateway.broadcast_state(session)


def _leave_previous_room(sid: str, keep: Optional[RoomSession] = None) -> None:
    previous = registry.find_by_sid(sid)
    if previous is not None and previous is not keep:
        _detach(sid, previous)


def create_room(sid: str, name, group_name=None, restaurants=None, location=None) -> RoomSession:
    name = _clean_name(name)
    if not name:
        raise ValidationError('Name is required')
    if restaurants:
        _check_restaurants(restaurants)
    seeded = _seed_restaurants(sid, restaurants, location)
    _leave_previous_room(sid)
    group = group_name.strip() if isinstance(group_name, str) else None
    session = registry.create(group, seeded, host_sid=sid, host_name=name)
    with session.lock:
        gateway.join(sid, session.room_id)
        current_app.logger.info(f"[room-create] room={session.room_id} host={sid} venues={len(session.restaurants)}")
        gateway.send_private(sid, 'login_success', _login_payload(session, sid))
        gateway.broadcast_state(session)
    return session


def join_room(sid: str, name, room_id) -> RoomSession:
    name = _clean_name(name)
    if not name:
        raise ValidationError('Name is required')
    if room_id is None or str(room_id).strip() == '':
        raise ValidationError('Room code is required')
    session = _require_session(str(room_id).strip())
    _leave_previous_room(sid, keep=session)
    with session.lock:
        if registry.get(session.room_id) is not session:
            raise NotFoundError('Room not found')
        existing = session.users.get(sid)
        if existing is not None:
            existing.name = name
        else:
            session.add_user(sid, name)
        gateway.join(sid, session.room_id)
        current_app.logger.info(f"[room-join] room={session.room_id} sid={sid} users={len(session.users)}")
        gateway.send_private(sid, 'login_success', _login_payload(session, sid))
        gateway.broadcast_state(session)
    return session


def leave_room(sid: str, room_id) -> None:
    session = _require_session(room_id)
    if sid not in session.users:
        raise AuthorizationError(f'{sid} is not in room {room_id}')
    _detach(sid, session)
    gateway.send_private(sid, 'left', {'roomId': session.room_id})


def disconnect(sid: str) -> None:
    session = registry.find_by_sid(sid)
    if session is not None:
        _detach(sid, session)


def _is_option(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return False
    return value != ''


def normalize_selection(round_: Round, selection):
    """Validate a ballot's shape for ``round_``.

    Multi-select rounds take a list of up to three options (duplicates
    collapse, order kept); single-select rounds take one option.
    """
    if round_ in MULTI_SELECT_ROUNDS:
        if not isinstance(selection, (list, tuple)):
            raise ValidationError('Selection must be a list')
        picked = []
        for item in selection:
            if not _is_option(item):
                raise ValidationError('Invalid option in selection')
            if item not in picked:
                picked.append(item)
        if len(picked) > MAX_MULTI_SELECT:
            raise ValidationError(f'Pick at most {MAX_MULTI_SELECT} options')
        return picked
    if not _is_option(selection):
        raise ValidationError('Selection must be a single option')
    return selection


def _run_transition(session: RoomSession, action: Action) -> bool:
    """Apply ``action`` and broadcast once. Caller holds ``session.lock``."""
    if action == Action.START_ROUND1:
        return schedule_round1_start(current_app._get_current_object(), session.room_id)
    previous = session.round
    if not apply_transition(session, action, int(current_app.config.get('ROUND_DURATION_SEC', 600))):
        current_app.logger.info(f"[transition-skip] room={session.room_id} action={action.value} round={previous.value}")
        return False
    if action == Action.RESET:
        cancel_round1_start(session.room_id)
    current_app.logger.info(f"[transition] room={session.room_id} {previous.value} -> {session.round.value}")
    gateway.broadcast_state(session)
    return True


def submit_vote(sid: str, room_id, round_name, selection) -> bool:
    """Record a ballot; returns True when it closed the round."""
    session = _require_session(room_id)
    with session.lock:
        if sid not in session.users:
            raise AuthorizationError(f'{sid} is not in room {session.room_id}')
        if round_name != session.round.value or session.round not in VOTING_ROUNDS:
            raise StaleRoundError(f'Vote for {round_name!r} while room is in {session.round.value}')
        round_ = session.round
        ledger = session.votes[round_.value]
        ledger[sid] = normalize_selection(round_, selection)

        total = len(session.users)
        done = len(ledger)
        current_app.logger.info(f"[vote] room={session.room_id} round={round_.value} done={done}/{total}")
        if done >= total:
            return _run_transition(session, COMPLETION_ACTIONS[round_])
        gateway.broadcast_state(session)
        return False


def update_restaurants(sid: str, room_id, restaurants) -> bool:
    session = _require_session(room_id)
    with session.lock:
        if not session.is_host(sid):
            raise AuthorizationError(f'{sid} is not host of room {session.room_id}')
        if session.round != Round.LOBBY:
            current_app.logger.info(f"[venues-skip] room={session.room_id} round={session.round.value}")
            return False
        _check_restaurants(restaurants)
        session.restaurants = copy.deepcopy(restaurants)
        current_app.logger.info(f"[venues-update] room={session.room_id} count={len(restaurants)}")
        gateway.broadcast_state(session)
        return True


def admin_action(sid: str, room_id, action_name) -> bool:
    session = _require_session(room_id)
    with session.lock:
        if not session.is_host(sid):
            raise AuthorizationError(f'{sid} is not host of room {session.room_id}')
        action = parse_action(action_name)
        if action is None:
            current_app.logger.info(f"[transition-skip] room={session.room_id} unknown action={action_name!r}")
            return False
        return _run_transition(session, action)
