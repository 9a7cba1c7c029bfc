import itertools
import threading
from typing import Dict

from bukber import gateway, registry, socketio
from .transitions import Action, apply_transition, can_apply


# room code -> token of the pending delayed round1 start
_pending_starts: Dict[str, int] = {}
_pending_lock = threading.Lock()
_tokens = itertools.count(1)


def schedule_round1_start(app, room_id: str) -> bool:
    """Announce the countdown and start round1 once the grace period ends.

    - At most one pending start per room; duplicates are ignored
    - Emits ``show_countdown`` to the room immediately
    - The deferred step re-fetches the room and applies only if its token is
      still current and the room is still in the lobby
    - Runs inline in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    """
    session = registry.get(room_id)
    if session is None or not can_apply(session, Action.START_ROUND1):
        return False

    with _pending_lock:
        if room_id in _pending_starts:
            app.logger.info(f"[timer-skip] room={room_id} round1 start already pending")
            return False
        token = next(_tokens)
        _pending_starts[room_id] = token

    delay = float(app.config.get('COUNTDOWN_DELAY_SEC', 4))
    app.logger.info(f"[timer-set] room={room_id} round1 in {delay}s token={token}")
    gateway.broadcast(room_id, 'show_countdown')

    def _worker(code: str, expected_token: int, wait: float):
        if wait > 0:
            socketio.sleep(wait)
        with app.app_context():
            _fire_round1_start(app, code, expected_token)

    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        _worker(room_id, token, delay)
    else:
        socketio.start_background_task(_worker, room_id, token, delay)
    return True


def _fire_round1_start(app, room_id: str, token: int) -> None:
    # Re-fetch: the room may have been destroyed (or its code reused) during the delay
    session = registry.get(room_id)
    if session is None:
        _discard(room_id, token)
        app.logger.info(f"[timer-abort] room={room_id} no longer exists")
        return
    with session.lock:
        if not _discard(room_id, token):
            app.logger.info(f"[timer-abort] room={room_id} token={token} cancelled")
            return
        if registry.get(room_id) is not session:
            app.logger.info(f"[timer-abort] room={room_id} replaced during countdown")
            return
        if not apply_transition(session, Action.START_ROUND1, int(app.config.get('ROUND_DURATION_SEC', 600))):
            app.logger.info(f"[timer-abort] room={room_id} round={session.round.value} not in lobby")
            return
        app.logger.info(f"[timer-fire] room={room_id} lobby -> round1 timerEnd={session.timer_end}")
        gateway.broadcast_state(session)


def _discard(room_id: str, token: int) -> bool:
    with _pending_lock:
        if _pending_starts.get(room_id) != token:
            return False
        del _pending_starts[room_id]
        return True


def cancel_round1_start(room_id: str) -> bool:
    with _pending_lock:
        return _pending_starts.pop(room_id, None) is not None


def is_round1_pending(room_id: str) -> bool:
    with _pending_lock:
        return room_id in _pending_starts


def clear_pending_starts() -> None:
    with _pending_lock:
        _pending_starts.clear()
