"""Round transition table and the pure step that applies it.

Nothing here emits or schedules; callers hold ``session.lock`` and
broadcast after a step reports a change.
"""

import enum
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple

from bukber.models import Round, RoomSession
from .aggregation import top_n

TOP_CANDIDATES = 2


class Action(str, enum.Enum):
    START_ROUND1 = 'start_round1'
    START_ROUND2 = 'start_round2'
    START_ROUND3 = 'start_round3'
    START_ROUND4 = 'start_round4'
    SHOW_RESULTS = 'show_results'
    RESET = 'reset'


# action -> (expected current round, next round); reset is valid from anywhere
TRANSITIONS: Dict[Action, Tuple[Optional[Round], Round]] = {
    Action.START_ROUND1: (Round.LOBBY, Round.ROUND1),
    Action.START_ROUND2: (Round.ROUND1, Round.ROUND2),
    Action.START_ROUND3: (Round.ROUND2, Round.ROUND3),
    Action.START_ROUND4: (Round.ROUND3, Round.ROUND4),
    Action.SHOW_RESULTS: (Round.ROUND4, Round.RESULTS),
    Action.RESET: (None, Round.LOBBY),
}

# the action that closes each voting round once everyone has voted
COMPLETION_ACTIONS: Dict[Round, Action] = {
    Round.ROUND1: Action.START_ROUND2,
    Round.ROUND2: Action.START_ROUND3,
    Round.ROUND3: Action.START_ROUND4,
    Round.ROUND4: Action.SHOW_RESULTS,
}


def parse_action(value) -> Optional[Action]:
    try:
        return Action(value)
    except ValueError:
        return None


def tomorrow(now: Optional[datetime] = None) -> str:
    """ISO date (UTC) of the day after ``now``."""
    now = now or datetime.now(timezone.utc)
    return (now.astimezone(timezone.utc) + timedelta(days=1)).date().isoformat()


def can_apply(session: RoomSession, action: Action) -> bool:
    expected, _ = TRANSITIONS[action]
    return expected is None or session.round == expected


def apply_transition(session: RoomSession, action: Action, round_duration_sec: int = 600,
                     now: Optional[datetime] = None) -> bool:
    """Advance ``session`` by ``action``.

    Returns False, leaving the session untouched, when the session is not in
    the round the action expects.
    """
    if not can_apply(session, action):
        return False
    now = now or datetime.now(timezone.utc)
    deadline = int(now.timestamp() * 1000) + round_duration_sec * 1000

    if action == Action.START_ROUND1:
        session.round = Round.ROUND1
        session.timer_end = deadline
    elif action == Action.START_ROUND2:
        dates = top_n(session.votes[Round.ROUND1.value].values(), TOP_CANDIDATES)
        session.top_dates = dates or [tomorrow(now)]
        session.round = Round.ROUND2
        session.timer_end = deadline
    elif action == Action.START_ROUND3:
        session.round = Round.ROUND3
        session.timer_end = deadline
    elif action == Action.START_ROUND4:
        venues = top_n(session.votes[Round.ROUND3.value].values(), TOP_CANDIDATES)
        if not venues:
            venues = [r.get('id') for r in session.restaurants[:TOP_CANDIDATES]]
        session.top_restaurants = venues
        session.round = Round.ROUND4
        session.timer_end = deadline
    elif action == Action.SHOW_RESULTS:
        session.round = Round.RESULTS
        session.timer_end = None
    elif action == Action.RESET:
        session.round = Round.LOBBY
        session.clear_votes()
        session.timer_end = None
        session.top_dates = []
        session.top_restaurants = []
    return True
