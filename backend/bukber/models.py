import copy
import enum
import random
import threading
from typing import Any, Dict, List, Optional


class Round(str, enum.Enum):
    LOBBY = 'lobby'
    ROUND1 = 'round1'
    ROUND2 = 'round2'
    ROUND3 = 'round3'
    ROUND4 = 'round4'
    RESULTS = 'results'


VOTING_ROUNDS = (Round.ROUND1, Round.ROUND2, Round.ROUND3, Round.ROUND4)
MULTI_SELECT_ROUNDS = (Round.ROUND1, Round.ROUND3)
MAX_MULTI_SELECT = 3

DEFAULT_RESTAURANTS: List[Dict[str, Any]] = [
    {'id': 'r1', 'name': 'Kampoeng Pasir', 'price_range': 'Rp 50rb - 100rb', 'menu_highlights': 'Seafood, Ikan Bakar'},
    {'id': 'r2', 'name': "Ocean's Resto", 'price_range': 'Rp 100rb - 200rb', 'menu_highlights': 'Kepiting Soka, Cumi'},
    {'id': 'r3', 'name': 'Dandito', 'price_range': 'Rp 75rb - 150rb', 'menu_highlights': 'Kepiting Saus, Udang'},
    {'id': 'r4', 'name': 'Torani', 'price_range': 'Rp 30rb - 80rb', 'menu_highlights': 'Bandeng, Aneka Sambal'},
    {'id': 'r5', 'name': 'Blue Sky Bakpao', 'price_range': 'Rp 20rb - 50rb', 'menu_highlights': 'Mantau, Sapi Lada Hitam'},
]


def default_restaurants() -> List[Dict[str, Any]]:
    return copy.deepcopy(DEFAULT_RESTAURANTS)


def empty_votes() -> Dict[str, Dict[str, Any]]:
    return {r.value: {} for r in VOTING_ROUNDS}


def generate_room_code() -> str:
    """Random 4-digit room code, ``1000`` to ``9999``."""
    return str(random.randint(1000, 9999))


class Participant:
    def __init__(self, id: str, name: str, is_host: bool = False):
        self.id = id
        self.name = name
        self.is_host = is_host

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'isHost': self.is_host,
        }


class RoomSession:
    """In-memory state for one group decision.

    All mutation goes through ``lock``; callers hold it across the mutation
    and the broadcast that follows so clients never observe a half-applied
    change.
    """

    def __init__(self, room_id: str, group_name: str = '', restaurants: Optional[List[Dict[str, Any]]] = None):
        self.room_id = room_id
        self.round = Round.LOBBY
        self.group_name = group_name
        self.users: Dict[str, Participant] = {}
        self.votes = empty_votes()
        self.timer_end: Optional[int] = None
        self.top_dates: List[str] = []
        self.top_restaurants: List[str] = []
        self.restaurants = restaurants if restaurants else default_restaurants()
        self.lock = threading.RLock()

    @property
    def host(self) -> Optional[Participant]:
        for user in self.users.values():
            if user.is_host:
                return user
        return None

    def is_host(self, sid: str) -> bool:
        user = self.users.get(sid)
        return bool(user and user.is_host)

    def add_user(self, sid: str, name: str, is_host: bool = False) -> Participant:
        if is_host and self.host is not None:
            is_host = False
        user = Participant(id=sid, name=name, is_host=is_host)
        self.users[sid] = user
        return user

    def remove_user(self, sid: str) -> Optional[Participant]:
        # Ballots stay in the ledger; only the roster shrinks
        return self.users.pop(sid, None)

    def clear_votes(self) -> None:
        self.votes = empty_votes()

    def restaurant_by_id(self, restaurant_id) -> Optional[Dict[str, Any]]:
        for restaurant in self.restaurants:
            if restaurant.get('id') == restaurant_id:
                return restaurant
        return None

    def to_dict(self):
        return {
            'roomId': self.room_id,
            'round': self.round.value,
            'groupName': self.group_name,
            'users': [u.to_dict() for u in self.users.values()],
            'timerEnd': self.timer_end,
            'topDates': list(self.top_dates),
            'topRestaurants': list(self.top_restaurants),
            'restaurants': copy.deepcopy(self.restaurants),
            'votes': copy.deepcopy(self.votes),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoomSession':
        session = cls(data['roomId'], data.get('groupName') or '')
        # An empty venue list is legal in a snapshot; do not reseed defaults
        session.restaurants = copy.deepcopy(data.get('restaurants') or [])
        session.round = Round(data.get('round', Round.LOBBY.value))
        for u in data.get('users') or []:
            session.users[u['id']] = Participant(id=u['id'], name=u['name'], is_host=bool(u.get('isHost')))
        session.timer_end = data.get('timerEnd')
        session.top_dates = list(data.get('topDates') or [])
        session.top_restaurants = list(data.get('topRestaurants') or [])
        votes = empty_votes()
        votes.update(copy.deepcopy(data.get('votes') or {}))
        session.votes = votes
        return session
