import threading
from typing import Dict, List, Optional

from bukber.errors import RoomCapacityError
from bukber.models import RoomSession, generate_room_code


class RoomRegistry:
    """Process-wide mapping of room code -> RoomSession.

    Map operations are atomic under ``_lock``. Sessions handed out are
    mutated only while holding their own ``RoomSession.lock``.
    """

    def __init__(self, code_attempts: int = 50, default_group_name: str = ''):
        self._rooms: Dict[str, RoomSession] = {}
        self._lock = threading.RLock()
        self.code_attempts = code_attempts
        self.default_group_name = default_group_name

    def init_app(self, app) -> None:
        self.code_attempts = int(app.config.get('ROOM_CODE_ATTEMPTS', 50))
        self.default_group_name = app.config.get('DEFAULT_GROUP_NAME', '')
        self.reset()

    def create(self, group_name: Optional[str] = None, restaurants: Optional[List[dict]] = None,
               host_sid: Optional[str] = None, host_name: str = '') -> RoomSession:
        """Register a fresh lobby under an unused code, retrying on collision."""
        with self._lock:
            for _ in range(max(1, self.code_attempts)):
                code = generate_room_code()
                if code not in self._rooms:
                    session = RoomSession(code, group_name or self.default_group_name, restaurants)
                    if host_sid is not None:
                        session.add_user(host_sid, host_name, is_host=True)
                    self._rooms[code] = session
                    return session
        raise RoomCapacityError('No free room code available, try again later')

    def get(self, room_id) -> Optional[RoomSession]:
        if room_id is None:
            return None
        with self._lock:
            return self._rooms.get(str(room_id))

    def remove_if_empty(self, room_id) -> bool:
        with self._lock:
            session = self._rooms.get(str(room_id))
            if session is None or session.users:
                return False
            del self._rooms[str(room_id)]
            return True

    def find_by_sid(self, sid: str) -> Optional[RoomSession]:
        with self._lock:
            for session in self._rooms.values():
                if sid in session.users:
                    return session
        return None

    def reset(self) -> None:
        with self._lock:
            self._rooms.clear()

    def __len__(self):
        with self._lock:
            return len(self._rooms)
