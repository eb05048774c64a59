from typing import Dict, Optional

from imposter.models import Room


class RoomRegistry:
    """In-memory room store plus connection -> room membership.

    One instance lives on the GameService; it is not thread-safe on its own,
    callers hold the service lock.
    """

    def __init__(self, timer_sec: int, vote_timer_sec: int) -> None:
        self._rooms: Dict[str, Room] = {}
        self._memberships: Dict[str, str] = {}
        self._timer_sec = timer_sec
        self._vote_timer_sec = vote_timer_sec

    def __contains__(self, code) -> bool:
        return code in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def get(self, code: Optional[str]) -> Optional[Room]:
        if code is None:
            return None
        return self._rooms.get(code)

    def ensure(self, code: str) -> Room:
        """Return the room for code, creating a fresh lobby room if unknown."""
        room = self._rooms.get(code)
        if room is None:
            room = Room(code=code, timer_sec=self._timer_sec, vote_timer_sec=self._vote_timer_sec)
            self._rooms[code] = room
        return room

    def delete(self, code: str) -> None:
        self._rooms.pop(code, None)
        for sid in [s for s, c in self._memberships.items() if c == code]:
            del self._memberships[sid]

    def room_of(self, sid: str) -> Optional[str]:
        return self._memberships.get(sid)

    def bind(self, sid: str, code: str) -> None:
        self._memberships[sid] = code

    def unbind(self, sid: str) -> Optional[str]:
        return self._memberships.pop(sid, None)
