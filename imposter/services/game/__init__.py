"""Game domain services: word catalog, room registry, countdowns and the
room state machine.

Nothing in here knows about Flask requests; socket handlers and HTTP routes
call into GameService, which emits through a broadcaster.
"""

from .broadcast import SocketIOBroadcaster
from .service import GameService

__all__ = ['GameService', 'SocketIOBroadcaster']
