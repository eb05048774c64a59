from imposter.models import Room
from . import words

NAMESPACE = '/ws'


def room_channel(code: str) -> str:
    return f"room:{code}"


class SocketIOBroadcaster:
    """Delivers events through Flask-SocketIO rooms on the /ws namespace.

    Every connection joins ``room_channel(code)`` when it enters a room; private
    events go to the connection's own sid.
    """

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def to_room(self, code: str, event: str, payload=None) -> None:
        self.socketio.emit(event, payload if payload is not None else {},
                           to=room_channel(code), namespace=self.namespace)

    def to_player(self, sid: str, event: str, payload=None) -> None:
        self.socketio.emit(event, payload if payload is not None else {},
                           to=sid, namespace=self.namespace)


def turn_state(room: Room):
    return {'currentTurn': room.current_turn, 'order': room.order_with_names()}


def role_payload(room: Room, pid: str):
    player = room.players[pid]
    return {
        'topic': room.topic or words.DEFAULT_TOPIC,
        'isImposter': bool(player.is_imposter),
        'word': None if player.is_imposter else player.word,
    }


def emit_update(broadcaster, room: Room) -> None:
    broadcaster.to_room(room.code, 'room:update', room.to_dict())


def emit_turn_state(broadcaster, room: Room) -> None:
    broadcaster.to_room(room.code, 'turn:state', turn_state(room))
