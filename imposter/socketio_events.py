from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from imposter import socketio
from imposter.schemas import parse_event
from imposter.services.game.broadcast import NAMESPACE, room_channel


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _game():
    return current_app.extensions['imposter_game']


def _parse(event: str, data):
    payload = parse_event(event, data)
    if payload is None:
        current_app.logger.debug(f"[drop] event={event} sid={_get_sid()} malformed payload")
    return payload


def handle_connect(auth=None):
    # Clients learn their own id here; it is the player id used in every other event
    emit('connected', {'sid': _get_sid()})


def handle_disconnect(reason=None):
    _game().leave(_get_sid())


def _enter(event: str, data, as_host: bool) -> None:
    payload = _parse(event, data)
    if payload is None:
        return
    sid = _get_sid()
    game = _game()
    previous = game.room_of(sid)
    if previous is not None and previous != payload.code:
        leave_room(room_channel(previous))
    # Join the channel before the service broadcasts so the newcomer gets the update
    join_room(room_channel(payload.code))
    if as_host:
        game.create_room(sid, payload.code, payload.name)
    else:
        game.join_room(sid, payload.code, payload.name)


def handle_room_create(data=None):
    _enter('room:create', data, as_host=True)


def handle_room_join(data=None):
    _enter('room:join', data, as_host=False)


def handle_room_leave(data=None):
    if _parse('room:leave', data) is None:
        return
    code = _game().leave(_get_sid())
    if code is not None:
        leave_room(room_channel(code))


# event -> callable(game, sid, payload) for everything that only touches room state
ACTIONS = {
    'room:sync': lambda g, sid, p: g.sync(sid, p.code),
    'role:remind': lambda g, sid, p: g.remind_role(sid, p.code),
    'topic:set': lambda g, sid, p: g.set_topic(sid, p.code, p.topic),
    'timer:set': lambda g, sid, p: g.set_timer(sid, p.code, p.seconds),
    'voteTimer:set': lambda g, sid, p: g.set_vote_timer(sid, p.code, p.seconds),
    'round:deal': lambda g, sid, p: g.deal(sid, p.code),
    'round:discuss': lambda g, sid, p: g.start_discussion(sid, p.code),
    'round:start-vote': lambda g, sid, p: g.start_vote(sid, p.code),
    'round:reveal': lambda g, sid, p: g.reveal(sid, p.code),
    'turn:submit': lambda g, sid, p: g.submit_turn(sid, p.code, p.word),
    'vote:cast': lambda g, sid, p: g.cast_vote(sid, p.code, p.target_id),
    'imposter:guess': lambda g, sid, p: g.guess(sid, p.code, p.guess),
    'game:end': lambda g, sid, p: g.end_game(sid, p.code),
    'game:reset': lambda g, sid, p: g.reset_game(sid, p.code),
    'dm:send': lambda g, sid, p: g.send_dm(sid, p.code, p.to, p.text),
}


def _make_action_handler(event: str):
    action = ACTIONS[event]

    def handler(data=None):
        payload = _parse(event, data)
        if payload is None:
            return
        action(_game(), _get_sid(), payload)

    handler.__name__ = f"handle_{event.replace(':', '_').replace('-', '_')}"
    return handler


def handle_error(exc):
    # Nothing escapes to the client; the room keeps whatever state it had
    current_app.logger.error(f"[socket-error] sid={_get_sid()} {exc!r}", exc_info=exc)


def register_socketio_handlers(namespace: str = NAMESPACE) -> None:
    """Register every Socket.IO event handler on ``namespace`` ('/ws')."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('room:create', handle_room_create, namespace=namespace)
    socketio.on_event('room:join', handle_room_join, namespace=namespace)
    socketio.on_event('room:leave', handle_room_leave, namespace=namespace)
    for event in ACTIONS:
        socketio.on_event(event, _make_action_handler(event), namespace=namespace)
    socketio.on_error(namespace)(handle_error)
