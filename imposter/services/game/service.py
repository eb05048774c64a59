import logging
import math
import random
import threading
import time
from functools import wraps
from typing import Optional

from imposter.models import Player, Room
from . import words
from .broadcast import emit_turn_state, emit_update, role_payload, turn_state
from .registry import RoomRegistry
from .timers import TimerManager
from .voting import guess_matches, round_results, tally_votes

DISCUSS_BOUNDS = (10, 600)
VOTE_BOUNDS = (5, 180)
NAME_MAX_LEN = 24


def serialized(func):
    """Run the wrapped method under the service lock.

    Socket handlers and timer ticks all funnel through here, so no two of them
    ever touch room state at the same time.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return func(self, *args, **kwargs)
    return wrapper


def _whole_seconds(value) -> Optional[int]:
    try:
        return int(math.floor(float(value)))
    except (TypeError, ValueError, OverflowError):
        return None


def _clean_name(name, default: str) -> str:
    return str(name or '').strip()[:NAME_MAX_LEN] or default


class GameService:
    """Owns every room and applies player/host actions to them.

    Guard failures (wrong phase, wrong actor, bad values, unknown rooms) are
    silent no-ops. The only targeted failure notice is ``round:error`` when a
    deal or discussion is requested with too few players.
    """

    def __init__(self, broadcaster, config=None, logger=None, spawn=None, sleep=None,
                 clock=time.monotonic, wall_clock=time.time):
        cfg = config or {}
        self.broadcaster = broadcaster
        self.logger = logger or logging.getLogger(__name__)
        self.min_players = int(cfg.get('MIN_PLAYERS', 3))
        self.turn_text_max = int(cfg.get('TURN_TEXT_MAX_LEN', 40))
        self.dm_text_max = int(cfg.get('DM_TEXT_MAX_LEN', 200))
        self._wall_clock = wall_clock
        self._lock = threading.RLock()
        self.registry = RoomRegistry(
            timer_sec=int(cfg.get('DISCUSS_TIMER_DEFAULT_SEC', 90)),
            vote_timer_sec=int(cfg.get('VOTE_TIMER_DEFAULT_SEC', 25)),
        )
        self.timers = TimerManager(
            interval=int(cfg.get('TIMER_TICK_MS', 250)) / 1000.0,
            lock=self._lock,
            spawn=spawn,
            sleep=sleep,
            clock=clock,
            logger=self.logger,
        )

    # ---- lookups ----

    @serialized
    def public_state(self, code: str):
        room = self.registry.get(code)
        return room.to_dict() if room else None

    @serialized
    def room_of(self, sid: str) -> Optional[str]:
        return self.registry.room_of(sid)

    def _host_room(self, sid: str, code: str) -> Optional[Room]:
        room = self.registry.get(code)
        if room is None or room.host != sid:
            self.logger.debug(f"[reject] room={code} sid={sid} not host")
            return None
        return room

    def _enough_players(self, sid: str, room: Room) -> bool:
        have = len(room.players)
        if have >= self.min_players:
            return True
        self.broadcaster.to_player(sid, 'round:error', {
            'reason': 'not_enough_players', 'need': self.min_players, 'have': have,
        })
        self.logger.info(f"[round-error] room={room.code} need={self.min_players} have={have}")
        return False

    # ---- membership ----

    @serialized
    def create_room(self, sid: str, code: str, name=None) -> Room:
        return self._enter(sid, code, _clean_name(name, 'Host'), as_host=True)

    @serialized
    def join_room(self, sid: str, code: str, name=None) -> Room:
        return self._enter(sid, code, _clean_name(name, 'Player'))

    def _enter(self, sid: str, code: str, name: str, as_host: bool = False) -> Room:
        previous = self.registry.room_of(sid)
        if previous is not None and previous != code:
            self.registry.unbind(sid)
            self._remove(previous, sid)
        fresh = code not in self.registry
        room = self.registry.ensure(code)
        if as_host:
            room.host = sid
        player = room.players.get(sid)
        if player is None:
            room.players[sid] = Player(name=name)
        else:
            player.name = name
        self.registry.bind(sid, code)
        self.logger.info(
            f"[join] room={code} sid={sid} name={name} host={as_host} new_room={fresh} players={len(room.players)}"
        )
        emit_update(self.broadcaster, room)
        return room

    @serialized
    def leave(self, sid: str) -> Optional[str]:
        """Remove the connection from whatever room it is in. Returns that room's code."""
        code = self.registry.unbind(sid)
        if code is not None:
            self._remove(code, sid)
        return code

    def _remove(self, code: str, sid: str) -> None:
        room = self.registry.get(code)
        if room is None or room.players.pop(sid, None) is None:
            return
        if room.host == sid:
            room.host = None

        turn_moved = False
        if sid in room.order:
            old_idx = room.order.index(sid)
            room.order.pop(old_idx)
            if old_idx < room.start_index:
                room.start_index -= 1
            room.start_index = room.start_index % len(room.order) if room.order else 0
            # a player who had not spoken forfeits their one pending turn
            if room.phase == 'discuss' and sid not in room.spoken and room.turns_remaining > 0:
                room.turns_remaining -= 1
            if room.current_turn == sid:
                room.current_turn = self._next_unspoken(room, old_idx)
                turn_moved = True
        room.spoken.discard(sid)
        self.logger.info(f"[leave] room={code} sid={sid} players={len(room.players)}")

        if not room.players:
            self.timers.stop(code)
            self.registry.delete(code)
            self.logger.info(f"[room-deleted] room={code}")
            return

        if room.phase == 'discuss' and (room.current_turn is None or room.turns_remaining <= 0):
            self._enter_vote(room)
            return
        if turn_moved:
            emit_turn_state(self.broadcaster, room)
        emit_update(self.broadcaster, room)

        if room.phase == 'vote':
            for p in room.players.values():
                if p.vote_for == sid:
                    p.vote_for = None
            tally, cast = tally_votes(room)
            self.broadcaster.to_room(code, 'vote:update', {'tally': tally, 'total': cast})
            if cast == len(room.players):
                self._reveal(room)

    # ---- read-only requests ----

    @serialized
    def sync(self, sid: str, code: str) -> None:
        room = self.registry.get(code)
        if room is None:
            return
        self.broadcaster.to_player(sid, 'room:update', room.to_dict())
        if room.phase == 'discuss':
            self.broadcaster.to_player(sid, 'turn:state', turn_state(room))

    @serialized
    def remind_role(self, sid: str, code: str) -> None:
        room = self.registry.get(code)
        player = room.players.get(sid) if room else None
        if player is None or not player.has_role or room.secret_word is None:
            return
        self.broadcaster.to_player(sid, 'role:assign', role_payload(room, sid))

    # ---- host settings ----

    @serialized
    def set_topic(self, sid: str, code: str, topic) -> None:
        room = self._host_room(sid, code)
        if room is None or room.phase in ('discuss', 'vote'):
            return
        self.timers.stop(code)
        room.topic = words.normalize_topic(topic)
        room.phase = 'lobby'
        room.clear_round()
        self.logger.info(f"[topic] room={code} topic={room.topic}")
        emit_update(self.broadcaster, room)

    @serialized
    def set_timer(self, sid: str, code: str, seconds) -> None:
        room = self._host_room(sid, code)
        s = _whole_seconds(seconds)
        if room is None or s is None or not DISCUSS_BOUNDS[0] <= s <= DISCUSS_BOUNDS[1]:
            return
        room.timer_sec = s
        emit_update(self.broadcaster, room)

    @serialized
    def set_vote_timer(self, sid: str, code: str, seconds) -> None:
        room = self._host_room(sid, code)
        s = _whole_seconds(seconds)
        if room is None or s is None or not VOTE_BOUNDS[0] <= s <= VOTE_BOUNDS[1]:
            return
        room.vote_timer_sec = s
        emit_update(self.broadcaster, room)

    # ---- round flow ----

    @serialized
    def deal(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None or room.phase not in ('lobby', 'roles', 'reveal'):
            return
        if not self._enough_players(sid, room):
            return
        self._deal(room)
        emit_update(self.broadcaster, room)

    def _deal(self, room: Room) -> None:
        self.timers.stop(room.code)
        topic = room.topic or words.DEFAULT_TOPIC
        secret = words.pick(topic)
        ids = list(room.players)
        imposter_id = random.choice(ids)
        room.secret_word = secret
        for pid, p in room.players.items():
            p.is_imposter = pid == imposter_id
            p.word = None if p.is_imposter else secret
            p.vote_for = None
            p.guessed = False
            self.broadcaster.to_player(pid, 'role:assign', role_payload(room, pid))

        room.order = ids
        room.round_number += 1
        room.start_index = (room.round_number - 1) % len(room.order)
        room.current_turn = None
        room.turns_remaining = 0
        room.spoken = set()
        room.phase = 'roles'
        self.logger.info(
            f"[deal] room={room.code} round={room.round_number} players={len(ids)} start_index={room.start_index}"
        )

    @serialized
    def start_discussion(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None or room.phase not in ('lobby', 'roles'):
            return
        if not self._enough_players(sid, room):
            return
        if room.secret_word is None or not room.order:
            self._deal(room)

        room.start_index %= len(room.order)
        room.phase = 'discuss'
        room.spoken = set()
        room.turns_remaining = len(room.order)
        room.current_turn = room.order[room.start_index]
        emit_turn_state(self.broadcaster, room)
        emit_update(self.broadcaster, room)
        self.timers.start(code, room.timer_sec, 'discuss',
                          lambda secs: self._on_tick(code, secs),
                          lambda: self._on_discussion_expired(code))

    @serialized
    def submit_turn(self, sid: str, code: str, text) -> None:
        room = self.registry.get(code)
        if room is None or room.phase != 'discuss':
            return
        clean = str(text or '').strip()[:self.turn_text_max]
        if not clean or sid != room.current_turn:
            return

        self.broadcaster.to_room(code, 'turn:word', {
            'pid': sid, 'name': room.name_of(sid), 'text': clean,
        })
        room.spoken.add(sid)
        room.turns_remaining = max(0, room.turns_remaining - 1)
        nxt = None
        if room.turns_remaining > 0:
            nxt = self._next_unspoken(room, room.order.index(sid) + 1)
        if nxt is None:
            self._enter_vote(room)
            return
        room.current_turn = nxt
        emit_turn_state(self.broadcaster, room)
        emit_update(self.broadcaster, room)

    def _next_unspoken(self, room: Room, from_idx: int) -> Optional[str]:
        """First id in order at or after from_idx (wrapping) that has not spoken yet."""
        n = len(room.order)
        for k in range(n):
            pid = room.order[(from_idx + k) % n]
            if pid not in room.spoken:
                return pid
        return None

    @serialized
    def start_vote(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None or room.phase not in ('discuss', 'vote'):
            return
        self._enter_vote(room)

    def _enter_vote(self, room: Room) -> None:
        code = room.code
        self.timers.stop(code)
        room.phase = 'vote'
        for p in room.players.values():
            p.vote_for = None
        room.current_turn = None
        room.turns_remaining = 0
        self.logger.info(f"[vote] room={code} round={room.round_number}")
        emit_update(self.broadcaster, room)
        self.timers.start(code, room.vote_timer_sec, 'vote',
                          lambda secs: self._on_tick(code, secs),
                          lambda: self._on_vote_expired(code))

    @serialized
    def cast_vote(self, sid: str, code: str, target_id) -> None:
        room = self.registry.get(code)
        if room is None or room.phase != 'vote':
            return
        voter = room.players.get(sid)
        if voter is None or target_id == sid or target_id not in room.players:
            return
        voter.vote_for = target_id
        tally, cast = tally_votes(room)
        self.broadcaster.to_room(code, 'vote:update', {'tally': tally, 'total': cast})
        if cast == len(room.players):
            self._reveal(room)

    @serialized
    def guess(self, sid: str, code: str, guess) -> None:
        room = self.registry.get(code)
        if room is None or room.phase != 'vote':
            return
        player = room.players.get(sid)
        if player is None or not player.is_imposter or player.guessed:
            return
        player.guessed = True
        ok = guess_matches(guess, room.secret_word)
        self.logger.info(f"[guess] room={code} sid={sid} ok={ok}")
        self.broadcaster.to_player(sid, 'guess:result', {'ok': ok})
        if ok:
            self._reveal(room, jailbreak=sid)

    @serialized
    def reveal(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None or room.phase != 'vote':
            return
        self._reveal(room)

    def _reveal(self, room: Room, jailbreak: Optional[str] = None) -> None:
        self.timers.stop(room.code)
        results = round_results(room, jailbreak=jailbreak)
        room.phase = 'reveal'
        room.current_turn = None
        room.turns_remaining = 0
        self.logger.info(
            f"[reveal] room={room.code} executed={results['executed']} hit={results['isHit']} jailbreak={jailbreak}"
        )
        self.broadcaster.to_room(room.code, 'round:results', results)
        emit_update(self.broadcaster, room)

    @serialized
    def reset_game(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None:
            return
        self.timers.stop(code)
        room.clear_round()
        room.order = []
        room.start_index = 0
        room.phase = 'lobby'
        self.logger.info(f"[reset] room={code}")
        emit_update(self.broadcaster, room)

    @serialized
    def end_game(self, sid: str, code: str) -> None:
        room = self._host_room(sid, code)
        if room is None:
            return
        self.timers.stop(code)
        room.phase = 'ended'
        room.current_turn = None
        room.turns_remaining = 0
        self.logger.info(f"[end] room={code}")
        self.broadcaster.to_room(code, 'game:ended', {})
        emit_update(self.broadcaster, room)

    # ---- messaging ----

    @serialized
    def send_dm(self, sid: str, code: str, to, text) -> None:
        room = self.registry.get(code)
        if room is None or to == sid:
            return
        sender = room.players.get(sid)
        if sender is None or to not in room.players:
            return
        clean = str(text or '').strip()[:self.dm_text_max]
        if not clean:
            return
        payload = {
            'from': sid,
            'to': to,
            'name': sender.name,
            'text': clean,
            'at': int(self._wall_clock() * 1000),
        }
        self.broadcaster.to_player(to, 'dm:msg', payload)
        self.broadcaster.to_player(sid, 'dm:msg', payload)

    # ---- timer callbacks (already under the lock via TimerManager) ----

    def _on_tick(self, code: str, secs: int) -> None:
        if code in self.registry:
            self.broadcaster.to_room(code, 'timer:tick', {'secs': secs})

    def _on_discussion_expired(self, code: str) -> None:
        room = self.registry.get(code)
        if room is None or room.phase != 'discuss':
            return
        self._enter_vote(room)
        self.broadcaster.to_room(code, 'timer:end', {})

    def _on_vote_expired(self, code: str) -> None:
        room = self.registry.get(code)
        if room is None or room.phase != 'vote':
            return
        self._reveal(room)
        self.broadcaster.to_room(code, 'timer:end', {})
