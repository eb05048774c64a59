"""
Inbound Socket.IO payloads, one model per event name.

Handlers validate here before anything reaches the game service; a payload
that does not fit its model is dropped.
"""

from typing import Any, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RoomPayload(Payload):
    """Any event that only names the room"""
    code: str = Field(min_length=1)


class RoomEnter(RoomPayload):
    # any value; the service turns it into a display name or falls back to the default
    name: Any = None


class TopicSet(RoomPayload):
    topic: Optional[str] = None


class TimerSet(RoomPayload):
    seconds: float


class TurnSubmit(RoomPayload):
    word: Optional[str] = None


class VoteCast(RoomPayload):
    target_id: str = Field(alias='targetId')


class ImposterGuess(RoomPayload):
    guess: Optional[str] = None


class DirectMessage(RoomPayload):
    to: str
    text: Optional[str] = None


class RoomLeave(Payload):
    pass


EVENT_MODELS = {
    'room:create': RoomEnter,
    'room:join': RoomEnter,
    'room:sync': RoomPayload,
    'role:remind': RoomPayload,
    'topic:set': TopicSet,
    'timer:set': TimerSet,
    'voteTimer:set': TimerSet,
    'round:deal': RoomPayload,
    'round:discuss': RoomPayload,
    'round:start-vote': RoomPayload,
    'round:reveal': RoomPayload,
    'turn:submit': TurnSubmit,
    'vote:cast': VoteCast,
    'imposter:guess': ImposterGuess,
    'game:end': RoomPayload,
    'game:reset': RoomPayload,
    'dm:send': DirectMessage,
    'room:leave': RoomLeave,
}


def parse_event(event: str, data) -> Optional[Payload]:
    """Validate ``data`` against the model registered for ``event``.

    Returns None for unknown events or malformed payloads.
    """
    model: Optional[Type[Payload]] = EVENT_MODELS.get(event)
    if model is None:
        return None
    try:
        return model.model_validate(data if isinstance(data, dict) else {})
    except ValidationError:
        return None
