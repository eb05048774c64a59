from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

# lobby -> roles -> discuss -> vote -> reveal, plus ended (host stopped the game)
PHASES = ('lobby', 'roles', 'discuss', 'vote', 'reveal', 'ended')


@dataclass
class Player:
    name: str
    is_imposter: Optional[bool] = None
    word: Optional[str] = None
    vote_for: Optional[str] = None
    guessed: bool = False

    @property
    def has_role(self) -> bool:
        return self.is_imposter is not None

    def clear_round(self) -> None:
        self.is_imposter = None
        self.word = None
        self.vote_for = None
        self.guessed = False

    def to_dict(self, pid: str):
        return {'id': pid, 'name': self.name}


@dataclass
class Room:
    code: str
    timer_sec: int
    vote_timer_sec: int
    host: Optional[str] = None
    topic: Optional[str] = None
    phase: str = 'lobby'
    secret_word: Optional[str] = None
    round_number: int = 0
    order: List[str] = field(default_factory=list)  # turn sequence snapshot for the round
    start_index: int = 0
    current_turn: Optional[str] = None
    turns_remaining: int = 0
    spoken: Set[str] = field(default_factory=set)  # ids that already submitted this discussion
    players: Dict[str, Player] = field(default_factory=dict)

    def name_of(self, pid: Optional[str]) -> str:
        player = self.players.get(pid) if pid else None
        return player.name if player else 'Player'

    def imposters(self) -> List[str]:
        return [pid for pid, p in self.players.items() if p.is_imposter]

    def clear_round(self) -> None:
        """Drop everything dealt for the current round, keeping settings and the round counter."""
        self.secret_word = None
        self.current_turn = None
        self.turns_remaining = 0
        self.spoken = set()
        for p in self.players.values():
            p.clear_round()

    def order_with_names(self):
        return [{'id': pid, 'name': self.name_of(pid)} for pid in self.order]

    def to_dict(self):
        """Public view. Never includes secret words, roles or votes."""
        return {
            'code': self.code,
            'host': self.host,
            'topic': self.topic,
            'phase': self.phase,
            'timerSec': self.timer_sec,
            'voteTimerSec': self.vote_timer_sec,
            'currentTurn': self.current_turn,
            'order': self.order_with_names(),
            'players': [p.to_dict(pid) for pid, p in self.players.items()],
        }
