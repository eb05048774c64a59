import re
from typing import Dict, Optional, Tuple

from imposter.models import Room


def tally_votes(room: Room) -> Tuple[Dict[str, int], int]:
    """Count vote_for per target, scanning players in join order.

    Returns (tally, votes cast). Each player contributes at most one vote, so
    re-voting moves a vote instead of adding one.
    """
    tally: Dict[str, int] = {}
    cast = 0
    for p in room.players.values():
        if p.vote_for:
            tally[p.vote_for] = tally.get(p.vote_for, 0) + 1
            cast += 1
    return tally, cast


def pick_executed(tally: Dict[str, int]) -> Optional[str]:
    """Target with the strictly highest count.

    Ties go to the target seen first in the tally, i.e. the one whose first
    vote came from the earliest-joined voter. This keeps reveals deterministic.
    """
    executed, best = None, -1
    for target, count in tally.items():
        if count > best:
            executed, best = target, count
    return executed


def normalize_guess(text: Optional[str]) -> str:
    return re.sub(r'\s+', ' ', str(text or '')).strip().lower()


def guess_matches(guess: Optional[str], secret: Optional[str]) -> bool:
    if not secret:
        return False
    cleaned = normalize_guess(guess)
    return bool(cleaned) and cleaned == normalize_guess(secret)


def round_results(room: Room, jailbreak: Optional[str] = None):
    """Build the round:results payload for a reveal."""
    imposters = room.imposters()
    if jailbreak is not None:
        return {
            'executed': None,
            'isHit': False,
            'imposters': imposters,
            'secret': room.secret_word,
            'jailbreak': jailbreak,
        }
    tally, _ = tally_votes(room)
    executed = pick_executed(tally)
    target = room.players.get(executed) if executed else None
    return {
        'executed': executed,
        'isHit': bool(target and target.is_imposter),
        'imposters': imposters,
        'secret': room.secret_word,
    }
