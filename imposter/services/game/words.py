import random
from typing import Dict, List, Optional, Tuple

DEFAULT_TOPIC = 'classic'

WORD_LISTS: Dict[str, Tuple[str, ...]] = {
    'classic': ('apple', 'jupiter', 'guitar', 'ocean', 'pyramid', 'subway', 'volcano',
                'pancake', 'tornado', 'compass', 'castle'),
    'disney': ('Cinderella', 'Epcot', 'Imagineer', 'Monorail', 'Dole Whip', 'Haunted Mansion',
               'Tinker Bell', 'Fantasia', 'Skyliner'),
    'tech': ('firewall', 'container', 'webhook', 'endpoint', 'kernel', 'router', 'timestamp',
             'payload', 'virtualization'),
    'food': ('lasagna', 'sushi', 'taco', 'croissant', 'ramen', 'gelato', 'barbecue',
             'dumpling', 'paella'),
}


def topics() -> List[str]:
    return list(WORD_LISTS)


def normalize_topic(value: Optional[str]) -> str:
    """Map arbitrary client input to a catalog key, falling back to classic."""
    key = str(value or '').strip().lower()
    return key if key in WORD_LISTS else DEFAULT_TOPIC


def pick(topic: Optional[str]) -> str:
    """Draw one word for the topic. Every call is an independent uniform draw,
    so the same word may come up in consecutive rounds."""
    words = WORD_LISTS.get(topic or DEFAULT_TOPIC) or WORD_LISTS[DEFAULT_TOPIC]
    return random.choice(words)
