import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed to open sockets / call the API
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    ).split(',') if o.strip()]
    # Countdown defaults (seconds); hosts can change them per room
    DISCUSS_TIMER_DEFAULT_SEC = int(os.environ.get('DISCUSS_TIMER_DEFAULT_SEC', '90'))
    VOTE_TIMER_DEFAULT_SEC = int(os.environ.get('VOTE_TIMER_DEFAULT_SEC', '25'))
    # Minimum players to deal a round
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '3'))
    # Countdown tick granularity (ms)
    TIMER_TICK_MS = int(os.environ.get('TIMER_TICK_MS', '250'))
    # Text limits
    TURN_TEXT_MAX_LEN = int(os.environ.get('TURN_TEXT_MAX_LEN', '40'))
    DM_TEXT_MAX_LEN = int(os.environ.get('DM_TEXT_MAX_LEN', '200'))
