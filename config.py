import os


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma-separated list of origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Room limits
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '10'))
    AVATAR_COUNT = int(os.environ.get('AVATAR_COUNT', '10'))
    POINTS_PER_CATEGORY = int(os.environ.get('POINTS_PER_CATEGORY', '10'))
    # Round countdown (seconds). The round expires when the value reaches TIMER_LIMIT.
    TIMER_TICK_SECONDS = float(os.environ.get('TIMER_TICK_SECONDS', '1'))
    TIMER_LIMIT = int(os.environ.get('TIMER_LIMIT', '61'))
    # Drop a room from the registry once its last player leaves
    DISCARD_EMPTY_SESSIONS = _env_flag('DISCARD_EMPTY_SESSIONS', True)
