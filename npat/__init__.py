from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(config):
    origins = config.get('CORS_ORIGINS') or ['*']
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(',') if o.strip()]
    return '*' if '*' in origins else origins


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = _allowed_origins(flask_app.config)
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from npat.main import main
    flask_app.register_blueprint(main)

    # One game engine per app instance; handlers reach it through app.extensions
    from npat.services.games.broadcast import Broadcaster
    from npat.services.games.coordinator import RoundCoordinator
    from npat.services.games.registry import SessionRegistry
    from npat.services.games.timer import CountdownTimer

    cfg = flask_app.config
    namespace = cfg.get('SOCKETIO_NAMESPACE', '/')
    broadcast = Broadcaster(socketio, namespace)
    registry = SessionRegistry(
        max_players=int(cfg.get('MAX_PLAYERS', 10)),
        avatar_count=int(cfg.get('AVATAR_COUNT', 10)),
        discard_empty=bool(cfg.get('DISCARD_EMPTY_SESSIONS', True)),
        logger=flask_app.logger,
    )
    # Countdown loops are not spawned in tests unless asked for
    run_timer = not cfg.get('TESTING') or cfg.get('ENABLE_TIMER_IN_TESTS')
    timer = CountdownTimer(
        registry,
        broadcast,
        logger=flask_app.logger,
        tick_seconds=float(cfg.get('TIMER_TICK_SECONDS', 1)),
        limit=int(cfg.get('TIMER_LIMIT', 61)),
        spawn=socketio.start_background_task if run_timer else None,
        sleep=socketio.sleep,
    )
    flask_app.extensions['npat'] = RoundCoordinator(
        registry,
        timer,
        broadcast,
        points_per_category=int(cfg.get('POINTS_PER_CATEGORY', 10)),
        logger=flask_app.logger,
    )

    # Register Socket.IO event handlers on the initialized socketio instance
    from npat.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    return flask_app
