from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One game service per app; it owns the room registry and the countdowns.
    # Under TESTING countdowns only advance when the tests step them.
    from imposter.services.game import GameService, SocketIOBroadcaster
    run_timers = not flask_app.config.get('TESTING') or flask_app.config.get('ENABLE_TIMERS_IN_TESTS')
    flask_app.extensions['imposter_game'] = GameService(
        SocketIOBroadcaster(socketio),
        config=flask_app.config,
        logger=flask_app.logger,
        spawn=socketio.start_background_task if run_timers else None,
        sleep=socketio.sleep,
    )

    # Import and register blueprints here
    from imposter.main import main
    flask_app.register_blueprint(main)

    from imposter.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers
    from imposter.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('topics')
    def topics_command():
        """Lists the word catalog topics and their words."""
        from imposter.services.game import words
        for topic in words.topics():
            click.echo(f"{topic}: {', '.join(words.WORD_LISTS[topic])}")

    flask_app.cli.add_command(topics_command)

    return flask_app
