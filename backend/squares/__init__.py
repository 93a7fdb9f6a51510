from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Realtime fan-out used by the services after each committed mutation
    from squares.services.notifier import SocketIOBroadcaster
    flask_app.extensions['squares_broadcaster'] = SocketIOBroadcaster(socketio, namespace='/ws')

    from squares.main import main
    flask_app.register_blueprint(main)

    from squares.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from squares.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database with a demo game."""
        from squares.services.games import create_game, join_game
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            game = create_game(
                name='Demo Squares',
                price_per_square=1,
                payouts={'Q1': 25, 'Q2': 25, 'Q3': 25, 'Final': 25},
                admin_name='Admin',
                admin_phone='5550000000',
            )
            join_game(game.code, name='Player One', phone='5550000001', squares_to_buy=0)
            click.echo(f'Database has been reset and seeded! Demo game code: {game.code}')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
