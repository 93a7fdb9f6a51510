import os
import sys
import pytest

# Ensure the backend root (containing the `squares` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from squares import create_app, db, socketio


class TestConfig:
    __test__ = False
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:3000']
    GAME_CODE_LENGTH = 6
    LOG_LEVEL = 'DEBUG'


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def publish(self, game_code, event, payload):
        self.events.append((game_code, event, payload))


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import squares.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def broadcaster(flask_app):
    recorder = RecordingBroadcaster()
    flask_app.extensions['squares_broadcaster'] = recorder
    return recorder


@pytest.fixture()
def game(client):
    """A pending game created over HTTP; returns the create response body."""
    res = client.post('/api/games/create', json={
        'name': 'Big Game',
        'pricePerSquare': 1,
        'payouts': {'Q1': 20, 'Q2': 20, 'Q3': 20, 'Final': 40},
        'adminName': 'Admin',
        'adminPhone': '555-000-0000',
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def join(client):
    """Join a player to a game over HTTP and return the session body."""
    def _join(game_code, name, phone, squares_to_buy=0):
        res = client.post(f'/api/games/{game_code}/join', json={
            'name': name,
            'phone': phone,
            'squaresToBuy': squares_to_buy,
        })
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _join
