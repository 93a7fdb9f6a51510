"""Threaded claim storms against a file-backed database.

Each thread pushes its own app context and therefore gets its own session and
connection, so the checks and writes really do interleave at the store.
"""
import threading

import pytest

from squares import create_app, db
from squares.models import Square
from squares.services import capacity, ledger
from squares.services.errors import CapacityExceeded, Conflict
from squares.services.games import create_game, join_game
from conftest import TestConfig


@pytest.fixture()
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'squares.db'}"
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'check_same_thread': False, 'timeout': 30}}

    application = create_app(FileConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


def _storm(app, attempts):
    """Run (game_code, row, col, user_id) claims concurrently; return outcomes."""
    barrier = threading.Barrier(len(attempts))
    outcomes = []
    lock = threading.Lock()

    def worker(game_code, row, col, user_id):
        with app.app_context():
            barrier.wait()
            try:
                ledger.claim(game_code, row, col, user_id)
                result = 'ok'
            except (Conflict, CapacityExceeded) as exc:
                result = type(exc).__name__
            finally:
                db.session.remove()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=a) for a in attempts]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return outcomes


def test_concurrent_claims_on_one_cell(file_app):
    game = create_game('Storm', 1, None, 'Admin', '5550000000')
    code, game_id = game.code, game.id
    players = [join_game(code, f'P{i}', f'555400000{i}').id for i in range(8)]
    db.session.remove()

    outcomes = _storm(file_app, [(code, 4, 4, uid) for uid in players])

    assert len(outcomes) == len(players)
    assert outcomes.count('ok') == 1
    assert outcomes.count('Conflict') == len(players) - 1
    owner = Square.query.filter_by(game_id=game_id, row_index=4, col_index=4).one().user_id
    assert owner in players


def test_concurrent_claims_respect_capacity(file_app):
    game = create_game('Crunch', 1, None, 'Admin', '5550000000')
    code, game_id, admin_id = game.code, game.id, game.admin_id
    bob = join_game(code, 'Bob', '5552222222').id
    alice = join_game(code, 'Alice', '5551111111').id

    # Leave four free cells on the board
    free = [(9, 6), (9, 7), (9, 8), (9, 9)]
    for r in range(10):
        for c in range(10):
            if (r, c) not in free:
                ledger.reassign(code, r, c, admin_id, bob)
    db.session.remove()

    outcomes = _storm(file_app, [(code, r, c, alice) for r, c in free])

    # 0 < 4 and 1 < 3 pass; 2 < 2 does not
    assert outcomes.count('ok') == 2
    assert outcomes.count('CapacityExceeded') == 2
    assert capacity.per_user_count(game_id, alice) == 2
    assert capacity.taken_count(game_id) == 98
