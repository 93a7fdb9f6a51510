"""Game lifecycle: pending -> started -> completed.

Transitions are admin-only, never skip a state and never go backwards. Each is
committed as a conditional UPDATE on the expected current status, so starting a
game assigns its digit permutations exactly once even if two start requests
race.
"""
import json
import random

from flask import current_app
from sqlalchemy import update

from squares import db
from squares.models import Game, GRID_SIZE, STATUS_PENDING, STATUS_STARTED, STATUS_COMPLETED
from .errors import SquaresError, InvalidState
from .identity import get_game, require_admin
from .inputs import parse_id
from .notifier import notify

TRANSITIONS = {
    STATUS_PENDING: STATUS_STARTED,
    STATUS_STARTED: STATUS_COMPLETED,
}


def shuffled_digits():
    digits = list(range(GRID_SIZE))
    random.shuffle(digits)
    return digits


def _transition(game_code, admin_id, target, extra_values=None):
    admin_id = parse_id(admin_id, 'adminId')
    try:
        game = get_game(game_code, lock=True)
        require_admin(game, admin_id, 'Only admin can change the game status')
        source = game.status
        if TRANSITIONS.get(source) != target:
            raise InvalidState(f'Cannot move a {source} game to {target}')
        values = dict(extra_values or {})
        values['status'] = target
        result = db.session.execute(
            update(Game)
            .where(Game.id == game.id, Game.status == source)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidState(f'Cannot move a {source} game to {target}')
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[{target}-rejected] game={(game_code or '').upper()} admin={admin_id} reason={exc.message}"
        )
        raise

    # Pick up the values written by the UPDATE
    db.session.refresh(game)
    current_app.logger.info(f"[status] game={game.code} {source} -> {target}")
    notify(game.code, 'game-updated', {'status': game.status})
    return game


def start_game(game_code, admin_id):
    """Freeze selections and assign random row/column digits."""
    return _transition(
        game_code,
        admin_id,
        STATUS_STARTED,
        {
            'row_numbers': json.dumps(shuffled_digits()),
            'col_numbers': json.dumps(shuffled_digits()),
        },
    )


def complete_game(game_code, admin_id):
    return _transition(game_code, admin_id, STATUS_COMPLETED)
