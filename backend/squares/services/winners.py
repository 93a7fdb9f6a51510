import json

from flask import current_app
from sqlalchemy import update

from squares import db
from squares.models import Square, QUARTERS, STATUS_STARTED, STATUS_COMPLETED
from .errors import SquaresError, NotFound, InvalidState
from .identity import get_game, require_admin
from .inputs import parse_cell, parse_id
from .notifier import notify


def filter_quarters(quarters):
    """Keep recognised quarter tags in the given order; anything else is dropped."""
    if not isinstance(quarters, (list, tuple)):
        return []
    return [q for q in quarters if isinstance(q, str) and q in QUARTERS]


def set_winners(game_code, row, col, admin_id, quarters):
    """Replace a square's winning quarters. Ownership is not consulted."""
    admin_id = parse_id(admin_id, 'adminId')
    row, col = parse_cell(row, col)
    valid = filter_quarters(quarters)
    try:
        game = get_game(game_code, lock=True)
        require_admin(game, admin_id, 'Only admin can set winners')
        if game.status not in (STATUS_STARTED, STATUS_COMPLETED):
            raise InvalidState('Game must be started to mark winners')
        result = db.session.execute(
            update(Square)
            .where(Square.game_id == game.id, Square.row_index == row, Square.col_index == col)
            .values(winners=json.dumps(valid))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound('Square not found')
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[winner-rejected] game={(game_code or '').upper()} row={row} col={col} admin={admin_id} reason={exc.message}"
        )
        raise

    current_app.logger.info(f"[winner] game={game.code} row={row} col={col} winners={valid}")
    notify(game.code, 'winner-updated', {'row': row, 'col': col, 'winners': valid})
    return valid
