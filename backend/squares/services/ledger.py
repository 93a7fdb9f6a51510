"""Square ledger: the only writer of square ownership.

Claims and releases are committed as conditional UPDATE statements carrying
the ownership (and, for claims, capacity) predicates, issued while the game row
is locked. Two requests racing for one cell therefore produce exactly one
winner, and the pool can never be overrun by users who both saw room left.
"""
from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.orm import aliased

from squares import db
from squares.models import Square, User, STATUS_PENDING, TOTAL_SQUARES
from . import capacity
from .errors import (
    SquaresError, InvalidArgument, NotFound, Forbidden, InvalidState, Conflict, CapacityExceeded,
)
from .identity import get_game, get_player, require_admin
from .inputs import parse_cell, parse_id, parse_int
from .notifier import notify


def _require_pending(game, message='Game has started - no more selections'):
    if game.status != STATUS_PENDING:
        raise InvalidState(message)


def _current_owner(game_id, row, col):
    found = db.session.query(Square.user_id).filter_by(
        game_id=game_id, row_index=row, col_index=col
    ).first()
    if found is None:
        raise NotFound('Square not found')
    return found[0]


def _cell(game_id, row, col):
    return (
        Square.game_id == game_id,
        Square.row_index == row,
        Square.col_index == col,
    )


def claim(game_code, row, col, user_id):
    """Give an unowned square to ``user_id``.

    A player may hold at most as many squares as remain unclaimed pool-wide at
    the moment of the claim. Raises the player's squares_to_buy when the new
    count exceeds it and re-opens their pick lock.
    """
    user_id = parse_id(user_id, 'userId')
    row, col = parse_cell(row, col)
    try:
        game = get_game(game_code, lock=True)
        user = get_player(game, user_id)
        _require_pending(game)

        if _current_owner(game.id, row, col) is not None:
            raise Conflict('Square already taken', status_code=400)
        if capacity.per_user_count(game.id, user.id) >= capacity.available(game.id):
            raise CapacityExceeded('No more squares available')

        other = aliased(Square)
        held = select(func.count(other.id)).where(
            other.game_id == game.id, other.user_id == user.id
        ).scalar_subquery()
        taken = select(func.count(other.id)).where(
            other.game_id == game.id, other.user_id.isnot(None)
        ).scalar_subquery()
        result = db.session.execute(
            update(Square)
            .where(*_cell(game.id, row, col))
            .where(Square.user_id.is_(None), held < TOTAL_SQUARES - taken)
            .values(user_id=user.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Lost the race between the checks above and the write
            if _current_owner(game.id, row, col) is not None:
                raise Conflict('Square already taken', status_code=400)
            raise CapacityExceeded('No more squares available')

        new_count = capacity.per_user_count(game.id, user.id)
        if new_count > user.squares_to_buy:
            user.squares_to_buy = new_count
        user.picks_submitted = False
        db.session.add(user)
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[claim-rejected] game={(game_code or '').upper()} row={row} col={col} user={user_id} reason={exc.message}"
        )
        raise

    current_app.logger.info(
        f"[claim] game={game.code} row={row} col={col} user={user.id} count={new_count} target={user.squares_to_buy}"
    )
    notify(game.code, 'square-updated', {'row': row, 'col': col, 'userId': user.id})
    return user


def release(game_code, row, col, user_id):
    """Return one of the caller's squares to the pool.

    Lowers squares_to_buy to the new count when it drops below the target, but
    never to zero: releasing the last square leaves the target alone.
    """
    user_id = parse_id(user_id, 'userId')
    row, col = parse_cell(row, col)
    try:
        game = get_game(game_code, lock=True)
        user = get_player(game, user_id)
        _require_pending(game)

        if _current_owner(game.id, row, col) != user.id:
            raise Forbidden('You can only deselect your own squares', status_code=400)

        result = db.session.execute(
            update(Square)
            .where(*_cell(game.id, row, col))
            .where(Square.user_id == user.id)
            .values(user_id=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise Forbidden('You can only deselect your own squares', status_code=400)

        new_count = capacity.per_user_count(game.id, user.id)
        if 1 <= new_count < user.squares_to_buy:
            user.squares_to_buy = new_count
        user.picks_submitted = False
        db.session.add(user)
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[release-rejected] game={(game_code or '').upper()} row={row} col={col} user={user_id} reason={exc.message}"
        )
        raise

    current_app.logger.info(
        f"[release] game={game.code} row={row} col={col} user={user.id} count={new_count} target={user.squares_to_buy}"
    )
    notify(game.code, 'square-updated', {'row': row, 'col': col, 'userId': None})
    return user


def reassign(game_code, row, col, admin_id, target_user_id):
    """Admin override: set or clear a square's owner regardless of capacity.

    Leaves every player's squares_to_buy and pick lock untouched.
    """
    admin_id = parse_id(admin_id, 'adminId')
    row, col = parse_cell(row, col)
    if target_user_id is None or target_user_id == '':
        target = None
    else:
        target = parse_int(target_user_id, 'assignToUserId')
    try:
        game = get_game(game_code, lock=True)
        require_admin(game, admin_id, 'Only admin can assign squares')
        _require_pending(game, 'Game has started - no more changes')
        if target is not None and not User.query.filter_by(id=target, game_id=game.id).first():
            raise InvalidArgument('Invalid user to assign')

        result = db.session.execute(
            update(Square)
            .where(*_cell(game.id, row, col))
            .values(user_id=target)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise NotFound('Square not found')
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[assign-rejected] game={(game_code or '').upper()} row={row} col={col} admin={admin_id} reason={exc.message}"
        )
        raise

    current_app.logger.info(f"[assign] game={game.code} row={row} col={col} user={target} admin={admin_id}")
    notify(game.code, 'square-updated', {'row': row, 'col': col, 'userId': target})
