"""Game creation, joining, and read-only snapshots.

Reads pass no lifecycle gates and take no locks; they return whatever has
been committed at the time of the call.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from squares import db
from squares.models import (
    Game, User, Square, GRID_SIZE, TOTAL_SQUARES, QUARTERS, STATUS_PENDING, generate_game_code, load_json_list,
)
from . import capacity
from .errors import InvalidArgument, InvalidState, Conflict
from .identity import get_game, require_phone
from .inputs import parse_int
from .notifier import notify

_PAYOUT_COLUMNS = {
    'Q1': 'payout_q1',
    'Q2': 'payout_q2',
    'Q3': 'payout_q3',
    'Final': 'payout_final',
}


def _parse_amount(value, field):
    if value is None or value == '':
        return 0.0
    if isinstance(value, bool):
        raise InvalidArgument(f'{field} must be a number')
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f'{field} must be a number')
    if amount < 0:
        raise InvalidArgument(f'{field} cannot be negative')
    return amount


def _require_name(value, field):
    if not value or not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f'{field} is required')
    return value.strip()


def create_game(name, price_per_square, payouts, admin_name, admin_phone):
    """Create a pending game, its admin user and all 100 squares in one commit."""
    name = _require_name(name, 'Game name')
    admin_name = _require_name(admin_name, 'Admin name')
    phone = require_phone(admin_phone)
    price = _parse_amount(price_per_square, 'pricePerSquare')
    payouts = payouts or {}
    if not isinstance(payouts, dict):
        raise InvalidArgument('payouts must be an object')
    amounts = {q: _parse_amount(payouts.get(q), f'payouts.{q}') for q in QUARTERS}

    length = int(current_app.config.get('GAME_CODE_LENGTH', 6))
    game = Game(
        code=generate_game_code(length),
        name=name,
        status=STATUS_PENDING,
        price_per_square=price,
        **{_PAYOUT_COLUMNS[q]: amounts[q] for q in QUARTERS},
    )
    db.session.add(game)
    db.session.flush()

    admin = User(game_id=game.id, name=admin_name, phone=phone, is_admin=True, squares_to_buy=0)
    db.session.add(admin)
    db.session.flush()
    game.admin_id = admin.id

    db.session.add_all(
        Square(game_id=game.id, row_index=r, col_index=c)
        for r in range(GRID_SIZE)
        for c in range(GRID_SIZE)
    )
    db.session.commit()
    current_app.logger.info(f"[create] game={game.code} id={game.id} admin={admin.id}")
    return game


def join_game(game_code, name, phone, squares_to_buy=0):
    """Register a player in a pending game under a phone number."""
    name = _require_name(name, 'Name')
    normalized = require_phone(phone)
    target = 0 if squares_to_buy is None else parse_int(squares_to_buy, 'squaresToBuy')
    if not 0 <= target <= TOTAL_SQUARES:
        raise InvalidArgument(f'squaresToBuy must be between 0 and {TOTAL_SQUARES}')

    game = get_game(game_code)
    if game.status != STATUS_PENDING:
        raise InvalidState('This game has already started')
    if User.query.filter_by(game_id=game.id, phone=normalized).first():
        raise Conflict('This phone number has already joined this game')

    user = User(game_id=game.id, name=name, phone=normalized, is_admin=False, squares_to_buy=target)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request registered the same phone first
        db.session.rollback()
        raise Conflict('This phone number has already joined this game')

    current_app.logger.info(f"[join] game={game.code} user={user.id} target={target}")
    notify(game.code, 'player-joined', {'userId': user.id, 'name': user.name})
    return user


def grid_snapshot(game_code):
    game = get_game(game_code)
    rows = (
        db.session.query(Square.row_index, Square.col_index, Square.user_id, Square.winners, User.name)
        .outerjoin(User, Square.user_id == User.id)
        .filter(Square.game_id == game.id)
        .order_by(Square.row_index, Square.col_index)
        .all()
    )
    grid = {}
    for row_index, col_index, user_id, winners, user_name in rows:
        grid[f'{row_index}-{col_index}'] = {
            'userId': user_id,
            'userName': user_name,
            'winners': load_json_list(winners) or [],
        }
    return {
        'grid': grid,
        'rowNumbers': game.row_digits,
        'colNumbers': game.col_digits,
        'numbersAssigned': game.numbers_assigned,
    }


def game_info(game):
    counts = capacity.counts_by_user(game.id)
    taken = sum(counts.values())
    users = User.query.filter_by(game_id=game.id).order_by(User.id).all()
    return {
        'id': game.id,
        'code': game.code,
        'name': game.name,
        'status': game.status,
        'pricePerSquare': game.price_per_square,
        'payouts': game.payouts,
        'takenSquares': taken,
        'availableSquares': TOTAL_SQUARES - taken,
        'numbersAssigned': game.numbers_assigned,
        'rowNumbers': game.row_digits,
        'colNumbers': game.col_digits,
        'users': [
            {
                'id': u.id,
                'name': u.name,
                'isAdmin': bool(u.is_admin),
                'squaresToBuy': u.squares_to_buy,
                'picksSubmitted': bool(u.picks_submitted),
                'squareCount': counts.get(u.id, 0),
            }
            for u in users
        ],
    }
