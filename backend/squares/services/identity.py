"""Identity resolution: phone numbers to per-game users.

There is no session or token. Callers keep the identity tuple returned by
``login`` client-side and send ids back on each request; every mutation
re-derives role and ownership from the store with those ids.
"""
import re

from flask import current_app

from squares.models import Game, User
from .errors import InvalidArgument, NotFound, Forbidden

_NON_DIGITS = re.compile(r'\D')


def normalize_phone(phone: str) -> str:
    """Canonical storage/lookup form, e.g. 5551234567 -> +15551234567.

    Deliberately permissive: any digit count other than the two US shapes is
    passed through with a bare '+' prefix.
    """
    digits = _NON_DIGITS.sub('', phone)
    if len(digits) == 10:
        return f'+1{digits}'
    if len(digits) == 11 and digits.startswith('1'):
        return f'+{digits}'
    return f'+{digits}'


def require_phone(phone) -> str:
    if not phone or not isinstance(phone, str) or not _NON_DIGITS.sub('', phone.strip()):
        raise InvalidArgument('Phone number is required')
    return normalize_phone(phone.strip())


def get_game(game_code: str, lock: bool = False) -> Game:
    """Look up a game by case-insensitive code.

    With ``lock`` the game row is selected FOR UPDATE, serializing mutations of
    one game on backends that support row locks.
    """
    query = Game.query.filter_by(code=(game_code or '').upper())
    if lock:
        query = query.with_for_update()
    game = query.first()
    if not game:
        raise NotFound('Game not found')
    return game


def get_player(game: Game, user_id: int) -> User:
    user = User.query.filter_by(id=user_id, game_id=game.id).first()
    if not user:
        raise NotFound('User not found')
    return user


def require_admin(game: Game, admin_id: int, message: str = 'Only admin can do this') -> User:
    if game.admin_id is None or game.admin_id != admin_id:
        raise Forbidden(message)
    admin = User.query.filter_by(id=admin_id, game_id=game.id, is_admin=True).first()
    if not admin:
        raise Forbidden(message)
    return admin


def login(game_code: str, phone) -> User:
    normalized = require_phone(phone)
    game = get_game(game_code)
    user = User.query.filter_by(game_id=game.id, phone=normalized).first()
    if not user:
        current_app.logger.info(f"[login-miss] game={game.code}")
        raise NotFound('No account found for this phone number in this game')
    current_app.logger.info(f"[login] game={game.code} user={user.id} admin={user.is_admin}")
    return user
