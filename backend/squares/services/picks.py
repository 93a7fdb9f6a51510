from flask import current_app

from squares import db
from squares.models import STATUS_PENDING
from . import capacity
from .errors import SquaresError, InvalidState, PreconditionFailed
from .identity import get_game, get_player
from .inputs import parse_id
from .notifier import notify


def submit_picks(game_code, user_id):
    """Lock in a player's selection.

    Only granted while the game is pending and the player holds exactly
    squares_to_buy squares. The ledger re-opens the lock on the player's next
    claim or release.
    """
    user_id = parse_id(user_id, 'userId')
    try:
        game = get_game(game_code, lock=True)
        user = get_player(game, user_id)
        if game.status != STATUS_PENDING:
            raise InvalidState('Game has started - picks are final')
        count = capacity.per_user_count(game.id, user.id)
        if count != user.squares_to_buy:
            raise PreconditionFailed(
                f'Select exactly {user.squares_to_buy} squares before submitting (you have {count})'
            )
        user.picks_submitted = True
        db.session.add(user)
        db.session.commit()
    except SquaresError as exc:
        db.session.rollback()
        current_app.logger.info(
            f"[submit-rejected] game={(game_code or '').upper()} user={user_id} reason={exc.message}"
        )
        raise

    current_app.logger.info(f"[submit] game={game.code} user={user.id} count={count}")
    notify(game.code, 'picks-submitted', {'userId': user.id})
    return user
