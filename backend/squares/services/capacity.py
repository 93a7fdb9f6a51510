from squares import db
from squares.models import Square, TOTAL_SQUARES


def taken_count(game_id: int) -> int:
    """Squares with an owner, as seen by the current session's transaction."""
    return db.session.query(db.func.count(Square.id)).filter(
        Square.game_id == game_id,
        Square.user_id.isnot(None),
    ).scalar() or 0


def available(game_id: int) -> int:
    return TOTAL_SQUARES - taken_count(game_id)


def per_user_count(game_id: int, user_id: int) -> int:
    return db.session.query(db.func.count(Square.id)).filter(
        Square.game_id == game_id,
        Square.user_id == user_id,
    ).scalar() or 0


def counts_by_user(game_id: int) -> dict:
    rows = db.session.query(Square.user_id, db.func.count(Square.id)).filter(
        Square.game_id == game_id,
        Square.user_id.isnot(None),
    ).group_by(Square.user_id).all()
    return {user_id: count for user_id, count in rows}
