from flask import Blueprint, jsonify, request, current_app
from werkzeug.exceptions import HTTPException
from squares import db
from squares.services import games as game_service
from squares.services import ledger, lifecycle, picks, winners
from squares.services.errors import SquaresError, InvalidArgument
from squares.services.identity import get_game, login as resolve_login


games = Blueprint('games', __name__)


@games.errorhandler(SquaresError)
def handle_squares_error(exc):
    db.session.rollback()
    return jsonify({'error': exc.message}), exc.status_code


@games.errorhandler(Exception)
def handle_unexpected_error(exc):
    if isinstance(exc, HTTPException):
        return exc
    db.session.rollback()
    current_app.logger.exception(f"[error] {request.method} {request.path}")
    return jsonify({'error': 'Something went wrong, please try again'}), 500


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    game = game_service.create_game(
        name=data.get('name'),
        price_per_square=data.get('pricePerSquare'),
        payouts=data.get('payouts'),
        admin_name=data.get('adminName'),
        admin_phone=data.get('adminPhone'),
    )
    return jsonify({
        'message': 'New game created!',
        'gameCode': game.code,
        'gameId': game.id,
        'adminId': game.admin_id,
    }), 201


@games.route('/<string:game_code>/info', methods=['GET'])
def get_game_info(game_code):
    return jsonify(game_service.game_info(get_game(game_code)))


@games.route('/<string:game_code>/join', methods=['POST'])
def join_game(game_code):
    data = request.get_json(silent=True) or {}
    user = game_service.join_game(
        game_code,
        name=data.get('name'),
        phone=data.get('phone'),
        squares_to_buy=data.get('squaresToBuy'),
    )
    return jsonify(user.to_session_dict()), 201


@games.route('/<string:game_code>/login', methods=['POST'])
def login(game_code):
    data = request.get_json(silent=True) or {}
    user = resolve_login(game_code, data.get('phone'))
    return jsonify(user.to_session_dict())


@games.route('/<string:game_code>/squares', methods=['GET'])
def get_squares(game_code):
    return jsonify(game_service.grid_snapshot(game_code))


@games.route('/<string:game_code>/squares', methods=['POST'])
def update_square(game_code):
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    action = data.get('action')
    row = data.get('row')
    col = data.get('col')
    if not user_id or not action or row is None or col is None:
        return jsonify({'error': 'userId, action, row, col are required'}), 400

    if action == 'select':
        ledger.claim(game_code, row, col, user_id)
    elif action == 'deselect':
        ledger.release(game_code, row, col, user_id)
    else:
        raise InvalidArgument('Invalid action')
    return jsonify({'success': True})


@games.route('/<string:game_code>/submit', methods=['POST'])
def submit_picks(game_code):
    data = request.get_json(silent=True) or {}
    user = picks.submit_picks(game_code, data.get('userId'))
    return jsonify({'success': True, 'picksSubmitted': bool(user.picks_submitted)})


@games.route('/<string:game_code>/admin/assign-square', methods=['POST'])
def admin_assign_square(game_code):
    data = request.get_json(silent=True) or {}
    if not data.get('adminId') or data.get('row') is None or data.get('col') is None:
        return jsonify({'error': 'adminId, row, and col are required'}), 400
    ledger.reassign(game_code, data['row'], data['col'], data['adminId'], data.get('assignToUserId'))
    return jsonify({'success': True})


@games.route('/<string:game_code>/admin/set-winner', methods=['POST'])
def admin_set_winner(game_code):
    data = request.get_json(silent=True) or {}
    if not data.get('adminId') or data.get('row') is None or data.get('col') is None:
        return jsonify({'error': 'adminId, row, and col are required'}), 400
    valid = winners.set_winners(game_code, data['row'], data['col'], data['adminId'], data.get('quarters'))
    return jsonify({'success': True, 'winners': valid})


@games.route('/<string:game_code>/admin/start', methods=['POST'])
def admin_start_game(game_code):
    data = request.get_json(silent=True) or {}
    game = lifecycle.start_game(game_code, data.get('adminId'))
    return jsonify(game_service.game_info(game))


@games.route('/<string:game_code>/admin/complete', methods=['POST'])
def admin_complete_game(game_code):
    data = request.get_json(silent=True) or {}
    game = lifecycle.complete_game(game_code, data.get('adminId'))
    return jsonify(game_service.game_info(game))
