from squares import db
from datetime import datetime
import json
import string
import random

GRID_SIZE = 10
TOTAL_SQUARES = GRID_SIZE * GRID_SIZE

QUARTERS = ('Q1', 'Q2', 'Q3', 'Final')

STATUS_PENDING = 'pending'
STATUS_STARTED = 'started'
STATUS_COMPLETED = 'completed'


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Game.query.filter_by(code=code).first():
            return code


def load_json_list(raw):
    if not raw:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, list) else None


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(16), unique=True, index=True, nullable=False)
    name = db.Column(db.String(128), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING)  # pending, started, completed
    price_per_square = db.Column(db.Float, nullable=False, default=0)
    payout_q1 = db.Column(db.Float, nullable=False, default=0)
    payout_q2 = db.Column(db.Float, nullable=False, default=0)
    payout_q3 = db.Column(db.Float, nullable=False, default=0)
    payout_final = db.Column(db.Float, nullable=False, default=0)
    # JSON-encoded permutations of 0-9, both set when the game starts
    row_numbers = db.Column(db.Text, nullable=True)
    col_numbers = db.Column(db.Text, nullable=True)
    admin_id = db.Column(db.Integer, db.ForeignKey('user.id', name='fk_game_admin_id', use_alter=True), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    users = db.relationship('User', foreign_keys='User.game_id', back_populates='game', cascade='all, delete-orphan')
    squares = db.relationship('Square', back_populates='game', cascade='all, delete-orphan', lazy='dynamic')

    @property
    def numbers_assigned(self):
        return self.row_numbers is not None and self.col_numbers is not None

    @property
    def row_digits(self):
        return load_json_list(self.row_numbers)

    @property
    def col_digits(self):
        return load_json_list(self.col_numbers)

    @property
    def payouts(self):
        return {
            'Q1': self.payout_q1,
            'Q2': self.payout_q2,
            'Q3': self.payout_q3,
            'Final': self.payout_final,
        }

    def __repr__(self):
        return f'<Game {self.code} {self.status}>'


class User(db.Model):
    __tablename__ = 'user'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'phone', name='uq_user_game_phone'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    name = db.Column(db.String(64), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    squares_to_buy = db.Column(db.Integer, default=0, nullable=False)
    picks_submitted = db.Column(db.Boolean, default=False, nullable=False)

    game = db.relationship('Game', foreign_keys=[game_id], back_populates='users')

    def to_session_dict(self):
        return {
            'userId': self.id,
            'gameId': self.game_id,
            'isAdmin': bool(self.is_admin),
            'name': self.name,
            'squaresToBuy': self.squares_to_buy,
        }

    def __repr__(self):
        return f'<User {self.id} {self.name}>'


class Square(db.Model):
    __tablename__ = 'square'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'row_index', 'col_index', name='uq_square_game_cell'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    row_index = db.Column(db.Integer, nullable=False)  # 0-9
    col_index = db.Column(db.Integer, nullable=False)  # 0-9
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, index=True)
    winners = db.Column(db.Text, nullable=True)  # JSON-encoded list of quarter tags

    game = db.relationship('Game', back_populates='squares')

    @property
    def winner_tags(self):
        return load_json_list(self.winners) or []

    def __repr__(self):
        return f'<Square ({self.row_index}, {self.col_index})>'
