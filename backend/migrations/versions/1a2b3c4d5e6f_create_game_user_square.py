"""create game, user and square tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('price_per_square', sa.Float(), nullable=False),
        sa.Column('payout_q1', sa.Float(), nullable=False),
        sa.Column('payout_q2', sa.Float(), nullable=False),
        sa.Column('payout_q3', sa.Float(), nullable=False),
        sa.Column('payout_final', sa.Float(), nullable=False),
        sa.Column('row_numbers', sa.Text(), nullable=True),
        sa.Column('col_numbers', sa.Text(), nullable=True),
        sa.Column('admin_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_code', 'game', ['code'], unique=True)

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('squares_to_buy', sa.Integer(), nullable=False),
        sa.Column('picks_submitted', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'phone', name='uq_user_game_phone'),
    )
    op.create_index('ix_user_game_id', 'user', ['game_id'], unique=False)

    # game.admin_id and user.game_id reference each other
    with op.batch_alter_table('game') as batch_op:
        batch_op.create_foreign_key('fk_game_admin_id', 'user', ['admin_id'], ['id'])

    op.create_table(
        'square',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('row_index', sa.Integer(), nullable=False),
        sa.Column('col_index', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('winners', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'row_index', 'col_index', name='uq_square_game_cell'),
    )
    op.create_index('ix_square_game_id', 'square', ['game_id'], unique=False)
    op.create_index('ix_square_user_id', 'square', ['user_id'], unique=False)


def downgrade():
    op.drop_index('ix_square_user_id', table_name='square')
    op.drop_index('ix_square_game_id', table_name='square')
    op.drop_table('square')
    with op.batch_alter_table('game') as batch_op:
        batch_op.drop_constraint('fk_game_admin_id', type_='foreignkey')
    op.drop_index('ix_user_game_id', table_name='user')
    op.drop_table('user')
    op.drop_index('ix_game_code', table_name='game')
    op.drop_table('game')
