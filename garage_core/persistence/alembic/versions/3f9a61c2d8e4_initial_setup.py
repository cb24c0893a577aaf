"""initial setup

Revision ID: 3f9a61c2d8e4
Revises:
Create Date: 2026-10-19 14:02:31.551207

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3f9a61c2d8e4'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('users',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('user_id', sa.String(length=255), nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('created', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('id'),
                    sa.UniqueConstraint('user_id')
                    )
    op.create_index(op.f('ix_users_user_id'), 'users', ['user_id'], unique=True)
    op.create_table('garages',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('city', sa.String(length=255), nullable=False),
                    sa.Column('state', sa.String(length=255), nullable=False),
                    sa.Column('created', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.Column('modified', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('id')
                    )
    op.create_table('cars',
                    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
                    sa.Column('make', sa.String(length=255), nullable=False),
                    sa.Column('model', sa.String(length=255), nullable=False),
                    sa.Column('color', sa.String(length=255), nullable=False),
                    sa.Column('owner_id', sa.String(length=255), nullable=False),
                    sa.Column('garage_id', sa.Integer(), nullable=True),
                    sa.Column('garaged', sa.DateTime(), nullable=True),
                    sa.Column('created', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.Column('modified', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
                    sa.ForeignKeyConstraint(['garage_id'], ['garages.id'], ondelete='RESTRICT'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('id')
                    )
    op.create_index(op.f('ix_cars_owner_id'), 'cars', ['owner_id'], unique=False)


def downgrade():
    op.drop_index(op.f('ix_cars_owner_id'), table_name='cars')
    op.drop_table('cars')
    op.drop_table('garages')
    op.drop_index(op.f('ix_users_user_id'), table_name='users')
    op.drop_table('users')
