"""tree census schema: users, trees, badges, species"""

from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

revision: str = '20250301_01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), unique=True),
        sa.Column('first_name', sa.String()),
        sa.Column('last_name', sa.String()),
        sa.Column('profile_image_url', sa.String()),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'trees',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('species', sa.String(), nullable=False),
        sa.Column('condition', sa.String(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('height_floors', sa.Integer()),
        sa.Column('height_manual', sa.Float()),
        sa.Column('circumference_hands', sa.Integer()),
        sa.Column('circumference_manual', sa.Float()),
        sa.Column('excessive_pruning', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('excessive_ground_cover', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('damaged', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('photo_url', sa.String()),
        sa.Column('notes', sa.Text()),
        sa.Column('contributor_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.String(), sa.ForeignKey('users.id')),
        sa.Column('reviewed_at', sa.DateTime()),
        sa.Column('review_notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_trees_status_created', 'trees', ['status', 'created_at'])
    op.create_index('ix_trees_contributor', 'trees', ['contributor_id'])

    op.create_table(
        'badges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('requirement', sa.Integer()),
        sa.Column('icon', sa.String()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'user_badges',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('badge_id', sa.Integer(), sa.ForeignKey('badges.id'), nullable=False),
        sa.Column('awarded_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.UniqueConstraint('user_id', 'badge_id', name='uq_user_badges_user_badge'),
    )
    op.create_table(
        'tree_species',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('scientific_name', sa.String()),
        sa.Column('description', sa.Text()),
        sa.Column('characteristics', sa.Text()),
        sa.Column('care_instructions', sa.Text()),
        sa.Column('icon', sa.String()),
    )


def downgrade() -> None:
    op.drop_table('tree_species')
    op.drop_table('user_badges')
    op.drop_table('badges')
    op.drop_index('ix_trees_contributor', table_name='trees')
    op.drop_index('ix_trees_status_created', table_name='trees')
    op.drop_table('trees')
    op.drop_table('users')
