"""create users, preferred categories, events and registrations

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-12 10:14:32.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # 1. users (owned by the identity service; created here so the core can run standalone)
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('language', sa.String(length=8), nullable=False, server_default='en'),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='user'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )

    # 2. user_preferred_categories
    op.create_table(
        'user_preferred_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'category', name='uq_user_preferred_category')
    )
    op.create_index('ix_user_preferred_categories_category', 'user_preferred_categories', ['category'])

    # 3. events
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('start_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_time', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('ticket_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_time > start_time', name='ck_events_time_order'),
        sa.CheckConstraint('ticket_price >= 0', name='ck_events_price_non_negative')
    )
    op.create_index('ix_events_lat_lon', 'events', ['latitude', 'longitude'])
    op.create_index('ix_events_status_start', 'events', ['status', 'start_time'])
    op.create_index('ix_events_category', 'events', ['category'])
    op.create_index('ix_events_created_by', 'events', ['created_by'])

    # 4. event_registrations
    op.create_table(
        'event_registrations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_registration')
    )
    op.create_index('ix_event_registrations_user', 'event_registrations', ['user_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_event_registrations_user', table_name='event_registrations')
    op.drop_table('event_registrations')
    op.drop_index('ix_events_created_by', table_name='events')
    op.drop_index('ix_events_category', table_name='events')
    op.drop_index('ix_events_status_start', table_name='events')
    op.drop_index('ix_events_lat_lon', table_name='events')
    op.drop_table('events')
    op.drop_index('ix_user_preferred_categories_category', table_name='user_preferred_categories')
    op.drop_table('user_preferred_categories')
    op.drop_table('users')
