"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

Initial schema:
- Accounts: users, password_reset_tokens
- Competition: series, series_participants, events, event_participants, series_events
- Courses: courses, course_tees, holes
- Play: bags, rounds, scores
- Notes: user_notes
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column():
    return sa.Column('id', sa.String(36), primary_key=True)


def _timestamps(with_updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        _id_column(),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('username', sa.String(), nullable=True, unique=True),
        sa.Column('display_name', sa.String(), nullable=True),
        sa.Column('handicap_index', sa.Float(), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('auth_provider', sa.String(), nullable=False, server_default='email'),
        sa.Column('last_sign_in_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_users_email', 'users', ['email'])

    op.create_table(
        'password_reset_tokens',
        _id_column(),
        sa.Column(
            'user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('token', sa.String(128), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(with_updated=False),
    )
    op.create_index('idx_password_reset_tokens_user', 'password_reset_tokens', ['user_id'])

    op.create_table(
        'series',
        _id_column(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('draft', 'active', 'completed', 'cancelled')", name='ck_series_status'
        ),
    )
    op.create_index('idx_series_status', 'series', ['status'])
    op.create_index('idx_series_created_by', 'series', ['created_by'])

    op.create_table(
        'series_participants',
        _id_column(),
        sa.Column('series_id', sa.String(36), sa.ForeignKey('series.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='participant'),
        sa.Column('status', sa.String(), nullable=False, server_default='invited'),
        sa.Column('joined_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('series_id', 'user_id', name='uq_series_participants_series_user'),
        sa.CheckConstraint("role IN ('admin', 'participant')", name='ck_series_participants_role'),
    )
    op.create_index('idx_series_participants_series', 'series_participants', ['series_id'])
    op.create_index('idx_series_participants_user', 'series_participants', ['user_id'])

    op.create_table(
        'courses',
        _id_column(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('country', sa.String(), nullable=True, server_default='USA'),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('website', sa.String(), nullable=True),
        sa.Column('num_holes', sa.Integer(), nullable=False, server_default='18'),
        sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_courses_name', 'courses', ['name'])

    op.create_table(
        'course_tees',
        _id_column(),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('men_rating', sa.Float(), nullable=True),
        sa.Column('men_slope', sa.Integer(), nullable=True),
        sa.Column('women_rating', sa.Float(), nullable=True),
        sa.Column('women_slope', sa.Integer(), nullable=True),
        sa.Column('yardage', sa.Integer(), nullable=True),
    )
    op.create_index('idx_course_tees_course', 'course_tees', ['course_id'])

    op.create_table(
        'holes',
        _id_column(),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('hole_number', sa.Integer(), nullable=False),
        sa.Column('par', sa.Integer(), nullable=False),
        sa.Column('handicap_index', sa.Integer(), nullable=False),
        sa.Column('yards', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.UniqueConstraint('course_id', 'hole_number', name='uq_holes_course_hole_number'),
        sa.CheckConstraint('hole_number BETWEEN 1 AND 18', name='ck_holes_hole_number'),
        sa.CheckConstraint('par BETWEEN 3 AND 5', name='ck_holes_par'),
    )
    op.create_index('idx_holes_course', 'holes', ['course_id'])

    op.create_table(
        'events',
        _id_column(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='scheduled'),
        sa.Column('series_id', sa.String(36), sa.ForeignKey('series.id'), nullable=True),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('courses.id'), nullable=True),
        sa.Column('created_by', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('idx_events_series', 'events', ['series_id'])
    op.create_index('idx_events_date', 'events', ['event_date'])
    op.create_index('idx_events_created_by', 'events', ['created_by'])

    op.create_table(
        'series_events',
        _id_column(),
        sa.Column('series_id', sa.String(36), sa.ForeignKey('series.id'), nullable=False),
        sa.Column(
            'event_id', sa.String(36), sa.ForeignKey('events.id'), nullable=False, unique=True
        ),
        sa.Column('event_order', sa.Integer(), nullable=False),
        sa.UniqueConstraint('series_id', 'event_order', name='uq_series_events_series_order'),
    )
    op.create_index('idx_series_events_series', 'series_events', ['series_id'])

    op.create_table(
        'event_participants',
        _id_column(),
        sa.Column('event_id', sa.String(36), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='invited'),
        sa.Column('invitation_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('response_date', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_participants_event_user'),
    )
    op.create_index('idx_event_participants_event', 'event_participants', ['event_id'])
    op.create_index('idx_event_participants_user', 'event_participants', ['user_id'])

    op.create_table(
        'bags',
        _id_column(),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('handicap_index', sa.Float(), nullable=True),
        *_timestamps(with_updated=False),
    )
    op.create_index('idx_bags_user', 'bags', ['user_id'])

    op.create_table(
        'rounds',
        _id_column(),
        sa.Column('event_id', sa.String(36), sa.ForeignKey('events.id'), nullable=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.String(36), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('course_tee_id', sa.String(36), sa.ForeignKey('course_tees.id'), nullable=False),
        sa.Column('bag_id', sa.String(36), sa.ForeignKey('bags.id'), nullable=True),
        sa.Column('round_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_score', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='in_progress'),
        sa.Column('weather_conditions', sa.String(), nullable=True),
        sa.Column('course_conditions', sa.String(), nullable=True),
        sa.Column('temperature', sa.Integer(), nullable=True),
        sa.Column('wind_conditions', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_rounds_user_date', 'rounds', ['user_id', 'round_date'])
    op.create_index('idx_rounds_event', 'rounds', ['event_id'])
    op.create_index('idx_rounds_bag', 'rounds', ['bag_id'])

    op.create_table(
        'scores',
        _id_column(),
        sa.Column('round_id', sa.String(36), sa.ForeignKey('rounds.id'), nullable=False),
        sa.Column('hole_number', sa.Integer(), nullable=False),
        sa.Column('strokes', sa.Integer(), nullable=False),
        sa.Column('putts', sa.Integer(), nullable=True),
        sa.Column('fairway_hit', sa.Boolean(), nullable=True),
        sa.Column('green_in_regulation', sa.Boolean(), nullable=True),
        sa.Column('penalty_strokes', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('round_id', 'hole_number', name='uq_scores_round_hole_number'),
        sa.CheckConstraint('hole_number BETWEEN 1 AND 18', name='ck_scores_hole_number'),
    )
    op.create_index('idx_scores_round', 'scores', ['round_id'])

    op.create_table(
        'user_notes',
        _id_column(),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('related_resource_id', sa.String(36), nullable=True),
        sa.Column('related_resource_type', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_user_notes_user', 'user_notes', ['user_id'])
    op.create_index(
        'idx_user_notes_resource', 'user_notes', ['related_resource_type', 'related_resource_id']
    )


def downgrade() -> None:
    """Drop all tables, children first."""
    for table in (
        'user_notes',
        'scores',
        'rounds',
        'bags',
        'event_participants',
        'series_events',
        'events',
        'holes',
        'course_tees',
        'courses',
        'series_participants',
        'series',
        'password_reset_tokens',
        'users',
    ):
        op.drop_table(table)
