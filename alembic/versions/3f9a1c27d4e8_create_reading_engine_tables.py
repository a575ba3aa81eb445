"""Create reading engine tables

Revision ID: 3f9a1c27d4e8
Revises:
Create Date: 2026-10-18 10:12:44.518203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9a1c27d4e8'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('file_name', sa.String(), nullable=True),
        sa.Column('total_pages', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE')
    )
    op.create_index(op.f('ix_documents_id'), 'documents', ['id'], unique=False)
    op.create_index(op.f('ix_documents_user_id'), 'documents', ['user_id'], unique=False)

    op.create_table(
        'page_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('page_number', sa.Integer(), nullable=False),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), nullable=False),
        sa.Column('estimated_time_seconds', sa.Float(), nullable=True),
        sa.Column('difficulty_rating', sa.Integer(), nullable=True),
        sa.Column('last_read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'document_id', 'page_number', name='uq_page_record')
    )
    op.create_index(op.f('ix_page_records_id'), 'page_records', ['id'], unique=False)
    op.create_index(op.f('ix_page_records_user_id'), 'page_records', ['user_id'], unique=False)
    op.create_index(op.f('ix_page_records_document_id'), 'page_records', ['document_id'], unique=False)

    op.create_table(
        'study_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=True),
        sa.Column('session_type', sa.String(), nullable=True),
        sa.Column('session_goal', sa.String(), nullable=True),
        sa.Column('target_pages', sa.Integer(), nullable=True),
        sa.Column('target_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('total_duration_seconds', sa.Integer(), nullable=False),
        sa.Column('active_reading_seconds', sa.Integer(), nullable=False),
        sa.Column('break_time_seconds', sa.Integer(), nullable=False),
        sa.Column('longest_focus_streak_seconds', sa.Integer(), nullable=False),
        sa.Column('pages_covered', sa.Integer(), nullable=False),
        sa.Column('tab_switches', sa.Integer(), nullable=False),
        sa.Column('app_minimized_count', sa.Integer(), nullable=False),
        sa.Column('inactivity_periods', sa.Integer(), nullable=False),
        sa.Column('focus_events', sa.Integer(), nullable=False),
        sa.Column('focus_score', sa.Float(), nullable=True),
        sa.Column('completion_status', sa.String(), nullable=True),
        sa.Column('energy_level', sa.Integer(), nullable=True),
        sa.Column('comprehension_rating', sa.Integer(), nullable=True),
        sa.Column('difficulty_rating', sa.Integer(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('pause_data', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_study_sessions_id'), 'study_sessions', ['id'], unique=False)
    op.create_index(op.f('ix_study_sessions_user_id'), 'study_sessions', ['user_id'], unique=False)
    op.create_index(op.f('ix_study_sessions_document_id'), 'study_sessions', ['document_id'], unique=False)
    op.create_index(op.f('ix_study_sessions_started_at'), 'study_sessions', ['started_at'], unique=False)
    # One open session per user
    op.create_index(
        'uq_active_session_per_user', 'study_sessions', ['user_id'], unique=True,
        sqlite_where=sa.text('ended_at IS NULL'),
        postgresql_where=sa.text('ended_at IS NULL')
    )

    op.create_table(
        'user_stats',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_pages_read', sa.Integer(), nullable=False),
        sa.Column('total_time_spent_seconds', sa.Integer(), nullable=False),
        sa.Column('average_reading_speed_seconds', sa.Float(), nullable=False),
        sa.Column('total_documents', sa.Integer(), nullable=False),
        sa.Column('current_streak_days', sa.Integer(), nullable=False),
        sa.Column('longest_streak_days', sa.Integer(), nullable=False),
        sa.Column('last_activity_date', sa.Date(), nullable=True),
        sa.Column('focus_score_average', sa.Float(), nullable=False),
        sa.Column('total_study_sessions', sa.Integer(), nullable=False),
        sa.Column('average_session_duration_seconds', sa.Integer(), nullable=False),
        sa.Column('total_xp_points', sa.Integer(), nullable=False),
        sa.Column('current_level', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index(op.f('ix_user_stats_id'), 'user_stats', ['id'], unique=False)

    op.create_table(
        'daily_analytics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_pages_read', sa.Integer(), nullable=False),
        sa.Column('total_time_seconds', sa.Integer(), nullable=False),
        sa.Column('study_sessions_count', sa.Integer(), nullable=False),
        sa.Column('focus_score_average', sa.Float(), nullable=False),
        sa.Column('morning_minutes', sa.Float(), nullable=False),
        sa.Column('afternoon_minutes', sa.Float(), nullable=False),
        sa.Column('evening_minutes', sa.Float(), nullable=False),
        sa.Column('night_minutes', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_analytics_user_date')
    )
    op.create_index(op.f('ix_daily_analytics_id'), 'daily_analytics', ['id'], unique=False)
    op.create_index(op.f('ix_daily_analytics_user_id'), 'daily_analytics', ['user_id'], unique=False)
    op.create_index(op.f('ix_daily_analytics_date'), 'daily_analytics', ['date'], unique=False)

    op.create_table(
        'achievements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('requirement_type', sa.String(), nullable=False),
        sa.Column('requirement_value', sa.Float(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_achievements_id'), 'achievements', ['id'], unique=False)
    op.create_index(op.f('ix_achievements_code'), 'achievements', ['code'], unique=True)
    op.create_index(op.f('ix_achievements_category'), 'achievements', ['category'], unique=False)

    op.create_table(
        'user_achievements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('achievement_id', sa.Integer(), nullable=False),
        sa.Column('earned_at', sa.DateTime(), nullable=False),
        sa.Column('progress_value', sa.Float(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['achievement_id'], ['achievements.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement')
    )
    op.create_index(op.f('ix_user_achievements_id'), 'user_achievements', ['id'], unique=False)
    op.create_index(op.f('ix_user_achievements_user_id'), 'user_achievements', ['user_id'], unique=False)

    op.create_table(
        'sprints',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=False),
        sa.Column('start_page', sa.Integer(), nullable=False),
        sa.Column('end_page', sa.Integer(), nullable=False),
        sa.Column('estimated_seconds', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False),
        sa.Column('pages_completed', sa.Integer(), nullable=True),
        sa.Column('completion_quality', sa.Integer(), nullable=True),
        sa.Column('xp_awarded', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE')
    )
    op.create_index(op.f('ix_sprints_id'), 'sprints', ['id'], unique=False)
    op.create_index(op.f('ix_sprints_user_id'), 'sprints', ['user_id'], unique=False)
    op.create_index(op.f('ix_sprints_document_id'), 'sprints', ['document_id'], unique=False)

    op.create_table(
        'reading_feedback',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('document_id', sa.Integer(), nullable=True),
        sa.Column('session_id', sa.Integer(), nullable=True),
        sa.Column('page_number', sa.Integer(), nullable=True),
        sa.Column('feedback_type', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('encouragement_level', sa.Integer(), nullable=False),
        sa.Column('page_time_seconds', sa.Float(), nullable=False),
        sa.Column('expected_time_seconds', sa.Float(), nullable=False),
        sa.Column('activity_level', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['document_id'], ['documents.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['session_id'], ['study_sessions.id'], ondelete='SET NULL')
    )
    op.create_index(op.f('ix_reading_feedback_id'), 'reading_feedback', ['id'], unique=False)
    op.create_index(op.f('ix_reading_feedback_user_id'), 'reading_feedback', ['user_id'], unique=False)
    op.create_index(op.f('ix_reading_feedback_document_id'), 'reading_feedback', ['document_id'], unique=False)
    op.create_index(op.f('ix_reading_feedback_created_at'), 'reading_feedback', ['created_at'], unique=False)


def downgrade() -> None:
    op.drop_table('reading_feedback')
    op.drop_table('sprints')
    op.drop_table('user_achievements')
    op.drop_table('achievements')
    op.drop_table('daily_analytics')
    op.drop_table('user_stats')
    op.drop_index('uq_active_session_per_user', table_name='study_sessions')
    op.drop_table('study_sessions')
    op.drop_table('page_records')
    op.drop_table('documents')
    op.drop_table('users')
