"""initial schema

Revision ID: 20250601_000100
Revises:
Create Date: 2025-06-01 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '20250601_000100'
down_revision = None
branch_labels = None
depends_on = None

JSON_DOC = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def base_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def json_list(name):
    return sa.Column(name, JSON_DOC, nullable=False, server_default=sa.text("'[]'"))


def json_object(name):
    return sa.Column(name, JSON_DOC, nullable=False, server_default=sa.text("'{}'"))


def create_table(name, *columns):
    op.create_table(name, *base_columns(), *columns)
    op.create_index(f'ix_{name}_id', name, ['id'])
    op.create_index(f'ix_{name}_created_at', name, ['created_at'])


def upgrade():
    create_table(
        'users',
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('device_token', sa.String()),
        sa.Column('google_id', sa.String(), unique=True),
        sa.Column('auth_provider', sa.String(), nullable=False, server_default='local'),
        sa.Column('agree_to_terms', sa.Boolean(), nullable=False, server_default=sa.false()),
        json_list('refresh_tokens'),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    create_table(
        'user_profiles',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('bio', sa.Text()),
        sa.Column('account_type', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('role', sa.String()),
        sa.Column('location', sa.String()),
        json_object('social_links'),
        json_list('custom_sections'),
    )
    op.create_index('ix_user_profiles_user_id', 'user_profiles', ['user_id'], unique=True)
    op.create_index('ix_user_profiles_username', 'user_profiles', ['username'], unique=True)

    create_table(
        'password_resets',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_password_resets_user_id', 'password_resets', ['user_id'])
    op.create_index('ix_password_resets_email', 'password_resets', ['email'])

    create_table(
        'follows',
        sa.Column('user_id', sa.Integer(), nullable=False),
        json_list('following'),
        json_list('followers'),
        json_list('requests'),
    )
    op.create_index('ix_follows_user_id', 'follows', ['user_id'], unique=True)

    create_table(
        'groups',
        sa.Column('group_name', sa.String(), nullable=False),
        sa.Column('bio', sa.Text()),
        json_list('owners'),
        json_list('members'),
        json_list('requests'),
        sa.Column('account_type', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_groups_group_name', 'groups', ['group_name'])

    create_table(
        'user_groups',
        sa.Column('user_id', sa.Integer(), nullable=False),
        json_list('groups'),
    )
    op.create_index('ix_user_groups_user_id', 'user_groups', ['user_id'], unique=True)

    create_table(
        'events',
        sa.Column('title', sa.String(), nullable=False),
        json_list('admin'),
        json_list('invitees'),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String()),
        sa.Column('description', sa.Text()),
        json_list('tags'),
        json_list('alerts'),
    )

    create_table(
        'user_events',
        sa.Column('user_id', sa.Integer(), nullable=False),
        json_list('events'),
    )
    op.create_index('ix_user_events_user_id', 'user_events', ['user_id'], unique=True)

    create_table(
        'programs',
        sa.Column('name', sa.String(), nullable=False),
        json_list('types'),
        sa.Column('num_weeks', sa.Integer(), nullable=False),
        sa.Column('has_nutrition_program', sa.Boolean(), nullable=False, server_default=sa.false()),
        json_list('phases'),
        sa.Column('access_type', sa.Integer(), nullable=False, server_default='0'),
        json_list('admins'),
        json_list('members'),
        sa.Column('created_by', sa.Integer(), nullable=False),
        json_list('weeks'),
    )
    op.create_index('ix_programs_created_by', 'programs', ['created_by'])

    create_table(
        'weeks',
        sa.Column('program_id', sa.Integer(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('image_path', sa.String()),
        sa.Column('start_date', sa.DateTime(timezone=True)),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        json_list('workouts'),
        json_list('meals'),
    )
    op.create_index('ix_weeks_program_id', 'weeks', ['program_id'])

    create_table(
        'meals',
        sa.Column('created_by', sa.Integer(), nullable=False),
        sa.Column('meal_name', sa.String(), nullable=False),
        json_object('macros'),
        json_list('ingredients'),
        sa.Column('instructions', sa.Text()),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_meals_created_by', 'meals', ['created_by'])

    create_table(
        'notes',
        sa.Column('week_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('content', sa.Text()),
        sa.Column('created_by', sa.Integer()),
    )
    op.create_index('ix_notes_week_id', 'notes', ['week_id'])

    create_table(
        'workout_logs',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('week_id', sa.Integer(), nullable=False),
        sa.Column('workout_id', sa.String(), nullable=False),
        sa.Column('workout_version_id', sa.Integer(), nullable=False),
        sa.Column('workout_snapshot', JSON_DOC, nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='in_progress'),
        json_list('block_logs'),
        sa.Column('notes', sa.Text()),
    )
    op.create_index('ix_workout_logs_user_id', 'workout_logs', ['user_id'])
    op.create_index('ix_workout_logs_week_id', 'workout_logs', ['week_id'])

    create_table(
        'nutrition_programs',
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', sa.String()),
        sa.Column('difficulty', sa.String()),
        sa.Column('total_duration_weeks', sa.Integer(), nullable=False),
        sa.Column('has_phases', sa.Boolean(), nullable=False, server_default=sa.false()),
        json_list('phases'),
        sa.Column('owner_type', sa.String(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer()),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('version', sa.String(), nullable=False, server_default='1.0'),
        json_list('version_history'),
        json_list('tags'),
        sa.Column('estimated_calories_per_day', sa.Integer()),
    )
    op.create_index('ix_nutrition_programs_owner_id', 'nutrition_programs', ['owner_id'])

    create_table(
        'meal_templates',
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('meal_type', sa.String(), nullable=False),
        json_list('ingredients'),
        sa.Column('instructions', sa.Text()),
        sa.Column('servings', sa.Integer(), nullable=False, server_default='1'),
        json_object('totals'),
        json_object('per_serving'),
        sa.Column('created_by', sa.Integer()),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('version', sa.String(), nullable=False, server_default='1.0'),
        json_list('version_history'),
        json_list('tags'),
    )
    op.create_index('ix_meal_templates_created_by', 'meal_templates', ['created_by'])

    create_table(
        'meal_logs',
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('meal_id', sa.Integer()),
        sa.Column('meal_version_id', sa.Integer()),
        sa.Column('meal_template_id', sa.Integer()),
        sa.Column('nutrition_program_id', sa.Integer()),
        sa.Column('phase_number', sa.Integer()),
        sa.Column('meal_name', sa.String(), nullable=False),
        sa.Column('meal_type', sa.String()),
        sa.Column('consumed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('template_version', sa.String()),
        sa.Column('template_snapshot', JSON_DOC),
        sa.Column('servings_consumed', sa.Float(), nullable=False, server_default='1'),
        json_list('ingredients'),
        json_object('actual'),
        sa.Column('planned', JSON_DOC),
        sa.Column('variance', JSON_DOC),
        sa.Column('notes', sa.Text()),
        sa.Column('was_completed', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_meal_logs_user_id', 'meal_logs', ['user_id'])


def downgrade():
    for table in (
        'meal_logs',
        'meal_templates',
        'nutrition_programs',
        'workout_logs',
        'notes',
        'meals',
        'weeks',
        'programs',
        'user_events',
        'events',
        'user_groups',
        'groups',
        'follows',
        'password_resets',
        'user_profiles',
        'users',
    ):
        op.drop_table(table)
