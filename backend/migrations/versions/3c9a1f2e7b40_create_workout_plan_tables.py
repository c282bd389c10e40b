"""create workout plan tables

Revision ID: 3c9a1f2e7b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c9a1f2e7b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_categories_name', 'categories', ['name'], unique=True)

    op.create_table(
        'exercises',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_exercises_category_id', 'exercises', ['category_id'])

    op.create_table(
        'workout_plans',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('level', sa.String(length=16), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('mode', sa.String(length=16), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('weekly_template', sa.JSON(), nullable=False),
        sa.Column('generation_policy', sa.JSON(), nullable=True),
        sa.Column('created_by', sa.String(length=100), nullable=True),
        sa.Column('updated_by', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_workout_plans_user_id', 'workout_plans', ['user_id'])
    op.create_index('ix_workout_plans_user_active', 'workout_plans', ['user_id', 'is_active'])
    op.create_index(
        'ix_workout_plans_user_mode_range', 'workout_plans', ['user_id', 'mode', 'start_date', 'end_date']
    )
    op.create_index(
        'uq_workout_plans_one_active_per_user',
        'workout_plans',
        ['user_id'],
        unique=True,
        sqlite_where=sa.text('is_active = 1'),
        postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'scheduled_exercises',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('exercise_id', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('workout_plan_id', sa.Integer(), nullable=True),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('sets', sa.Integer(), nullable=False),
        sa.Column('reps', sa.Integer(), nullable=False),
        sa.Column('weight', sa.Float(), nullable=False),
        sa.Column('weight_plates', sa.JSON(), nullable=False),
        sa.Column('notes', sa.String(length=500), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_manual', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_temporary_change', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_hidden', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('modified_by_user', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('generation_batch_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['exercise_id'], ['exercises.id']),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
        sa.ForeignKeyConstraint(['workout_plan_id'], ['workout_plans.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_scheduled_exercises_generation_batch_id', 'scheduled_exercises', ['generation_batch_id'])
    op.create_index('ix_scheduled_exercises_user_date', 'scheduled_exercises', ['user_id', 'date'])
    op.create_index(
        'ix_scheduled_exercises_user_plan_date', 'scheduled_exercises', ['user_id', 'workout_plan_id', 'date']
    )
    op.create_index(
        'uq_scheduled_exercises_plan_slot',
        'scheduled_exercises',
        ['user_id', 'workout_plan_id', 'exercise_id', 'date'],
        unique=True,
        sqlite_where=sa.text('is_hidden = 0 AND workout_plan_id IS NOT NULL'),
        postgresql_where=sa.text('NOT is_hidden AND workout_plan_id IS NOT NULL'),
    )


def downgrade() -> None:
    op.drop_index('uq_scheduled_exercises_plan_slot', table_name='scheduled_exercises')
    op.drop_index('ix_scheduled_exercises_user_plan_date', table_name='scheduled_exercises')
    op.drop_index('ix_scheduled_exercises_user_date', table_name='scheduled_exercises')
    op.drop_index('ix_scheduled_exercises_generation_batch_id', table_name='scheduled_exercises')
    op.drop_table('scheduled_exercises')
    op.drop_index('uq_workout_plans_one_active_per_user', table_name='workout_plans')
    op.drop_index('ix_workout_plans_user_mode_range', table_name='workout_plans')
    op.drop_index('ix_workout_plans_user_active', table_name='workout_plans')
    op.drop_index('ix_workout_plans_user_id', table_name='workout_plans')
    op.drop_table('workout_plans')
    op.drop_index('ix_exercises_category_id', table_name='exercises')
    op.drop_table('exercises')
    op.drop_index('ix_categories_name', table_name='categories')
    op.drop_table('categories')
