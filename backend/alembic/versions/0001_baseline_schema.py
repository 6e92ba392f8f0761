"""baseline_schema

Revision ID: 0001_baseline
Revises:
Create Date: 2025-01-06 00:00:00.000000

Baseline schema for the study space backend:
- libraries / branches (tenants and their locations)
- seats / lockers (bookable resources, number unique per branch)
- students / plans
- student_subscriptions (bookings claiming a seat and/or a locker)
- users (platform admins, owners, staff and students)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """
    Create all tables with indexes and constraints.

    Subscriptions reference seats and lockers with ON DELETE RESTRICT so that
    booking history always points at existing resources.
    """
    op.create_table(
        'libraries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('max_seats', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_libraries_id'), 'libraries', ['id'], unique=False)

    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('seat_count', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_branches_id'), 'branches', ['id'], unique=False)
    op.create_index(op.f('ix_branches_library_id'), 'branches', ['library_id'], unique=False)

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_students_id'), 'students', ['id'], unique=False)
    op.create_index(op.f('ix_students_library_id'), 'students', ['library_id'], unique=False)
    op.create_index(op.f('ix_students_branch_id'), 'students', ['branch_id'], unique=False)

    op.create_table(
        'plans',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('duration_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_plans_id'), 'plans', ['id'], unique=False)
    op.create_index(op.f('ix_plans_library_id'), 'plans', ['library_id'], unique=False)

    for table, type_nullable, unique_name in (
        ('seats', False, 'uq_seat_branch_number'),
        ('lockers', True, 'uq_locker_branch_number'),
    ):
        op.create_table(
            table,
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('library_id', sa.Integer(), nullable=False),
            sa.Column('branch_id', sa.Integer(), nullable=False),
            sa.Column('number', sa.String(length=50), nullable=False),
            sa.Column('section', sa.String(length=100), nullable=True),
            sa.Column('type', sa.String(length=50), nullable=type_nullable),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('branch_id', 'number', name=unique_name)
        )
        op.create_index(op.f(f'ix_{table}_id'), table, ['id'], unique=False)
        op.create_index(op.f(f'ix_{table}_library_id'), table, ['library_id'], unique=False)
        op.create_index(op.f(f'ix_{table}_branch_id'), table, ['branch_id'], unique=False)

    op.create_table(
        'student_subscriptions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=False),
        sa.Column('student_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.Integer(), nullable=True),
        sa.Column('seat_id', sa.Integer(), nullable=True),
        sa.Column('locker_id', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['plan_id'], ['plans.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['seat_id'], ['seats.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['locker_id'], ['lockers.id'], ondelete='RESTRICT'),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'expired', 'cancelled')",
            name='ck_student_subscription_status'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_student_subscriptions_id'), 'student_subscriptions', ['id'], unique=False)
    op.create_index(
        op.f('ix_student_subscriptions_library_id'), 'student_subscriptions', ['library_id'], unique=False
    )
    op.create_index(
        op.f('ix_student_subscriptions_branch_id'), 'student_subscriptions', ['branch_id'], unique=False
    )
    op.create_index(
        op.f('ix_student_subscriptions_student_id'), 'student_subscriptions', ['student_id'], unique=False
    )
    op.create_index(
        'ix_subscription_seat_status_dates',
        'student_subscriptions',
        ['seat_id', 'status', 'start_date', 'end_date'],
        unique=False
    )
    op.create_index(
        'ix_subscription_locker_status_dates',
        'student_subscriptions',
        ['locker_id', 'status', 'start_date', 'end_date'],
        unique=False
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=True),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        sa.Column('student_id', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.CheckConstraint(
            "role IN ('platform_admin', 'owner', 'staff', 'student')",
            name='ck_user_role'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_library_id'), 'users', ['library_id'], unique=False)


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index(op.f('ix_users_library_id'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')

    op.drop_index('ix_subscription_locker_status_dates', table_name='student_subscriptions')
    op.drop_index('ix_subscription_seat_status_dates', table_name='student_subscriptions')
    for column in ('student_id', 'branch_id', 'library_id', 'id'):
        op.drop_index(op.f(f'ix_student_subscriptions_{column}'), table_name='student_subscriptions')
    op.drop_table('student_subscriptions')

    for table in ('lockers', 'seats'):
        for column in ('branch_id', 'library_id', 'id'):
            op.drop_index(op.f(f'ix_{table}_{column}'), table_name=table)
        op.drop_table(table)

    op.drop_index(op.f('ix_plans_library_id'), table_name='plans')
    op.drop_index(op.f('ix_plans_id'), table_name='plans')
    op.drop_table('plans')

    for column in ('branch_id', 'library_id', 'id'):
        op.drop_index(op.f(f'ix_students_{column}'), table_name='students')
    op.drop_table('students')

    op.drop_index(op.f('ix_branches_library_id'), table_name='branches')
    op.drop_index(op.f('ix_branches_id'), table_name='branches')
    op.drop_table('branches')

    op.drop_index(op.f('ix_libraries_id'), table_name='libraries')
    op.drop_table('libraries')
