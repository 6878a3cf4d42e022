"""create_assessment_tables

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'b7c1d2e3f4a5'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    """Create school, class, test, assignment and attempt tables."""
    op.create_table(
        'schools',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='student'),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'subjects',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('color', sa.String(20), nullable=False, server_default='gray'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'class_students',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('joined_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('class_id', 'student_id', name='uq_class_student')
    )
    op.create_index('ix_class_students_class_id', 'class_students', ['class_id'])
    op.create_index('ix_class_students_student_id', 'class_students', ['student_id'])

    op.create_table(
        'tests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('school_id', sa.Integer(), sa.ForeignKey('schools.id'), nullable=True),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('passing_score', sa.Float(), nullable=False, server_default='60'),
        sa.Column('max_attempts', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('shuffle_questions', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('block_copy_paste', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('track_tab_switches', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('fullscreen_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_published', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'test_questions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('test_id', sa.Integer(), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('question_type', sa.String(30), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('options', JSONType, nullable=True),
        sa.Column('correct_answer', JSONType, nullable=True),
        sa.Column('marks', sa.Float(), nullable=False, server_default='1'),
        sa.Column('order_number', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('media_url', sa.String(500), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_test_questions_test_id', 'test_questions', ['test_id'])

    op.create_table(
        'test_assignments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('test_id', sa.Integer(), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id'), nullable=False),
        sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_test_assignments_test_id', 'test_assignments', ['test_id'])
    op.create_index('ix_test_assignments_class_id', 'test_assignments', ['class_id'])

    op.create_table(
        'test_attempts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('test_id', sa.Integer(), sa.ForeignKey('tests.id'), nullable=False),
        sa.Column('assignment_id', sa.Integer(), sa.ForeignKey('test_assignments.id'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('started_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('submitted_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('answers', JSONType, nullable=False),
        sa.Column('score', sa.Float(), nullable=True),
        sa.Column('max_score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=True),
        sa.Column('tab_switches', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('copy_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('suspicious_activity', JSONType, nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_test_attempts_assignment_id', 'test_attempts', ['assignment_id'])
    op.create_index('ix_test_attempts_student_id', 'test_attempts', ['student_id'])
    # Un solo intento abierto por (asignación, alumno)
    op.create_index(
        'uq_test_attempts_open', 'test_attempts', ['assignment_id', 'student_id'],
        unique=True,
        postgresql_where=sa.text('is_completed = false'),
        sqlite_where=sa.text('is_completed = 0'),
    )


def downgrade() -> None:
    """Drop assessment tables."""
    op.drop_index('uq_test_attempts_open', table_name='test_attempts')
    op.drop_index('ix_test_attempts_student_id', table_name='test_attempts')
    op.drop_index('ix_test_attempts_assignment_id', table_name='test_attempts')
    op.drop_table('test_attempts')
    op.drop_index('ix_test_assignments_class_id', table_name='test_assignments')
    op.drop_index('ix_test_assignments_test_id', table_name='test_assignments')
    op.drop_table('test_assignments')
    op.drop_index('ix_test_questions_test_id', table_name='test_questions')
    op.drop_table('test_questions')
    op.drop_table('tests')
    op.drop_index('ix_class_students_student_id', table_name='class_students')
    op.drop_index('ix_class_students_class_id', table_name='class_students')
    op.drop_table('class_students')
    op.drop_table('classes')
    op.drop_table('subjects')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_table('schools')
