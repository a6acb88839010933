"""initial course marketplace schema

Revision ID: a3c91e5d7b20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a3c91e5d7b20'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('external_uid', sa.String(length=128), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('display_name', sa.String(length=200), nullable=True),
    sa.Column('photo_url', sa.String(length=500), nullable=True),
    sa.Column('role', sa.String(length=20), nullable=False),
    sa.Column('email_verified', sa.Boolean(), nullable=False, server_default='false'),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
    sa.Column('last_login', sa.DateTime(timezone=True), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint("role IN ('student', 'admin')", name='ck_users_role'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('external_uid'),
    sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_role', 'users', ['role'], unique=False)

    op.create_table('courses',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('title', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=False),
    sa.Column('price', sa.Float(), nullable=False),
    sa.Column('syllabus', sa.JSON(), nullable=False),
    sa.Column('thumbnail', sa.String(length=500), nullable=False),
    sa.Column('category', sa.String(length=100), nullable=False),
    sa.Column('tags', sa.JSON(), nullable=False),
    sa.Column('instructor_id', sa.Uuid(), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
    sa.Column('enrolled_count', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('batches', sa.JSON(), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('price >= 0', name='ck_courses_price'),
    sa.CheckConstraint("status IN ('draft', 'published', 'archived')", name='ck_courses_status'),
    sa.CheckConstraint('enrolled_count >= 0', name='ck_courses_enrolled_count'),
    sa.ForeignKeyConstraint(['instructor_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_courses_category_status', 'courses', ['category', 'status'], unique=False)
    op.create_index('idx_courses_instructor_status', 'courses', ['instructor_id', 'status'], unique=False)
    op.create_index('idx_courses_price', 'courses', ['price'], unique=False)

    # course_id has no foreign key: deleted courses leave dangling enrollments
    op.create_table('enrollments',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('student_id', sa.Uuid(), nullable=False),
    sa.Column('course_id', sa.Uuid(), nullable=False),
    sa.Column('enrolled_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('progress', sa.Integer(), nullable=False, server_default='0'),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
    sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_enrollments_progress'),
    sa.CheckConstraint("status IN ('active', 'completed', 'dropped')", name='ck_enrollments_status'),
    sa.ForeignKeyConstraint(['student_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('student_id', 'course_id', name='uq_enrollments_student_course')
    )
    op.create_index('idx_enrollments_student_status', 'enrollments', ['student_id', 'status'], unique=False)
    op.create_index('idx_enrollments_course_status', 'enrollments', ['course_id', 'status'], unique=False)
    op.create_index('idx_enrollments_created_at', 'enrollments', ['created_at'], unique=False)

    op.create_table('enrollment_lessons',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('enrollment_id', sa.Uuid(), nullable=False),
    sa.Column('lesson_index', sa.Integer(), nullable=False),
    sa.Column('completed_at', sa.DateTime(timezone=True), nullable=False),
    sa.CheckConstraint('lesson_index >= 0', name='ck_enrollment_lessons_index'),
    sa.ForeignKeyConstraint(['enrollment_id'], ['enrollments.id']),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('enrollment_id', 'lesson_index', name='uq_enrollment_lessons_index')
    )

    op.create_table('quizzes',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('course_id', sa.Uuid(), nullable=False),
    sa.Column('title', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('questions', sa.JSON(), nullable=False),
    sa.Column('is_published', sa.Boolean(), nullable=False, server_default='false'),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_quizzes_course_published', 'quizzes', ['course_id', 'is_published'], unique=False)

    op.create_table('quiz_submissions',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('student_id', sa.Uuid(), nullable=False),
    sa.Column('quiz_id', sa.Uuid(), nullable=False),
    sa.Column('course_id', sa.Uuid(), nullable=False),
    sa.Column('score', sa.Integer(), nullable=False),
    sa.Column('total_questions', sa.Integer(), nullable=False),
    sa.Column('correct_answers', sa.Integer(), nullable=False),
    sa.Column('answers', sa.JSON(), nullable=False),
    sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_quiz_submissions_score'),
    sa.CheckConstraint('total_questions >= 1', name='ck_quiz_submissions_total'),
    sa.CheckConstraint('correct_answers >= 0', name='ck_quiz_submissions_correct'),
    sa.ForeignKeyConstraint(['student_id'], ['users.id']),
    sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('student_id', 'quiz_id', name='uq_quiz_submissions_student_quiz')
    )
    op.create_index('idx_quiz_submissions_course', 'quiz_submissions', ['course_id'], unique=False)

    op.create_table('assignments',
    sa.Column('id', sa.Uuid(), nullable=False),
    sa.Column('student_id', sa.Uuid(), nullable=False),
    sa.Column('course_id', sa.Uuid(), nullable=False),
    sa.Column('title', sa.String(length=200), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('submission_link', sa.String(length=1000), nullable=False),
    sa.Column('status', sa.String(length=20), nullable=False, server_default='submitted'),
    sa.Column('grade', sa.Integer(), nullable=True),
    sa.Column('feedback', sa.Text(), nullable=True),
    sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
    sa.Column('graded_at', sa.DateTime(timezone=True), nullable=True),
    sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint("status IN ('submitted', 'graded')", name='ck_assignments_status'),
    sa.CheckConstraint('grade >= 0 AND grade <= 100', name='ck_assignments_grade'),
    sa.ForeignKeyConstraint(['student_id'], ['users.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_assignments_student_course_status', 'assignments', ['student_id', 'course_id', 'status'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_assignments_student_course_status', table_name='assignments')
    op.drop_table('assignments')
    op.drop_index('idx_quiz_submissions_course', table_name='quiz_submissions')
    op.drop_table('quiz_submissions')
    op.drop_index('idx_quizzes_course_published', table_name='quizzes')
    op.drop_table('quizzes')
    op.drop_table('enrollment_lessons')
    op.drop_index('idx_enrollments_created_at', table_name='enrollments')
    op.drop_index('idx_enrollments_course_status', table_name='enrollments')
    op.drop_index('idx_enrollments_student_status', table_name='enrollments')
    op.drop_table('enrollments')
    op.drop_index('idx_courses_price', table_name='courses')
    op.drop_index('idx_courses_instructor_status', table_name='courses')
    op.drop_index('idx_courses_category_status', table_name='courses')
    op.drop_table('courses')
    op.drop_index('idx_users_role', table_name='users')
    op.drop_table('users')
