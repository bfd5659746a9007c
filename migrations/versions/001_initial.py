"""Initial schema for the assessment results portal.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create all tables and indexes used by the results pages."""

    # Users table with roles: admin, teacher, student
    op.execute('''CREATE TABLE IF NOT EXISTS users (
                    user_id SERIAL PRIMARY KEY,
                    username TEXT UNIQUE NOT NULL,
                    email TEXT,
                    password_hash TEXT NOT NULL,
                    role TEXT NOT NULL DEFAULT 'student',
                    status TEXT NOT NULL DEFAULT 'active',
                    last_login TIMESTAMP,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS programs (
                    program_id SERIAL PRIMARY KEY,
                    program_name TEXT UNIQUE NOT NULL
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS semesters (
                    semester_id SERIAL PRIMARY KEY,
                    semester_name TEXT NOT NULL,
                    start_date DATE,
                    end_date DATE
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS classes (
                    class_id SERIAL PRIMARY KEY,
                    program_id INTEGER NOT NULL REFERENCES programs(program_id),
                    class_name TEXT NOT NULL,
                    UNIQUE(program_id, class_name)
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS subjects (
                    subject_id SERIAL PRIMARY KEY,
                    subject_name TEXT UNIQUE NOT NULL
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS teachers (
                    teacher_id SERIAL PRIMARY KEY,
                    user_id INTEGER UNIQUE NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
                    first_name TEXT,
                    last_name TEXT
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS students (
                    student_id SERIAL PRIMARY KEY,
                    user_id INTEGER UNIQUE REFERENCES users(user_id) ON DELETE SET NULL,
                    class_id INTEGER REFERENCES classes(class_id),
                    first_name TEXT NOT NULL,
                    last_name TEXT NOT NULL
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS teacherclassassignments (
                    assignment_id SERIAL PRIMARY KEY,
                    teacher_id INTEGER NOT NULL REFERENCES teachers(teacher_id) ON DELETE CASCADE,
                    class_id INTEGER NOT NULL REFERENCES classes(class_id) ON DELETE CASCADE,
                    subject_id INTEGER NOT NULL REFERENCES subjects(subject_id) ON DELETE CASCADE,
                    semester_id INTEGER REFERENCES semesters(semester_id),
                    UNIQUE(teacher_id, class_id, subject_id, semester_id)
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS assessments (
                    assessment_id SERIAL PRIMARY KEY,
                    semester_id INTEGER REFERENCES semesters(semester_id),
                    title TEXT NOT NULL,
                    description TEXT,
                    date DATE,
                    status TEXT DEFAULT 'pending',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )''')

    op.execute('''CREATE TABLE IF NOT EXISTS assessmentclasses (
                    assessment_id INTEGER NOT NULL REFERENCES assessments(assessment_id) ON DELETE CASCADE,
                    class_id INTEGER NOT NULL REFERENCES classes(class_id) ON DELETE CASCADE,
                    subject_id INTEGER NOT NULL REFERENCES subjects(subject_id) ON DELETE CASCADE,
                    PRIMARY KEY (assessment_id, class_id, subject_id)
                )''')

    # One attempt per student per assessment; score is a percentage.
    op.execute('''CREATE TABLE IF NOT EXISTS results (
                    result_id SERIAL PRIMARY KEY,
                    assessment_id INTEGER NOT NULL REFERENCES assessments(assessment_id) ON DELETE CASCADE,
                    student_id INTEGER NOT NULL REFERENCES students(student_id) ON DELETE CASCADE,
                    score NUMERIC(5, 2) CHECK (score IS NULL OR (score >= 0 AND score <= 100)),
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(assessment_id, student_id)
                )''')

    op.execute('CREATE INDEX IF NOT EXISTS idx_students_class ON students(class_id)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_tca_teacher ON teacherclassassignments(teacher_id, class_id, subject_id)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_results_assessment_status ON results(assessment_id, status)')
    op.execute('CREATE INDEX IF NOT EXISTS idx_assessmentclasses_class_subject ON assessmentclasses(class_id, subject_id)')


def downgrade() -> None:
    """Drop all tables (destructive)."""
    op.execute('DROP TABLE IF EXISTS results CASCADE')
    op.execute('DROP TABLE IF EXISTS assessmentclasses CASCADE')
    op.execute('DROP TABLE IF EXISTS assessments CASCADE')
    op.execute('DROP TABLE IF EXISTS teacherclassassignments CASCADE')
    op.execute('DROP TABLE IF EXISTS students CASCADE')
    op.execute('DROP TABLE IF EXISTS teachers CASCADE')
    op.execute('DROP TABLE IF EXISTS subjects CASCADE')
    op.execute('DROP TABLE IF EXISTS classes CASCADE')
    op.execute('DROP TABLE IF EXISTS semesters CASCADE')
    op.execute('DROP TABLE IF EXISTS programs CASCADE')
    op.execute('DROP TABLE IF EXISTS users CASCADE')
