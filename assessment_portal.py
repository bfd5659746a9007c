"""
Assessment Results Portal

Flask web application for teachers to browse their classes, subjects and
assessments, view competition-ranked results with summary statistics, and
download result sheets as CSV or PDF.
"""

from flask import Flask, render_template, request, redirect, url_for, session, flash, Response, jsonify, g
from flask_wtf import FlaskForm
from flask_wtf.csrf import CSRFProtect, CSRFError
from flask_migrate import Migrate
from wtforms import StringField, PasswordField, validators
import csv
import re
from io import StringIO
from collections import namedtuple
from contextlib import contextmanager
from werkzeug.security import check_password_hash

import os
import logging

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

from perf_cache import build_cache, make_key
from pdf_reports import build_results_pdf
from ranking import ScoreRecord, rank, summarize, ordinal, round_percentage

load_dotenv()

app = Flask(__name__, template_folder='frontend/templates', static_folder='static')
ALLOW_INSECURE_DEFAULTS = os.environ.get('ALLOW_INSECURE_DEFAULTS', '').strip().lower() in ('1', 'true', 'yes')
secret_key = os.environ.get('SECRET_KEY')
if not secret_key:
    if ALLOW_INSECURE_DEFAULTS:
        secret_key = 'dev-secret-key-change-me'
    else:
        raise RuntimeError("SECRET_KEY is required in production. Set SECRET_KEY or enable ALLOW_INSECURE_DEFAULTS for local development.")
if not ALLOW_INSECURE_DEFAULTS and len(secret_key) < 32:
    raise RuntimeError("SECRET_KEY is too short. Use at least 32 characters in production.")
app.secret_key = secret_key
app.config['WTF_CSRF_TIME_LIMIT'] = None

csrf = CSRFProtect(app)
migrate = Migrate(app, directory='migrations')

DATABASE_URL = os.environ.get('DATABASE_URL', '').strip()
if not DATABASE_URL.startswith(('postgres://', 'postgresql://')):
    raise RuntimeError("PostgreSQL is required. Set DATABASE_URL to a postgresql:// connection string.")
SCHOOL_NAME = os.environ.get('SCHOOL_NAME', 'School Assessment Portal').strip()


def _env_int(name, default):
    raw = os.environ.get(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer number of seconds.") from exc


SUBJECTS_CACHE_TTL = _env_int('SUBJECTS_CACHE_TTL', 300)
PERFORMANCE_CACHE_TTL = _env_int('PERFORMANCE_CACHE_TTL', 3600)
result_cache = build_cache(
    backend=os.environ.get('CACHE_BACKEND', 'memory'),
    cache_dir=os.environ.get('CACHE_DIR', os.path.join('cache', 'performance')),
    redis_url=os.environ.get('REDIS_URL', '').strip(),
    default_ttl=PERFORMANCE_CACHE_TTL,
)

# Set up logging
logging.basicConfig(filename='app.log', level=logging.INFO,
                    format='%(asctime)s - %(levelname)s - %(message)s')
if ALLOW_INSECURE_DEFAULTS:
    logging.warning("ALLOW_INSECURE_DEFAULTS is enabled. Development-only fallbacks may be active.")

app.jinja_env.filters['ordinal'] = ordinal

# Authenticated identity for one request, passed explicitly to data-access calls.
RequestContext = namedtuple('RequestContext', ['user_id', 'username', 'role'])


def _adapt_query(query):
    return query.replace('?', '%s')


def db_execute(cursor, query, params=None):
    if params is None:
        return cursor.execute(_adapt_query(query))
    return cursor.execute(_adapt_query(query), params)


def get_db():
    """Create a PostgreSQL DB connection."""
    return psycopg2.connect(DATABASE_URL, cursor_factory=DictCursor, connect_timeout=10)


@contextmanager
def db_connection(commit=False):
    """Context manager for DB connections with optional commit."""
    conn = get_db()
    try:
        yield conn
        if commit:
            conn.commit()
    finally:
        conn.close()


def check_password(hashed, password):
    """Verify a password."""
    return check_password_hash(hashed, password)


def safe_int(value, default=0):
    """Parse integer safely while preserving valid zero values."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def current_context():
    """Build the request context from the signed session cookie."""
    if 'user_id' not in session:
        return None
    return RequestContext(
        user_id=session.get('user_id'),
        username=session.get('username', ''),
        role=(session.get('role') or '').strip().lower(),
    )


class LoginForm(FlaskForm):
    username = StringField('Username', [validators.DataRequired(), validators.Length(max=100)])
    password = PasswordField('Password', [validators.DataRequired()])


# ==================== DATA ACCESS ====================

def get_user(username):
    """Get user by username."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT user_id, username, password_hash, role, status
                         FROM users WHERE LOWER(username) = LOWER(?)''', (username,))
        row = c.fetchone()
        if not row:
            return None
        return {
            'user_id': row[0],
            'username': row[1],
            'password_hash': row[2],
            'role': (row[3] or '').strip().lower(),
            'status': row[4] or 'active',
        }


def update_last_login(user_id):
    with db_connection(commit=True) as conn:
        c = conn.cursor()
        db_execute(c, 'UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE user_id = ?', (user_id,))


def get_teacher_record(ctx):
    """Teacher row for the logged-in user, or None."""
    if not ctx or ctx.role != 'teacher':
        return None
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT teacher_id, first_name, last_name FROM teachers WHERE user_id = ?', (ctx.user_id,))
        row = c.fetchone()
        if not row:
            return None
        return {'teacher_id': row[0], 'first_name': row[1] or '', 'last_name': row[2] or ''}


def get_teacher_classes(teacher_id):
    """Classes assigned to a teacher."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT DISTINCT c.class_id, c.class_name, p.program_name
                         FROM classes c
                         JOIN teacherclassassignments tca ON c.class_id = tca.class_id
                         JOIN programs p ON c.program_id = p.program_id
                         WHERE tca.teacher_id = ?
                         ORDER BY p.program_name, c.class_name''', (teacher_id,))
        return [{'class_id': row[0], 'class_name': row[1], 'program_name': row[2]} for row in c.fetchall()]


def teacher_has_class_subject_access(teacher_id, class_id, subject_id):
    """Check whether teacher is assigned to a class for a subject."""
    if not class_id or not subject_id:
        return False
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT 1 FROM teacherclassassignments
                         WHERE teacher_id = ? AND class_id = ? AND subject_id = ?
                         LIMIT 1''', (teacher_id, class_id, subject_id))
        return c.fetchone() is not None


def get_class_subjects(teacher_id, class_id):
    """Subjects a teacher takes in one class."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT DISTINCT s.subject_id, s.subject_name
                         FROM subjects s
                         JOIN teacherclassassignments tca ON s.subject_id = tca.subject_id
                         WHERE tca.teacher_id = ? AND tca.class_id = ?
                         ORDER BY s.subject_name''', (teacher_id, class_id))
        return [{'subject_id': row[0], 'subject_name': row[1]} for row in c.fetchall()]


def _query_teacher_subjects(teacher_id):
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT s.subject_id, s.subject_name,
                                COUNT(DISTINCT tca.class_id) AS class_count,
                                STRING_AGG(DISTINCT c.class_name, ', ') AS class_names
                         FROM subjects s
                         JOIN teacherclassassignments tca ON s.subject_id = tca.subject_id
                         JOIN classes c ON c.class_id = tca.class_id
                         WHERE tca.teacher_id = ?
                         GROUP BY s.subject_id, s.subject_name
                         ORDER BY s.subject_name''', (teacher_id,))
        return [{
            'subject_id': row[0],
            'subject_name': row[1],
            'class_count': int(row[2] or 0),
            'class_names': row[3] or '',
        } for row in c.fetchall()]


def get_teacher_subjects(teacher_id, refresh=False):
    """Subjects taught across all semesters, cached for SUBJECTS_CACHE_TTL seconds."""
    key = make_key('teacher_subjects', teacher_id, 'all_semesters')
    if refresh:
        result_cache.invalidate(key)
    return result_cache.remember(key, lambda: _query_teacher_subjects(teacher_id), ttl=SUBJECTS_CACHE_TTL)


def get_subject_classes(teacher_id, subject_id):
    """Classes a teacher takes for one subject."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT DISTINCT c.class_id, c.class_name, p.program_name
                         FROM classes c
                         JOIN teacherclassassignments tca ON c.class_id = tca.class_id
                         JOIN programs p ON c.program_id = p.program_id
                         WHERE tca.teacher_id = ? AND tca.subject_id = ?
                         ORDER BY p.program_name, c.class_name''', (teacher_id, subject_id))
        return [{'class_id': row[0], 'class_name': row[1], 'program_name': row[2]} for row in c.fetchall()]


def get_class_assessments(class_id, subject_id):
    """Assessments set for a class and subject, newest first."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT a.assessment_id, a.title, a.date, a.status
                         FROM assessments a
                         JOIN assessmentclasses ac ON a.assessment_id = ac.assessment_id
                         WHERE ac.class_id = ? AND ac.subject_id = ?
                         ORDER BY a.date DESC''', (class_id, subject_id))
        return [{
            'assessment_id': row[0],
            'title': row[1],
            'date': str(row[2]) if row[2] else '',
            'status': row[3],
        } for row in c.fetchall()]


def get_assessment_info(class_id, subject_id, assessment_id):
    """Class, subject and assessment details, or None if the assessment is not set for them."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT c.class_name, s.subject_name, a.title, a.date, a.description
                         FROM assessments a
                         JOIN assessmentclasses ac ON ac.assessment_id = a.assessment_id
                         JOIN classes c ON c.class_id = ac.class_id
                         JOIN subjects s ON s.subject_id = ac.subject_id
                         WHERE a.assessment_id = ? AND ac.class_id = ? AND ac.subject_id = ?''',
                   (assessment_id, class_id, subject_id))
        row = c.fetchone()
        if not row:
            return None
        return {
            'class_name': row[0],
            'subject_name': row[1],
            'assessment_title': row[2],
            'assessment_date': row[3].strftime('%d/%m/%Y') if hasattr(row[3], 'strftime') else (row[3] or ''),
            'description': row[4] or '',
        }


def _display_name(first_name, last_name):
    return ' '.join(part for part in ((first_name or '').strip(), (last_name or '').strip()) if part)


def get_completed_scores(assessment_id, class_id):
    """ScoreRecords for students in the class who completed the assessment."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT r.student_id, s.first_name, s.last_name, r.score
                         FROM results r
                         JOIN students s ON r.student_id = s.student_id
                         WHERE r.assessment_id = ? AND s.class_id = ?
                           AND r.status = 'completed' AND r.score IS NOT NULL
                         ORDER BY s.last_name, s.first_name''', (assessment_id, class_id))
        return [ScoreRecord(row[0], _display_name(row[1], row[2]), float(row[3])) for row in c.fetchall()]


def get_class_students(class_id):
    """Enrolled students of a class."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, '''SELECT student_id, first_name, last_name FROM students
                         WHERE class_id = ?
                         ORDER BY last_name, first_name''', (class_id,))
        return [{'student_id': row[0], 'display_name': _display_name(row[1], row[2])} for row in c.fetchall()]


def get_roster_size(class_id):
    """Number of students enrolled in a class."""
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, 'SELECT COUNT(*) FROM students WHERE class_id = ?', (class_id,))
        row = c.fetchone()
        return int(row[0] or 0) if row else 0


def get_teacher_students(teacher_id, class_id=None):
    """Students in the teacher's classes with completed-assessment count and average score."""
    query = '''SELECT s.student_id, s.first_name, s.last_name, c.class_id, c.class_name,
                      COUNT(DISTINCT r.result_id) AS completed_assessments,
                      AVG(r.score) AS average_score
               FROM students s
               JOIN classes c ON s.class_id = c.class_id
               LEFT JOIN results r ON r.student_id = s.student_id
                    AND r.status = 'completed' AND r.score IS NOT NULL
                    AND EXISTS (SELECT 1 FROM assessmentclasses ac
                                WHERE ac.assessment_id = r.assessment_id AND ac.class_id = s.class_id)
               WHERE s.class_id IN (SELECT class_id FROM teacherclassassignments WHERE teacher_id = ?)'''
    params = [teacher_id]
    if class_id:
        query += ' AND s.class_id = ?'
        params.append(class_id)
    query += '''
               GROUP BY s.student_id, s.first_name, s.last_name, c.class_id, c.class_name
               ORDER BY c.class_name, s.last_name, s.first_name'''
    with db_connection() as conn:
        c = conn.cursor()
        db_execute(c, query, tuple(params))
        return [{
            'student_id': row[0],
            'display_name': _display_name(row[1], row[2]),
            'class_id': row[3],
            'class_name': row[4],
            'completed_assessments': int(row[5] or 0),
            'average_score': round_percentage(float(row[6])) if row[6] is not None else None,
        } for row in c.fetchall()]


def load_assessment_data(teacher_id, class_id, subject_id, assessment_id, refresh=False):
    """Raw rows behind a result sheet, cached for PERFORMANCE_CACHE_TTL seconds."""
    if not teacher_has_class_subject_access(teacher_id, class_id, subject_id):
        return None

    def fetch():
        info = get_assessment_info(class_id, subject_id, assessment_id)
        if not info:
            return None
        return {
            'info': info,
            'scores': [list(r) for r in get_completed_scores(assessment_id, class_id)],
            'students': get_class_students(class_id),
        }

    key = make_key('assessment_results', class_id, subject_id, assessment_id)
    if refresh:
        result_cache.invalidate(key)
    return result_cache.remember(key, fetch, ttl=PERFORMANCE_CACHE_TTL)


def build_assessment_report(teacher_id, class_id, subject_id, assessment_id, refresh=False):
    """Ranked result sheet for one class, or None when the teacher cannot see it."""
    data = load_assessment_data(teacher_id, class_id, subject_id, assessment_id, refresh=refresh)
    if not data:
        return None
    scores = [ScoreRecord(*row) for row in data['scores']]
    students = data.get('students') or []
    participants = {r.student_id for r in scores}
    report = dict(data['info'])
    report.update({
        'class_id': class_id,
        'subject_id': subject_id,
        'assessment_id': assessment_id,
        'ranked': rank(scores),
        'summary': summarize(scores, len(students)),
        'not_attempted': [s for s in students if s['student_id'] not in participants],
    })
    return report


# ==================== HELPERS ====================

def _require_teacher():
    """Return (ctx, teacher) for a logged-in teacher, or (None, None)."""
    ctx = g.get('ctx')
    if not ctx or ctx.role != 'teacher':
        return None, None
    teacher = get_teacher_record(ctx)
    if not teacher:
        flash('Teacher record not found. Contact administrator.', 'error')
        return ctx, None
    return ctx, teacher


def _selection():
    return (
        safe_int(request.args.get('class'), 0),
        safe_int(request.args.get('subject'), 0),
        safe_int(request.args.get('assessment'), 0),
    )


def _safe_filename(*parts):
    joined = '_'.join(str(p) for p in parts if p)
    return re.sub(r'[^A-Za-z0-9]+', '_', joined).strip('_').lower() or 'results'


def results_csv(report):
    """CSV text of a ranked result sheet followed by its summary."""
    summary = report['summary']
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(['Position', 'Student ID', 'Student Name', 'Score (%)'])
    for record in report['ranked']:
        writer.writerow([ordinal(record.position), record.student_id, record.display_name, record.score])
    writer.writerow([])
    writer.writerow(['Total Students', summary.roster_size])
    writer.writerow(['Students Attempted', summary.participant_count])
    writer.writerow(['Participation Rate (%)', summary.participation_rate])
    writer.writerow(['Average Score (%)', '' if summary.average_score is None else summary.average_score])
    writer.writerow(['Highest Score (%)', '' if summary.max_score is None else summary.max_score])
    writer.writerow(['Lowest Score (%)', '' if summary.min_score is None else summary.min_score])
    return output.getvalue()


# ==================== ROUTES ====================

@app.before_request
def load_request_context():
    g.ctx = current_context()


@app.route('/')
def home():
    return redirect(url_for('login'))


@app.errorhandler(CSRFError)
def csrf_error(error):
    """Handle CSRF token errors."""
    flash('Your session has expired. Please login again.', 'error')
    return redirect(url_for('login'))


@app.route('/login', methods=['GET', 'POST'])
def login():
    """Single login for all users."""
    form = LoginForm()
    if form.validate_on_submit():
        username = form.username.data.strip().lower()
        user = get_user(username)
        if user and user['status'] == 'active' and check_password(user['password_hash'], form.password.data):
            session.clear()
            session['user_id'] = user['user_id']
            session['username'] = user['username']
            session['role'] = user['role']
            update_last_login(user['user_id'])
            logging.info("User logged in: %s (%s)", user['username'], user['role'])
            if user['role'] == 'teacher':
                return redirect(url_for('teacher_dashboard'))
            flash('This portal is for teachers only.', 'error')
            session.clear()
        else:
            logging.warning("Failed login for %s", username)
            flash('Invalid username or password.', 'error')
    elif request.method == 'POST':
        flash('Please enter username and password.', 'error')
    return render_template('shared/login.html', form=form)


@app.route('/logout')
def logout():
    session.clear()
    return redirect(url_for('login'))


@app.route('/teacher')
def teacher_dashboard():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    classes = get_teacher_classes(teacher['teacher_id'])
    for cls in classes:
        cls['student_count'] = get_roster_size(cls['class_id'])
    return render_template('teacher/dashboard.html', teacher=teacher, classes=classes)


@app.route('/teacher/subjects')
def teacher_subjects():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    refresh = request.args.get('refresh') == '1'
    subjects = get_teacher_subjects(teacher['teacher_id'], refresh=refresh)
    return render_template('teacher/subjects.html', teacher=teacher, subjects=subjects)


@app.route('/teacher/students')
def teacher_students():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    teacher_id = teacher['teacher_id']
    class_id = safe_int(request.args.get('class'), 0)
    classes = []
    students = []
    try:
        classes = get_teacher_classes(teacher_id)
        students = get_teacher_students(teacher_id, class_id or None)
    except psycopg2.Error:
        logging.exception("Failed to load students for teacher %s", teacher_id)
        flash('Error loading students. Please try again.', 'error')

    averages = [s['average_score'] for s in students if s['average_score'] is not None]
    overall_average = round_percentage(sum(averages) / len(averages)) if averages else None
    return render_template(
        'teacher/students.html',
        teacher=teacher,
        classes=classes,
        students=students,
        selected_class=class_id,
        students_with_results=len(averages),
        overall_average=overall_average,
    )


@app.route('/teacher/results')
def teacher_results():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    teacher_id = teacher['teacher_id']
    class_id, subject_id, assessment_id = _selection()

    classes = get_teacher_classes(teacher_id)
    subjects = get_class_subjects(teacher_id, class_id) if class_id else []
    assessments = get_class_assessments(class_id, subject_id) if class_id and subject_id else []
    report = None
    if class_id and subject_id and assessment_id:
        try:
            report = build_assessment_report(teacher_id, class_id, subject_id, assessment_id,
                                             refresh=request.args.get('refresh') == '1')
        except psycopg2.Error:
            logging.exception("Failed to load results for assessment %s class %s", assessment_id, class_id)
            flash('Error loading results. Please try again.', 'error')
        else:
            if report is None:
                flash('No results available for that class, subject and assessment.', 'error')

    return render_template(
        'teacher/results.html',
        teacher=teacher,
        classes=classes,
        subjects=subjects,
        assessments=assessments,
        selected_class=class_id,
        selected_subject=subject_id,
        selected_assessment=assessment_id,
        report=report,
    )


@app.route('/teacher/results/csv')
def teacher_results_csv():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    class_id, subject_id, assessment_id = _selection()
    try:
        report = build_assessment_report(teacher['teacher_id'], class_id, subject_id, assessment_id)
    except psycopg2.Error:
        logging.exception("Failed to load results for CSV export of assessment %s class %s", assessment_id, class_id)
        flash('Error loading results. Please try again.', 'error')
        return redirect(url_for('teacher_results'))
    if not report:
        flash('No results available for that class, subject and assessment.', 'error')
        return redirect(url_for('teacher_results'))
    filename = _safe_filename(report['class_name'], report['subject_name'], report['assessment_title'], 'results') + '.csv'
    return Response(
        results_csv(report),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


def _pdf_response(sections, filename, back_args):
    try:
        pdf_data = build_results_pdf(sections, SCHOOL_NAME, report_title='Assessment Results')
    except Exception:
        logging.exception("PDF generation failed for %s", filename)
        flash('Error generating report. Please try again.', 'error')
        return redirect(url_for('teacher_results', **back_args))
    return Response(
        pdf_data,
        mimetype='application/pdf',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@app.route('/teacher/results/pdf')
def teacher_results_pdf():
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    class_id, subject_id, assessment_id = _selection()
    try:
        report = build_assessment_report(teacher['teacher_id'], class_id, subject_id, assessment_id)
    except psycopg2.Error:
        logging.exception("Failed to load results for PDF of assessment %s class %s", assessment_id, class_id)
        flash('Error loading results. Please try again.', 'error')
        return redirect(url_for('teacher_results'))
    if not report:
        flash('No results available for that class, subject and assessment.', 'error')
        return redirect(url_for('teacher_results'))
    filename = _safe_filename(report['class_name'], report['subject_name'], report['assessment_title'], 'results') + '.pdf'
    return _pdf_response([report], filename, {'class': class_id, 'subject': subject_id, 'assessment': assessment_id})


@app.route('/teacher/results/pdf/all')
def teacher_all_results_pdf():
    """One PDF with a section per class the teacher takes the subject in."""
    ctx, teacher = _require_teacher()
    if not teacher:
        return redirect(url_for('login'))
    teacher_id = teacher['teacher_id']
    _class_id, subject_id, assessment_id = _selection()
    if not subject_id or not assessment_id:
        flash('Select a subject and assessment first.', 'error')
        return redirect(url_for('teacher_results'))

    sections = []
    try:
        for cls in get_subject_classes(teacher_id, subject_id):
            report = build_assessment_report(teacher_id, cls['class_id'], subject_id, assessment_id)
            if report:
                sections.append(report)
    except psycopg2.Error:
        logging.exception("Failed to load results for all-classes PDF of assessment %s subject %s", assessment_id, subject_id)
        flash('Error loading results. Please try again.', 'error')
        return redirect(url_for('teacher_results'))
    if not sections:
        flash('No classes found with this assessment for the selected subject.', 'error')
        return redirect(url_for('teacher_results'))
    filename = _safe_filename(sections[0]['subject_name'], sections[0]['assessment_title'], 'all_classes') + '.pdf'
    return _pdf_response(sections, filename, {'subject': subject_id, 'assessment': assessment_id})


@app.route('/api/assessments/<int:assessment_id>/results')
def api_assessment_results(assessment_id):
    ctx = g.get('ctx')
    if not ctx or ctx.role != 'teacher':
        return jsonify({'error': 'Unauthorized'}), 401
    teacher = get_teacher_record(ctx)
    if not teacher:
        return jsonify({'error': 'Teacher record not found'}), 403
    class_id = safe_int(request.args.get('class'), 0)
    subject_id = safe_int(request.args.get('subject'), 0)
    try:
        report = build_assessment_report(teacher['teacher_id'], class_id, subject_id, assessment_id)
    except psycopg2.Error:
        logging.exception("API results lookup failed for assessment %s class %s", assessment_id, class_id)
        return jsonify({'error': 'Results are temporarily unavailable'}), 503
    if not report:
        return jsonify({'error': 'Not found'}), 404
    return jsonify({
        'assessment_id': assessment_id,
        'class_name': report['class_name'],
        'subject_name': report['subject_name'],
        'assessment_title': report['assessment_title'],
        'results': [dict(r._asdict(), position_label=ordinal(r.position)) for r in report['ranked']],
        'summary': report['summary']._asdict(),
    })


# ==================== MAIN ====================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', '0').strip().lower() in ('1', 'true', 'yes')
    app.run(host='0.0.0.0', port=port, debug=debug)
