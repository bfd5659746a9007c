"""
Bring the results database schema up to date.

    python migrate.py

Runs every pending Alembic revision under migrations/ against DATABASE_URL
and exits non-zero if the upgrade fails. The web server is not started.
"""

import sys


def main():
    import assessment_portal
    from flask_migrate import upgrade

    try:
        print("Upgrading results database schema...")
        with assessment_portal.app.app_context():
            upgrade(directory='migrations')
        print("Schema is up to date.")
    except Exception as e:
        print(f"Schema upgrade failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
