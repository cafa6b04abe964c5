"""
Tests for database schema and seed data.
"""

import sqlite3

import pytest

from database import get_db


class TestSchema:
    """Tables, constraints and seed rows created by init_db()."""

    def test_tables_exist(self, app_context):
        rows = get_db().execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
        names = {row['name'] for row in rows}
        assert {'users', 'reservations', 'reservation_status_history'} <= names

    def test_wal_and_foreign_keys(self, app_context):
        db = get_db()
        assert db.execute('PRAGMA journal_mode').fetchone()[0] == 'wal'
        assert db.execute('PRAGMA foreign_keys').fetchone()[0] == 1

    def test_admin_is_seeded(self, app_context):
        admin = get_db().execute("SELECT * FROM users WHERE username = 'admin'").fetchone()
        assert admin['role'] == 'admin'
        assert admin['active'] == 1

    def test_status_constraint(self, app_context):
        db = get_db()
        with pytest.raises(sqlite3.IntegrityError):
            db.execute('''
                INSERT INTO reservations
                (requester_id, resource_id, resource_kind, event_title, start_date, end_date,
                 status, created_at, updated_at)
                VALUES ('u1', 'B1', 'building', 'X', '2024-05-01', '2024-05-01', 'ARCHIVED', 'now', 'now')
            ''')

    def test_resource_kind_constraint(self, app_context):
        db = get_db()
        with pytest.raises(sqlite3.IntegrityError):
            db.execute('''
                INSERT INTO reservations
                (requester_id, resource_id, resource_kind, event_title, start_date, end_date,
                 status, created_at, updated_at)
                VALUES ('u1', 'B1', 'openSpace', 'X', '2024-05-01', '2024-05-01', 'PENDING', 'now', 'now')
            ''')

    def test_role_constraint(self, app_context):
        db = get_db()
        with pytest.raises(sqlite3.IntegrityError):
            db.execute('''
                INSERT INTO users (username, email, password_hash, role)
                VALUES ('eve', 'eve@campus.local', 'x', 'superuser')
            ''')
