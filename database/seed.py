"""
Database seed data.
Initial data population for fresh database installations.
"""

import os

from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data."""

    # Default administrator; password overridable for first deployments
    admin_password = os.environ.get('ADMIN_PASSWORD', 'admin123')

    users = [
        ('admin', 'admin@campus.local', admin_password, 'Administrator', 'admin'),
    ]

    for username, email, password, full_name, role in users:
        db.execute('''
            INSERT INTO users (username, email, password_hash, full_name, role)
            VALUES (?, ?, ?, ?, ?)
        ''', (username, email, generate_password_hash(password), full_name, role))
