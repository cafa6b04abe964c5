"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservation_status_history',
        'reservations',
        'users',
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role TEXT NOT NULL DEFAULT 'requester'
                CHECK (role IN ('requester', 'reviewer', 'admin')),
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT
        )
    ''')

    # 2. Reservations
    # Dates are ISO strings (YYYY-MM-DD) so lexical order equals date order.
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            requester_id TEXT NOT NULL,
            campus_id TEXT,
            resource_id TEXT NOT NULL,
            resource_kind TEXT NOT NULL
                CHECK (resource_kind IN ('building', 'location', 'open_space')),
            resource_name TEXT,
            event_title TEXT NOT NULL,
            start_date TEXT NOT NULL,
            end_date TEXT NOT NULL,
            start_time TEXT,
            end_time TEXT,
            details TEXT NOT NULL DEFAULT '{}',
            documents TEXT NOT NULL DEFAULT '[]',
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'UNDER_REVIEW', 'APPROVED', 'REJECTED', 'CANCELLED')),
            validation_status TEXT NOT NULL DEFAULT 'pending',
            committee_comments TEXT,
            rejection_reason TEXT,
            review_notes TEXT,
            reviewed_by TEXT,
            reviewed_at TEXT,
            approved_by TEXT,
            approved_at TEXT,
            rejected_by TEXT,
            rejected_at TEXT,
            cancelled_at TEXT,
            force_approved INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CHECK (start_date <= end_date)
        )
    ''')

    # 3. Status history (audit trail of every transition)
    db.execute('''
        CREATE TABLE reservation_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            reservation_id INTEGER NOT NULL REFERENCES reservations(id),
            from_status TEXT,
            to_status TEXT NOT NULL,
            changed_by TEXT,
            notes TEXT,
            created_at TEXT NOT NULL
        )
    ''')


def create_indexes(db):
    """Create performance indexes."""
    indexes = [
        'CREATE INDEX IF NOT EXISTS idx_reservations_resource '
        'ON reservations(resource_kind, resource_id, status)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_requester ON reservations(requester_id)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_campus ON reservations(campus_id)',
        'CREATE INDEX IF NOT EXISTS idx_reservations_status ON reservations(status)',
        'CREATE INDEX IF NOT EXISTS idx_status_history_reservation '
        'ON reservation_status_history(reservation_id)',
    ]

    for statement in indexes:
        db.execute(statement)
