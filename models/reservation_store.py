"""
Reservation data access.
Durable record of reservations: insert, update, lookup by id and by resource key,
plus the status history trail. Works on an explicitly passed sqlite3 connection.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager

from .reservation_errors import StateError
from .reservation_state import ResourceKey


logger = logging.getLogger(__name__)


# =============================================================================
# COLUMN GROUPS
# =============================================================================

INSERT_COLUMNS = (
    'requester_id', 'campus_id', 'resource_id', 'resource_kind', 'resource_name',
    'event_title', 'start_date', 'end_date', 'start_time', 'end_time',
    'details', 'documents', 'status', 'validation_status',
    'created_at', 'updated_at',
)

# Columns the lifecycle may change after creation
UPDATABLE_COLUMNS = frozenset({
    'status', 'validation_status', 'committee_comments', 'rejection_reason',
    'review_notes', 'reviewed_by', 'reviewed_at', 'approved_by', 'approved_at',
    'rejected_by', 'rejected_at', 'cancelled_at', 'force_approved', 'updated_at',
})

# Decision trail columns that may only be written once
WRITE_ONCE_COLUMNS = frozenset({
    'reviewed_by', 'reviewed_at', 'approved_by', 'approved_at',
    'rejected_by', 'rejected_at', 'cancelled_at',
})

JSON_COLUMNS = {'details': {}, 'documents': []}


def _row_to_reservation(row: sqlite3.Row) -> dict:
    """Convert a reservations row to a dict with decoded JSON columns."""
    reservation = dict(row)
    for column, default in JSON_COLUMNS.items():
        raw = reservation.get(column)
        reservation[column] = json.loads(raw) if raw else type(default)()
    reservation['force_approved'] = bool(reservation.get('force_approved'))
    return reservation


class ReservationStore:
    """
    Reservation persistence over a single sqlite3 connection.

    Write methods never commit on their own; callers group them in
    ``transaction()`` so a status write and its history entry land together.
    """

    def __init__(self, db: sqlite3.Connection):
        self.db = db

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    @contextmanager
    def transaction(self):
        """
        Run the block inside a write transaction.

        BEGIN IMMEDIATE takes SQLite's reserved lock up front, so reads made
        inside the block cannot be invalidated by another writer before commit.
        """
        self.db.execute('BEGIN IMMEDIATE')
        try:
            yield self
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # =========================================================================
    # WRITE
    # =========================================================================

    def insert(self, record: dict) -> int:
        """
        Insert a new reservation.

        Args:
            record: Column values; ``details`` and ``documents`` are JSON-encoded here

        Returns:
            int: New reservation id
        """
        values = dict(record)
        values['details'] = json.dumps(values.get('details') or {}, ensure_ascii=False)
        values['documents'] = json.dumps(list(values.get('documents') or ()), ensure_ascii=False)

        placeholders = ', '.join('?' * len(INSERT_COLUMNS))
        cursor = self.db.execute(
            f'INSERT INTO reservations ({", ".join(INSERT_COLUMNS)}) VALUES ({placeholders})',
            [values.get(column) for column in INSERT_COLUMNS]
        )
        return cursor.lastrowid

    def update(self, reservation_id: int, changes: dict) -> None:
        """
        Apply lifecycle changes to a reservation.

        Write-once columns are only written while still NULL; an attempt to
        overwrite one fails the whole update.

        Args:
            reservation_id: Reservation ID
            changes: Column -> value

        Raises:
            ValueError: If a column outside UPDATABLE_COLUMNS is given
            StateError: If a write-once column is already set
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {', '.join(sorted(unknown))}")
        if not changes:
            return

        columns = sorted(changes)
        query = f'UPDATE reservations SET {", ".join(f"{c} = ?" for c in columns)} WHERE id = ?'
        params = [changes[c] for c in columns] + [reservation_id]

        write_once = [c for c in columns if c in WRITE_ONCE_COLUMNS]
        for column in write_once:
            query += f' AND {column} IS NULL'

        cursor = self.db.execute(query, params)
        if cursor.rowcount == 0:
            current = self.find_by_id(reservation_id)
            status = current['status'] if current else None
            logger.warning('Refused to overwrite %s on reservation %s', write_once, reservation_id)
            raise StateError(
                f'Decision already recorded on reservation {reservation_id}',
                current_status=status
            )

    def add_status_history(self, reservation_id: int, from_status: str, to_status: str,
                           changed_by: str, notes: str, created_at: str) -> None:
        """Append a transition to the status history."""
        self.db.execute('''
            INSERT INTO reservation_status_history
            (reservation_id, from_status, to_status, changed_by, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (reservation_id, from_status, to_status, changed_by, notes, created_at))

    # =========================================================================
    # READ
    # =========================================================================

    def find_by_id(self, reservation_id: int) -> dict:
        """
        Get reservation by ID.

        Returns:
            dict: Reservation, or None if not found
        """
        row = self.db.execute(
            'SELECT * FROM reservations WHERE id = ?', (reservation_id,)
        ).fetchone()
        return _row_to_reservation(row) if row else None

    def find_by_resource_key(self, key: ResourceKey, status: str = None,
                             exclude_id: int = None) -> list:
        """
        Get reservations targeting a resource.

        Args:
            key: Resource key
            status: Only reservations in this status (optional)
            exclude_id: Reservation ID to leave out (optional)

        Returns:
            list: Reservation dicts ordered by start date
        """
        query = '''
            SELECT * FROM reservations
            WHERE resource_id = ? AND resource_kind = ?
        '''
        params = [key.resource_id, key.resource_kind]

        if status:
            query += ' AND status = ?'
            params.append(status)

        if exclude_id is not None:
            query += ' AND id != ?'
            params.append(exclude_id)

        query += ' ORDER BY start_date, id'

        return [_row_to_reservation(row) for row in self.db.execute(query, params).fetchall()]

    def find_all(self, page: int = 1, limit: int = 10, status: str = None,
                 requester_id: str = None, campus_id: str = None) -> tuple:
        """
        Get a page of reservations, newest first.

        Returns:
            tuple: (list of reservation dicts, total matching count)
        """
        where = ' WHERE 1=1'
        params = []

        if status:
            where += ' AND status = ?'
            params.append(status)

        if requester_id:
            where += ' AND requester_id = ?'
            params.append(requester_id)

        if campus_id:
            where += ' AND campus_id = ?'
            params.append(campus_id)

        total = self.db.execute(
            f'SELECT COUNT(*) AS total FROM reservations{where}', params
        ).fetchone()['total']

        rows = self.db.execute(
            f'SELECT * FROM reservations{where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?',
            params + [limit, (page - 1) * limit]
        ).fetchall()

        return [_row_to_reservation(row) for row in rows], total

    def get_status_history(self, reservation_id: int) -> list:
        """
        Get state change history for reservation.

        Returns:
            list: History entries, oldest first
        """
        rows = self.db.execute('''
            SELECT * FROM reservation_status_history
            WHERE reservation_id = ?
            ORDER BY id
        ''', (reservation_id,)).fetchall()
        return [dict(r) for r in rows]
