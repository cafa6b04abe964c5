"""
Conflict detection for approvals.
Finds approved bookings overlapping a date range on the same resource and
proposes the first alternative range after them.
"""

from datetime import date, timedelta

from .reservation_state import APPROVED, ResourceKey
from .reservation_store import ReservationStore


def ranges_overlap(start: date, end: date, other_start: date, other_end: date) -> bool:
    """Inclusive date-range intersection test."""
    return start <= other_end and end >= other_start


def suggest_alternative(start: date, end: date, conflicting_ends: list) -> dict:
    """
    Propose a range of the same length starting the day after the latest conflict.

    Args:
        start: Requested start date
        end: Requested end date
        conflicting_ends: End dates of the conflicting bookings (non-empty)

    Returns:
        dict: {'start': date, 'end': date}
    """
    duration = end - start
    suggested_start = max(conflicting_ends) + timedelta(days=1)
    return {'start': suggested_start, 'end': suggested_start + duration}


def _conflict_summary(reservation: dict) -> dict:
    return {
        'id': reservation['id'],
        'event_title': reservation['event_title'],
        'start_date': reservation['start_date'],
        'end_date': reservation['end_date'],
        'start_time': reservation.get('start_time'),
        'end_time': reservation.get('end_time'),
        'status': reservation['status'],
        'requester_id': reservation['requester_id'],
        'resource_name': reservation.get('resource_name'),
    }


class ConflictDetector:
    """Read-only double-booking check over the booked (APPROVED) set."""

    def __init__(self, store: ReservationStore):
        self.store = store

    def check(self, key: ResourceKey, start: date, end: date, exclude_id: int = None) -> dict:
        """
        Check a candidate date range against approved bookings of a resource.

        Only calendar dates take part in the overlap test; start/end times
        are carried in the result but never narrow a conflict.

        Args:
            key: Resource key of the candidate
            start: Candidate start date (inclusive)
            end: Candidate end date (inclusive)
            exclude_id: Reservation to leave out (the candidate itself)

        Returns:
            dict: {
                'has_conflict': bool,
                'conflicts': [conflicting reservation summaries],
                'suggestion': {'start': date, 'end': date} or None
            }
        """
        booked = self.store.find_by_resource_key(key, status=APPROVED, exclude_id=exclude_id)

        conflicts = []
        conflicting_ends = []
        for other in booked:
            other_start = date.fromisoformat(other['start_date'])
            other_end = date.fromisoformat(other['end_date'])
            if ranges_overlap(start, end, other_start, other_end):
                conflicts.append(_conflict_summary(other))
                conflicting_ends.append(other_end)

        suggestion = suggest_alternative(start, end, conflicting_ends) if conflicts else None

        return {
            'has_conflict': bool(conflicts),
            'conflicts': conflicts,
            'suggestion': suggestion,
        }

    def check_reservation(self, reservation: dict) -> dict:
        """Run check() for a stored reservation against everyone else's bookings."""
        return self.check(
            ResourceKey.of(reservation),
            date.fromisoformat(reservation['start_date']),
            date.fromisoformat(reservation['end_date']),
            exclude_id=reservation['id']
        )


def serialize_conflict_check(result: dict) -> dict:
    """Wire form of a check result: camelCase keys and ISO dates."""
    suggestion = result['suggestion']
    return {
        'hasConflict': result['has_conflict'],
        'conflicts': result['conflicts'],
        'suggestion': {
            'start': suggestion['start'].isoformat(),
            'end': suggestion['end'].isoformat(),
        } if suggestion else None,
    }
