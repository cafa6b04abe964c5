"""
Resource availability for calendar display.
Read-only projection of approved bookings; visibility rules belong to the caller.
"""

from .reservation_state import APPROVED, ResourceKey
from .reservation_store import ReservationStore


class AvailabilityQuery:
    """Blocked date ranges per resource."""

    def __init__(self, store: ReservationStore):
        self.store = store

    def blocked_ranges(self, key: ResourceKey) -> list:
        """
        Get the date ranges taken by approved reservations at a resource.

        Args:
            key: Resource key

        Returns:
            list: [{'start': 'YYYY-MM-DD', 'end': 'YYYY-MM-DD', 'title': str,
                    'reservation_id': int}] ordered by start date
        """
        return [
            {
                'start': r['start_date'],
                'end': r['end_date'],
                'title': r['event_title'],
                'reservation_id': r['id'],
            }
            for r in self.store.find_by_resource_key(key, status=APPROVED)
        ]
