"""
Reservation lifecycle.
Enforces the decision pipeline and actor permissions:

    PENDING -> UNDER_REVIEW -> APPROVED
    PENDING -> APPROVED | REJECTED | CANCELLED

APPROVED, REJECTED and CANCELLED are terminal. Every operation either returns
the updated reservation or raises a ReservationError subclass; nothing is
retried here.
"""

import logging
import math
from datetime import date

from .reservation_availability import AvailabilityQuery
from .reservation_conflicts import ConflictDetector, serialize_conflict_check
from .reservation_documents import DocumentAttacher
from .reservation_errors import ConflictError, NotFoundError, PermissionDenied, ValidationError
from .reservation_state import (
    APPROVED, CANCELLED, PENDING, REJECTED, UNDER_REVIEW,
    RESERVATION_STATUSES, ResourceKey, require_status, validation_status_for,
)
from .reservation_store import ReservationStore
from .resource_locks import ResourceLockRegistry
from utils.validators import validate_date_string, validate_time_string


logger = logging.getLogger(__name__)


def _require_text(value, field: str, label: str) -> str:
    """Return the stripped value or raise ValidationError when blank."""
    if value is None or not str(value).strip():
        raise ValidationError(f'{label} is required', field=field)
    return str(value).strip()


class ReservationLifecycle:
    """
    Orchestrates creation and decisions on reservations.

    Args:
        store: ReservationStore bound to the caller's connection
        attacher: DocumentAttacher for submission files
        locks: ResourceLockRegistry shared by every lifecycle in the process
        clock: Callable returning the current (aware) datetime
        upload_timeout: Default seconds allowed for document uploads
        max_page_size: Upper bound for list() page sizes
    """

    def __init__(self, store: ReservationStore, attacher: DocumentAttacher,
                 locks: ResourceLockRegistry, clock, upload_timeout: float = None,
                 max_page_size: int = 100):
        self.store = store
        self.attacher = attacher
        self.locks = locks
        self.clock = clock
        self.upload_timeout = upload_timeout
        self.max_page_size = max_page_size
        self.detector = ConflictDetector(store)
        self.availability = AvailabilityQuery(store)

    # =========================================================================
    # CREATE
    # =========================================================================

    def create(self, requester_id, payload: dict, files=(), upload_timeout: float = None) -> dict:
        """
        Submit a new reservation in PENDING.

        Args:
            requester_id: Submitting user
            payload: {
                'event_title', 'resource_id', 'resource_kind', 'start_date',
                'end_date' (required), 'resource_name', 'start_time',
                'end_time', 'campus_id', 'details' (optional)
            }
            files: UploadedFile items in submission order
            upload_timeout: Overrides the default upload timeout

        Returns:
            dict: The stored reservation

        Raises:
            ValidationError: Missing title, resource or dates, start after end,
                or a negative upload timeout
            UploadError: Any document failed to store; nothing is persisted
        """
        requester = _require_text(requester_id, 'requesterId', 'Requester')
        title = _require_text(payload.get('event_title'), 'eventTitle', 'Event title')
        key = ResourceKey.from_values(payload.get('resource_id'), payload.get('resource_kind'))
        start, end = self._parse_range(payload.get('start_date'), payload.get('end_date'))

        for field, label in (('start_time', 'startTime'), ('end_time', 'endTime')):
            if not validate_time_string(payload.get(field)):
                raise ValidationError(f'{label} must be a time in HH:MM format', field=label)

        details = payload.get('details') or {}
        if not isinstance(details, dict):
            raise ValidationError('Event details must be an object', field='details')

        timeout = upload_timeout if upload_timeout is not None else self.upload_timeout
        if timeout is not None and not (timeout >= 0 and math.isfinite(timeout)):
            raise ValidationError('Upload timeout must be a non-negative number of seconds',
                                  field='uploadTimeout')
        documents = self.attacher.attach(files, timeout=timeout)

        now = self._now()
        record = {
            'requester_id': requester,
            'campus_id': payload.get('campus_id') or None,
            'resource_id': key.resource_id,
            'resource_kind': key.resource_kind,
            'resource_name': payload.get('resource_name') or None,
            'event_title': title,
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'start_time': payload.get('start_time') or None,
            'end_time': payload.get('end_time') or None,
            'details': details,
            'documents': documents,
            'status': PENDING,
            'validation_status': validation_status_for(PENDING),
            'created_at': now,
            'updated_at': now,
        }

        with self.store.transaction():
            reservation_id = self.store.insert(record)
            self.store.add_status_history(
                reservation_id, None, PENDING, requester, 'Reservation submitted', now
            )

        logger.info('Reservation %s created by %s for %s %s (%s..%s, %d document(s))',
                    reservation_id, requester, key.resource_kind, key.resource_id,
                    record['start_date'], record['end_date'], len(documents))
        return self.get(reservation_id)

    # =========================================================================
    # DECISIONS
    # =========================================================================

    def review(self, reservation_id: int, actor_id, review_notes) -> dict:
        """
        Move a PENDING reservation to UNDER_REVIEW.

        Raises:
            ValidationError: Empty review notes
            NotFoundError: Unknown id
            StateError: Status is not PENDING
        """
        notes = _require_text(review_notes, 'reviewNotes', 'Review notes')
        actor = _require_text(actor_id, 'actorId', 'Reviewer')
        now = self._now()

        return self._transition(reservation_id, 'review', UNDER_REVIEW, actor, {
            'review_notes': notes,
            'reviewed_by': actor,
            'reviewed_at': now,
        }, now, notes)

    def approve(self, reservation_id: int, actor_id, committee_comments,
                force_approve: bool = False) -> dict:
        """
        Approve a PENDING or UNDER_REVIEW reservation.

        The conflict check and the status write run under the resource's lock
        and inside one write transaction, so two approvals of overlapping
        dates on the same resource cannot both commit.

        Raises:
            ValidationError: Empty committee comments
            NotFoundError: Unknown id
            StateError: Status is not PENDING or UNDER_REVIEW
            ConflictError: Overlaps an approved booking and force_approve is not set
        """
        comments = _require_text(committee_comments, 'committeeComments', 'Committee comments')
        actor = _require_text(actor_id, 'actorId', 'Approver')

        key = ResourceKey.of(self.get(reservation_id))

        def ensure_no_conflict(reservation):
            if force_approve:
                return
            result = self.detector.check_reservation(reservation)
            if result['has_conflict']:
                wire = serialize_conflict_check(result)
                logger.info('Approval of reservation %s blocked by %d conflict(s) on %s %s',
                            reservation_id, len(result['conflicts']),
                            key.resource_kind, key.resource_id)
                raise ConflictError(
                    'Event conflict detected',
                    conflicts=wire['conflicts'],
                    suggestion=wire['suggestion']
                )

        with self.locks.hold(key):
            now = self._now()
            reservation = self._transition(reservation_id, 'approve', APPROVED, actor, {
                'committee_comments': comments,
                'approved_by': actor,
                'approved_at': now,
                'force_approved': 1 if force_approve else 0,
            }, now, comments, before_commit=ensure_no_conflict)

        if force_approve:
            logger.warning('Reservation %s force-approved by %s without conflict check',
                           reservation_id, actor)
        return reservation

    def reject(self, reservation_id: int, actor_id, committee_comments, rejection_reason) -> dict:
        """
        Reject a PENDING reservation.

        Raises:
            ValidationError: Empty comments or reason
            NotFoundError: Unknown id
            StateError: Status is not PENDING
        """
        comments = _require_text(committee_comments, 'committeeComments', 'Committee comments')
        reason = _require_text(rejection_reason, 'rejectionReason', 'Rejection reason')
        actor = _require_text(actor_id, 'actorId', 'Reviewer')
        now = self._now()

        return self._transition(reservation_id, 'reject', REJECTED, actor, {
            'committee_comments': comments,
            'rejection_reason': reason,
            'rejected_by': actor,
            'rejected_at': now,
        }, now, reason)

    def cancel(self, reservation_id: int, requester_id) -> dict:
        """
        Cancel one's own PENDING reservation.

        Raises:
            NotFoundError: Unknown id
            PermissionDenied: Caller is not the requester
            StateError: Status is not PENDING
        """
        reservation = self.get(reservation_id)
        if requester_id is None or str(requester_id) != reservation['requester_id']:
            raise PermissionDenied('You can only cancel your own reservations')

        now = self._now()
        return self._transition(reservation_id, 'cancel', CANCELLED, str(requester_id), {
            'cancelled_at': now,
        }, now, 'Cancelled by requester')

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get(self, reservation_id: int) -> dict:
        """
        Get a reservation.

        Raises:
            NotFoundError: Unknown id
        """
        reservation = self.store.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError(f'Reservation {reservation_id} not found')
        return reservation

    def list(self, page: int = 1, limit: int = 10, status: str = None,
             user_id=None, campus_id=None) -> dict:
        """
        Get a page of reservations, newest first.

        Returns:
            dict: {'data': [...], 'total': int, 'totalPages': int, 'page': int, 'limit': int}
        """
        if status and status not in RESERVATION_STATUSES:
            raise ValidationError(f'Unknown status {status}', field='status')
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or 10), 1), self.max_page_size)

        items, total = self.store.find_all(
            page=page, limit=limit, status=status,
            requester_id=str(user_id) if user_id else None,
            campus_id=campus_id or None
        )
        return {
            'data': items,
            'total': total,
            'totalPages': math.ceil(total / limit),
            'page': page,
            'limit': limit,
        }

    def check_conflicts(self, reservation_id: int) -> dict:
        """Conflict check of a stored reservation, in wire form."""
        reservation = self.get(reservation_id)
        return serialize_conflict_check(self.detector.check_reservation(reservation))

    def blocked_ranges(self, resource_id, resource_kind) -> list:
        """Approved date ranges of a resource, for calendars."""
        return self.availability.blocked_ranges(ResourceKey.from_values(resource_id, resource_kind))

    def history(self, reservation_id: int) -> list:
        """Status transitions of a reservation, oldest first."""
        self.get(reservation_id)
        return self.store.get_status_history(reservation_id)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _transition(self, reservation_id: int, operation: str, to_status: str, actor: str,
                    changes: dict, now: str, notes: str = None, before_commit=None) -> dict:
        """Check the precondition and write the new status in one transaction."""
        with self.store.transaction():
            reservation = self.store.find_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError(f'Reservation {reservation_id} not found')
            require_status(reservation, operation)

            if before_commit is not None:
                before_commit(reservation)

            values = dict(changes)
            values.update({
                'status': to_status,
                'validation_status': validation_status_for(to_status),
                'updated_at': now,
            })
            self.store.update(reservation_id, values)
            self.store.add_status_history(
                reservation_id, reservation['status'], to_status, actor, notes, now
            )

        logger.info('Reservation %s: %s -> %s by %s',
                    reservation_id, reservation['status'], to_status, actor)
        return self.get(reservation_id)

    def _parse_range(self, start_value, end_value) -> tuple:
        valid, start, err = validate_date_string(start_value, 'startDate')
        if not valid:
            raise ValidationError(err, field='startDate')
        valid, end, err = validate_date_string(end_value, 'endDate')
        if not valid:
            raise ValidationError(err, field='endDate')

        start, end = date.fromisoformat(start), date.fromisoformat(end)
        if start > end:
            raise ValidationError('End date must not be before start date', field='endDate')
        return start, end

    def _now(self) -> str:
        return self.clock().isoformat(timespec='seconds')
