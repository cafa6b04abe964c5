"""
Reservation domain entry point.

Re-exports the split modules and builds a request-scoped lifecycle:
- reservation_state.py: Statuses, transition matrix, resource keys
- reservation_store.py: Persistence (insert, update, lookups, history)
- reservation_conflicts.py: Overlap detection and alternative suggestion
- reservation_documents.py: Concurrent document upload at creation
- reservation_availability.py: Blocked ranges for calendars
- reservation_lifecycle.py: The decision pipeline
"""

from flask import current_app

from database import get_db
from utils.datetime_helpers import get_now
from utils.storage import get_storage

# =============================================================================
# RE-EXPORTS
# =============================================================================

from .reservation_errors import (
    ReservationError,
    ValidationError,
    NotFoundError,
    PermissionDenied,
    StateError,
    ConflictError,
    UploadError,
)

from .reservation_state import (
    PENDING,
    UNDER_REVIEW,
    APPROVED,
    REJECTED,
    CANCELLED,
    RESERVATION_STATUSES,
    TERMINAL_STATUSES,
    ALLOWED_FROM_STATUSES,
    RESOURCE_KINDS,
    ResourceKey,
    normalize_resource_kind,
)

from .reservation_store import ReservationStore
from .reservation_conflicts import ConflictDetector, ranges_overlap, suggest_alternative, serialize_conflict_check
from .reservation_documents import DocumentAttacher, UploadedFile
from .reservation_availability import AvailabilityQuery
from .reservation_lifecycle import ReservationLifecycle
from .resource_locks import ResourceLockRegistry


# =============================================================================
# FACTORY
# =============================================================================

def get_reservation_lifecycle() -> ReservationLifecycle:
    """
    Build a lifecycle bound to the current app context.

    Uses the request's database connection, the configured document storage
    and the app-wide resource lock registry.
    """
    config = current_app.config
    store = ReservationStore(get_db())
    attacher = DocumentAttacher(
        get_storage(),
        max_workers=config.get('UPLOAD_MAX_WORKERS', 4)
    )
    return ReservationLifecycle(
        store,
        attacher,
        current_app.extensions['resource_locks'],
        clock=get_now,
        upload_timeout=config.get('UPLOAD_TIMEOUT_SECONDS'),
        max_page_size=config.get('MAX_ITEMS_PER_PAGE', 100)
    )


__all__ = [
    # Errors
    'ReservationError',
    'ValidationError',
    'NotFoundError',
    'PermissionDenied',
    'StateError',
    'ConflictError',
    'UploadError',

    # Statuses and keys
    'PENDING',
    'UNDER_REVIEW',
    'APPROVED',
    'REJECTED',
    'CANCELLED',
    'RESERVATION_STATUSES',
    'TERMINAL_STATUSES',
    'ALLOWED_FROM_STATUSES',
    'RESOURCE_KINDS',
    'ResourceKey',
    'normalize_resource_kind',

    # Components
    'ReservationStore',
    'ConflictDetector',
    'ranges_overlap',
    'suggest_alternative',
    'serialize_conflict_check',
    'DocumentAttacher',
    'UploadedFile',
    'AvailabilityQuery',
    'ReservationLifecycle',
    'ResourceLockRegistry',

    # Factory
    'get_reservation_lifecycle',
]
