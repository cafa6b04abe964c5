"""
Reservation status model.
Statuses, the transition matrix, and resource key helpers.
"""

from typing import NamedTuple

from .reservation_errors import StateError, ValidationError


# =============================================================================
# CONSTANTS
# =============================================================================

PENDING = 'PENDING'
UNDER_REVIEW = 'UNDER_REVIEW'
APPROVED = 'APPROVED'
REJECTED = 'REJECTED'
CANCELLED = 'CANCELLED'

RESERVATION_STATUSES = (PENDING, UNDER_REVIEW, APPROVED, REJECTED, CANCELLED)

TERMINAL_STATUSES = frozenset({APPROVED, REJECTED, CANCELLED})

# Statuses each lifecycle operation may start from
ALLOWED_FROM_STATUSES = {
    'review': frozenset({PENDING}),
    'approve': frozenset({PENDING, UNDER_REVIEW}),
    'reject': frozenset({PENDING}),
    'cancel': frozenset({PENDING}),
}

RESOURCE_KINDS = ('building', 'location', 'open_space')

# Spellings accepted from clients, mapped to the stored kind
RESOURCE_KIND_ALIASES = {
    'building': 'building',
    'location': 'location',
    'open_space': 'open_space',
    'openspace': 'open_space',
    'open-space': 'open_space',
}


# =============================================================================
# RESOURCE KEY
# =============================================================================

class ResourceKey(NamedTuple):
    """Identifies a bookable physical asset."""

    resource_id: str
    resource_kind: str

    @classmethod
    def from_values(cls, resource_id, resource_kind) -> 'ResourceKey':
        """
        Build a key from raw client values.

        Args:
            resource_id: Opaque resource identifier (any scalar)
            resource_kind: building, location or open space (any accepted spelling)

        Returns:
            ResourceKey with a normalised kind

        Raises:
            ValidationError: If either part is missing or the kind is unknown
        """
        if resource_id is None or not str(resource_id).strip():
            raise ValidationError('Resource id is required', field='resourceId')
        return cls(str(resource_id).strip(), normalize_resource_kind(resource_kind))

    @classmethod
    def of(cls, reservation: dict) -> 'ResourceKey':
        """Key of a stored reservation."""
        return cls(reservation['resource_id'], reservation['resource_kind'])


def normalize_resource_kind(resource_kind) -> str:
    """
    Map a client-supplied resource kind to its stored form.

    Raises:
        ValidationError: If the kind is missing or unknown
    """
    if not resource_kind or not str(resource_kind).strip():
        raise ValidationError('Resource kind is required', field='resourceKind')
    kind = RESOURCE_KIND_ALIASES.get(str(resource_kind).strip().lower())
    if kind is None:
        raise ValidationError(
            f"Unknown resource kind '{resource_kind}' (expected one of {', '.join(RESOURCE_KINDS)})",
            field='resourceKind'
        )
    return kind


# =============================================================================
# TRANSITIONS
# =============================================================================

def validation_status_for(status: str) -> str:
    """External reporting mirror of a status (e.g. UNDER_REVIEW -> under_review)."""
    return status.lower()


def require_status(reservation: dict, operation: str) -> None:
    """
    Check that the reservation's status permits the operation.

    Args:
        reservation: Reservation dict
        operation: One of the keys of ALLOWED_FROM_STATUSES

    Raises:
        StateError: If the current status is outside the allowed set
    """
    current = reservation['status']
    allowed = ALLOWED_FROM_STATUSES[operation]
    if current not in allowed:
        expected = ' or '.join(s for s in RESERVATION_STATUSES if s in allowed)
        raise StateError(
            f'Cannot {operation} a reservation with status {current} (must be {expected})',
            current_status=current
        )
