"""
Reservation API routes: submission, listing, decisions, conflicts, availability.
"""

import logging

from flask import current_app, request
from flask_login import login_required, current_user

from models.reservation import ReservationError, UploadedFile, ValidationError, get_reservation_lifecycle
from utils.api_response import api_success, api_error
from utils.decorators import permission_required
from utils.helpers import parse_bool, parse_json_field
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


# Request field -> accepted spellings, first match wins
CORE_FIELDS = {
    'event_title': ('eventTitle', 'event_title'),
    'resource_id': ('resourceId', 'resource_id', 'selectedLocationId', 'locationId'),
    'resource_kind': ('resourceKind', 'resource_kind', 'selectedLocationType', 'locationType'),
    'resource_name': ('resourceName', 'resource_name', 'selectedLocationName', 'locationName'),
    'campus_id': ('campusId', 'campus_id', 'selectedCampusId'),
    'start_date': ('startDate', 'start_date'),
    'end_date': ('endDate', 'end_date'),
    'start_time': ('startTime', 'start_time'),
    'end_time': ('endTime', 'end_time'),
}

# Never stored in the descriptive payload
IGNORED_FIELDS = {'details', 'csrf_token', 'userId', 'requesterId', 'status'}


def _request_data() -> dict:
    """Body as a dict, from JSON or form data."""
    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValidationError(MESSAGES['invalid_body'])
        return data
    return request.form.to_dict()


def _field(data: dict, *names):
    for name in names:
        if data.get(name) not in (None, ''):
            return data[name]
    return None


def _build_payload(data: dict) -> dict:
    """
    Split submitted fields into core columns and the descriptive payload.

    Unknown fields land in details; JSON-encoded lists and objects from
    multipart forms are decoded, everything else is kept as sent.
    """
    payload = {column: _field(data, *names) for column, names in CORE_FIELDS.items()}
    consumed = {name for names in CORE_FIELDS.values() for name in names} | IGNORED_FIELDS

    details = parse_json_field(data.get('details')) or {}
    if not isinstance(details, dict):
        raise ValidationError('Event details must be an object', field='details')
    details = dict(details)
    for name, value in data.items():
        if name not in consumed:
            details[name] = parse_json_field(value)

    payload['details'] = details
    return payload


def _uploaded_files() -> list:
    """Files of the 'documents' field in submission order."""
    return [
        UploadedFile(f.read(), f.filename, f.mimetype)
        for f in request.files.getlist('documents')
        if f and f.filename
    ]


def register_routes(bp):
    """Register reservation API routes on the blueprint."""

    @bp.errorhandler(ReservationError)
    def handle_reservation_error(error):
        """Render lifecycle errors as JSON with their HTTP status."""
        if error.status_code >= 500:
            logger.error('Reservation error: %s', error.message)
        return api_error(error.message, error.status_code, **error.to_dict())

    # ============================================================================
    # SUBMISSION & LISTING
    # ============================================================================

    @bp.route('/reservations', methods=['POST'])
    @login_required
    def create_reservation():
        """
        Submit a reservation request.

        Accepts multipart/form-data with descriptive fields and any number of
        'documents' files, or a JSON body without files.
        """
        data = _request_data()
        payload = _build_payload(data)
        files = _uploaded_files()

        timeout = request.args.get('uploadTimeout', type=float)
        reservation = get_reservation_lifecycle().create(
            current_user.get_id(), payload, files=files, upload_timeout=timeout
        )
        return api_success(data=reservation, message=MESSAGES['reservation_created'], status=201)

    @bp.route('/reservations')
    @login_required
    def list_reservations():
        """
        Get a page of reservations.

        Query params:
            page, limit, status, userId, campusId
        """
        lifecycle = get_reservation_lifecycle()
        result = lifecycle.list(
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', current_app.config['ITEMS_PER_PAGE'], type=int),
            status=request.args.get('status') or None,
            user_id=request.args.get('userId') or request.args.get('user_id'),
            campus_id=request.args.get('campusId') or request.args.get('campus_id')
        )
        return api_success(
            data=result['data'],
            total=result['total'],
            totalPages=result['totalPages'],
            page=result['page'],
            limit=result['limit']
        )

    # ============================================================================
    # AVAILABILITY
    # ============================================================================

    @bp.route('/reservations/blocked-dates')
    @login_required
    def blocked_dates():
        """
        Get approved date ranges of a resource for calendar display.

        Query params:
            resourceId (or locationId), resourceKind (or locationType)
        """
        args = request.args
        ranges = get_reservation_lifecycle().blocked_ranges(
            _field(args, 'resourceId', 'resource_id', 'locationId'),
            _field(args, 'resourceKind', 'resource_kind', 'locationType')
        )
        return api_success(data=ranges)

    # ============================================================================
    # SINGLE RESERVATION
    # ============================================================================

    @bp.route('/reservations/<int:reservation_id>')
    @login_required
    def reservation_detail(reservation_id):
        """Get a reservation."""
        return api_success(data=get_reservation_lifecycle().get(reservation_id))

    @bp.route('/reservations/<int:reservation_id>/check-conflicts')
    @login_required
    def check_conflicts(reservation_id):
        """Check a reservation against approved bookings of its resource."""
        return api_success(data=get_reservation_lifecycle().check_conflicts(reservation_id))

    @bp.route('/reservations/<int:reservation_id>/history')
    @login_required
    def reservation_history(reservation_id):
        """Get reservation status change history."""
        return api_success(data=get_reservation_lifecycle().history(reservation_id))

    # ============================================================================
    # DECISIONS
    # ============================================================================

    @bp.route('/reservations/<int:reservation_id>/review', methods=['POST', 'PATCH'])
    @login_required
    @permission_required('reservations.decide')
    def review_reservation(reservation_id):
        """Move a pending reservation under review."""
        data = _request_data()
        reservation = get_reservation_lifecycle().review(
            reservation_id, current_user.get_id(),
            _field(data, 'reviewNotes', 'review_notes')
        )
        return api_success(data=reservation, message=MESSAGES['reservation_reviewed'])

    @bp.route('/reservations/<int:reservation_id>/approve', methods=['POST', 'PATCH'])
    @login_required
    @permission_required('reservations.decide')
    def approve_reservation(reservation_id):
        """
        Approve a reservation.

        Responds 409 with code EVENT_CONFLICT, the conflicting bookings and a
        suggested range when the dates overlap an approved booking, unless
        forceApprove is set.
        """
        data = _request_data()
        force = parse_bool(_field(data, 'forceApprove', 'force_approve'))
        reservation = get_reservation_lifecycle().approve(
            reservation_id, current_user.get_id(),
            _field(data, 'committeeComments', 'committee_comments'),
            force_approve=force
        )
        return api_success(
            data=reservation,
            message=MESSAGES['reservation_approved'],
            warning=MESSAGES['force_approve_warning'] if force else None
        )

    @bp.route('/reservations/<int:reservation_id>/reject', methods=['POST', 'PATCH'])
    @login_required
    @permission_required('reservations.decide')
    def reject_reservation(reservation_id):
        """Reject a pending reservation."""
        data = _request_data()
        reservation = get_reservation_lifecycle().reject(
            reservation_id, current_user.get_id(),
            _field(data, 'committeeComments', 'committee_comments'),
            _field(data, 'rejectionReason', 'rejection_reason')
        )
        return api_success(data=reservation, message=MESSAGES['reservation_rejected'])

    @bp.route('/reservations/<int:reservation_id>/cancel', methods=['POST', 'PATCH'])
    @login_required
    def cancel_reservation(reservation_id):
        """Cancel one's own pending reservation."""
        reservation = get_reservation_lifecycle().cancel(reservation_id, current_user.get_id())
        return api_success(data=reservation, message=MESSAGES['reservation_cancelled'])
