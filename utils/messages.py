"""
User-facing messages for API responses.
"""

MESSAGES = {
    # Authentication
    'login_success': 'Welcome, {name}',
    'logout_success': 'Session closed',
    'invalid_credentials': 'Invalid username or password',
    'account_disabled': 'Your account has been disabled. Contact an administrator.',
    'login_required': 'Authentication required',
    'permission_denied': 'You do not have permission to perform this action',

    # Reservations
    'reservation_created': 'Reservation submitted',
    'reservation_reviewed': 'Reservation moved to review',
    'reservation_approved': 'Reservation approved',
    'force_approve_warning': 'Approved without conflict check; dates may overlap other approved bookings',
    'reservation_rejected': 'Reservation rejected',
    'reservation_cancelled': 'Reservation cancelled',
    'invalid_body': 'Request body must be a JSON object or form data',

    # Generic
    'not_found': 'Resource not found',
    'server_error': 'Internal server error',
}
