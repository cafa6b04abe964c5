"""
Typed errors raised by the reservation lifecycle.
Each carries the HTTP status and machine code the API layer renders.
"""


class ReservationError(Exception):
    """Base class for all reservation lifecycle errors."""

    status_code = 400
    code = 'RESERVATION_ERROR'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Extra fields merged into the error response."""
        return {'code': self.code}


class ValidationError(ReservationError):
    """Missing or malformed required field."""

    code = 'VALIDATION_ERROR'

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.field:
            data['field'] = self.field
        return data


class NotFoundError(ReservationError):
    """Unknown reservation id."""

    status_code = 404
    code = 'NOT_FOUND'


class PermissionDenied(ReservationError):
    """Caller is not allowed to act on this reservation."""

    status_code = 403
    code = 'FORBIDDEN'


class StateError(ReservationError):
    """Operation not permitted from the reservation's current status."""

    code = 'INVALID_STATE'

    def __init__(self, message: str, current_status: str):
        super().__init__(message)
        self.current_status = current_status

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['current_status'] = self.current_status
        return data


class ConflictError(ReservationError):
    """Approval would double-book the resource."""

    status_code = 409
    code = 'EVENT_CONFLICT'

    def __init__(self, message: str, conflicts: list, suggestion: dict = None):
        super().__init__(message)
        self.conflicts = conflicts
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['conflicts'] = self.conflicts
        data['suggestion'] = self.suggestion
        return data


class UploadError(ReservationError):
    """A document could not be stored; the creation is aborted."""

    code = 'UPLOAD_FAILED'

    def __init__(self, message: str, filename: str = None):
        super().__init__(message)
        self.filename = filename

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.filename:
            data['filename'] = self.filename
        return data
