"""
Route decorators for authentication and authorization.
Provides permission-based access control for API routes.
"""

import logging
from functools import wraps
from flask import g
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def permission_required(permission_code: str):
    """
    Decorator to require specific permission for a route.

    Usage:
        @bp.route('/reservations/<int:reservation_id>/approve', methods=['PATCH'])
        @login_required
        @permission_required('reservations.decide')
        def approve(reservation_id):
            ...

    Args:
        permission_code: Permission code required (e.g., 'reservations.decide')

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not hasattr(g, 'user_permissions'):
                from utils.permissions import load_user_permissions
                g.user_permissions = load_user_permissions(current_user)

            if permission_code not in g.user_permissions:
                logger.warning('User %s denied %s', current_user.get_id(), permission_code)
                return api_error(MESSAGES['permission_denied'], 403, code='FORBIDDEN')

            return func(*args, **kwargs)
        return wrapper
    return decorator


# Re-export login_required for convenience
__all__ = ['login_required', 'permission_required']
