"""
Role-based permission checks.
Maps each user role to the permission codes it grants.
"""

from flask import g


ROLE_PERMISSIONS = {
    'requester': {
        'reservations.view',
        'reservations.create',
        'reservations.cancel',
    },
    'reviewer': {
        'reservations.view',
        'reservations.create',
        'reservations.cancel',
        'reservations.decide',
    },
    'admin': {
        'reservations.view',
        'reservations.create',
        'reservations.cancel',
        'reservations.decide',
        'users.manage',
    },
}


def load_user_permissions(user) -> set:
    """
    Get all permissions granted by a user's role.

    Args:
        user: User object (Flask-Login)

    Returns:
        Set of permission codes
    """
    return set(ROLE_PERMISSIONS.get(getattr(user, 'role', None), ()))


def cache_user_permissions(user):
    """Cache user permissions in flask g object."""
    g.user_permissions = load_user_permissions(user)
