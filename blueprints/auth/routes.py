"""
Authentication routes: login, logout, current user.
Accepts JSON bodies from API clients and form posts through LoginForm.
"""

import logging

from flask import Blueprint, request
from flask_login import login_user, logout_user, login_required, current_user

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES
from utils.permissions import cache_user_permissions, load_user_permissions
from utils.validators import sanitize_input

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _user_payload(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'full_name': user.full_name,
        'role': user.role,
        'permissions': sorted(load_user_permissions(user)),
    }


def _read_credentials():
    """
    Extract credentials from a JSON body or a LoginForm post.

    Returns:
        Tuple of (username, password, remember, error_message)
    """
    if request.is_json:
        data = request.get_json(silent=True) or {}
        username = sanitize_input(data.get('username'), max_length=80)
        password = data.get('password') or ''
        if not username or not password:
            return None, None, False, 'Username and password are required'
        return username, password, bool(data.get('remember')), None

    form = LoginForm()
    if not form.validate_on_submit():
        errors = [msg for field_errors in form.errors.values() for msg in field_errors]
        return None, None, False, errors[0] if errors else MESSAGES['invalid_credentials']
    return sanitize_input(form.username.data, max_length=80), form.password.data, form.remember_me.data, None


@auth_bp.route('/login', methods=['POST'])
def login():
    """Authenticate and open a session."""
    username, password, remember, error = _read_credentials()
    if error:
        return api_error(error, 400, code='VALIDATION_ERROR')

    user_dict = get_user_by_username(username)
    if user_dict is None or not check_password(user_dict, password):
        logger.info('Failed login for %s', username)
        return api_error(MESSAGES['invalid_credentials'], 401, code='UNAUTHORIZED')

    if not user_dict.get('active'):
        return api_error(MESSAGES['account_disabled'], 403, code='FORBIDDEN')

    user = User(user_dict)
    login_user(user, remember=remember)
    update_last_login(user.id)
    cache_user_permissions(user)
    logger.info('User %s logged in', user.username)

    return api_success(
        data=_user_payload(user),
        message=MESSAGES['login_success'].format(name=user.display_name)
    )


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Close the current session."""
    logger.info('User %s logged out', current_user.username)
    logout_user()
    return api_success(message=MESSAGES['logout_success'])


@auth_bp.route('/me')
@login_required
def me():
    """Return the logged-in user."""
    return api_success(data=_user_payload(current_user))
