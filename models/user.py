"""
User model and data access functions.
Handles user lookup, creation, and Flask-Login integration.
"""

from werkzeug.security import generate_password_hash, check_password_hash
from database import get_db
from utils.datetime_helpers import get_now
from utils.validators import validate_email


USER_ROLES = ('requester', 'reviewer', 'admin')


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.full_name = user_dict['full_name']
        self.role = user_dict['role']
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)

    @property
    def display_name(self):
        """Name recorded as decision actor."""
        return self.full_name or self.username


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE id = ?', (user_id,)).fetchone()
    return dict(row) if row else None


def get_user_by_username(username: str) -> dict:
    """
    Get user by username.

    Args:
        username: Username to search for

    Returns:
        User dict or None if not found
    """
    db = get_db()
    row = db.execute('SELECT * FROM users WHERE username = ?', (username,)).fetchone()
    return dict(row) if row else None


def create_user(username: str, email: str, password: str, role: str = 'requester',
                full_name: str = None) -> int:
    """
    Create new user.

    Args:
        username: Unique username
        email: Unique email
        password: Plain text password (will be hashed)
        role: requester, reviewer or admin
        full_name: Display name

    Returns:
        New user ID

    Raises:
        ValueError: Unknown role or malformed email
        sqlite3.IntegrityError: Username or email already exists
    """
    if role not in USER_ROLES:
        raise ValueError(f"Unknown role '{role}' (expected one of {', '.join(USER_ROLES)})")
    if not validate_email(email):
        raise ValueError(f"Invalid email address '{email}'")

    db = get_db()
    with db:
        cursor = db.execute('''
            INSERT INTO users (username, email, password_hash, full_name, role)
            VALUES (?, ?, ?, ?, ?)
        ''', (username, email, generate_password_hash(password), full_name, role))
    return cursor.lastrowid


def update_last_login(user_id: int) -> None:
    """Update user's last login timestamp."""
    db = get_db()
    with db:
        db.execute('UPDATE users SET last_login = ? WHERE id = ?',
                   (get_now().isoformat(timespec='seconds'), user_id))


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify user password.

    Args:
        user_dict: User dictionary with password_hash
        password: Plain text password to verify

    Returns:
        True if password matches
    """
    return check_password_hash(user_dict['password_hash'], password)
