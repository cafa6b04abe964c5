"""
Input validation helper functions.
Provides validation for common input types.
"""

import re
from datetime import datetime


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_password(password: str, min_length: int = 8) -> tuple:
    """
    Validate password strength.

    Args:
        password: Password to validate
        min_length: Minimum password length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, 'Password is required'

    if len(password) < min_length:
        return False, f'Password must be at least {min_length} characters'

    return True, ''


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except (ValueError, TypeError):
        return False


def validate_date_string(value, field_name: str) -> tuple:
    """
    Validate a required date value.

    Accepts 'YYYY-MM-DD' or a full ISO datetime, whose date part is kept.

    Args:
        value: Raw value from the request
        field_name: Field name used in the error message

    Returns:
        Tuple of (is_valid, 'YYYY-MM-DD' or None, error_message)
    """
    if value is None or not str(value).strip():
        return False, None, f'{field_name} is required'

    text = str(value).strip()
    date_part = text[:10]
    if not validate_date_format(date_part) or (len(text) > 10 and text[10] not in 'T '):
        return False, None, f'{field_name} must be a date in YYYY-MM-DD format'

    return True, date_part, ''


def validate_time_string(value) -> bool:
    """
    Validate an optional HH:MM time string.

    Returns:
        True if empty or a valid 24h time
    """
    if not value:
        return True
    return bool(re.match(r'^([01][0-9]|2[0-3]):[0-5][0-9]$', str(value).strip()))


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = str(text).strip()

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
