"""
Miscellaneous utility helper functions.
Provides common functionality used across the application.
"""

import json
import os
import uuid

from werkzeug.utils import secure_filename


def stored_filename(filename: str) -> str:
    """
    Build a collision-free, filesystem-safe name for an uploaded file.

    Args:
        filename: Original filename as submitted

    Returns:
        '<32 hex chars>_<secured name>' (extension lower-cased)
    """
    name, ext = os.path.splitext(secure_filename(filename or '') or 'unnamed')
    return f'{uuid.uuid4().hex}_{name[:100]}{ext.lower()}'


def get_file_extension(filename: str) -> str:
    """
    Get file extension from filename.

    Args:
        filename: Filename

    Returns:
        Extension without dot (lowercase)
    """
    if not filename:
        return ''

    return os.path.splitext(filename)[1][1:].lower()


def allowed_file(filename: str, allowed_extensions: set) -> bool:
    """
    Check if file extension is allowed.

    Args:
        filename: Filename to check
        allowed_extensions: Set of allowed extensions

    Returns:
        True if extension is allowed
    """
    return get_file_extension(filename) in allowed_extensions


def parse_json_field(value):
    """
    Decode a multipart form value that may carry JSON (lists, objects).

    Returns:
        Decoded list/dict, or the original value when it is not JSON
        of that shape
    """
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if not stripped or stripped[0] not in '[{':
        return value
    try:
        return json.loads(stripped)
    except ValueError:
        return value


def parse_bool(value) -> bool:
    """Interpret JSON booleans and form strings ('true', '1', 'on')."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')
