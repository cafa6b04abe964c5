"""Timezone-aware date/time helpers for the campus booking application."""

from datetime import datetime
from zoneinfo import ZoneInfo

from flask import current_app


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'Africa/Casablanca')
    return ZoneInfo(tz_name)


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())
