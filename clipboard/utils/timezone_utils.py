"""
Timezone utility functions for Jim's Clipboard
"""

from datetime import datetime, timezone

import pytz
from flask import current_app

MONDAY = 0


def get_app_timezone():
    """Get the application's configured timezone"""
    try:
        timezone_name = current_app.config.get("TIMEZONE", "UTC")
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_current_time():
    """Get current time in the application's timezone"""
    app_tz = get_app_timezone()
    return datetime.now(app_tz)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    app_tz = get_app_timezone()

    # If datetime is naive, assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(app_tz)


def is_reminder_day(now=None):
    """Weekly reminders go out on Mondays, local time"""
    now = convert_to_app_timezone(now) if now else get_current_time()
    return now.weekday() == MONDAY
