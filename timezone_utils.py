import os
from datetime import datetime
import pytz

DEFAULT_TIMEZONE = 'America/Los_Angeles'


def get_app_timezone():
    """Timezone the dispatch office works in (APP_TIMEZONE, defaults to US Pacific)"""
    return pytz.timezone(os.environ.get('APP_TIMEZONE', DEFAULT_TIMEZONE))


def get_local_time_naive():
    """Get current local time as naive datetime for database storage"""
    return datetime.now(get_app_timezone()).replace(tzinfo=None)


def to_local_naive(dt):
    """Convert an aware datetime to naive local time; naive values are assumed local already"""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(get_app_timezone()).replace(tzinfo=None)
