from datetime import datetime
import pytz

DEFAULT_TIMEZONE = 'Asia/Kolkata'

def get_local_now(tz_name=DEFAULT_TIMEZONE):
    """Get current time in the fleet's local timezone"""
    return datetime.now(pytz.timezone(tz_name))

def get_local_time_naive(tz_name=DEFAULT_TIMEZONE):
    """Get current local time as naive datetime for database storage"""
    return get_local_now(tz_name).replace(tzinfo=None)

def make_clock(tz_name=DEFAULT_TIMEZONE):
    """Build a zero-argument clock bound to a timezone, for injection into services"""
    tz = pytz.timezone(tz_name)

    def clock():
        return datetime.now(tz)

    return clock
