# apps/bookingapp/utils/timezone_utils.py
from datetime import datetime, time, timedelta

import pytz
from django.utils.translation import gettext_lazy as _

from core.exceptions.custom_exceptions import InvalidDataException


def get_timezone(name):
    """
    Resolve an IANA timezone name

    Args:
        name: Timezone name, e.g. "Asia/Riyadh"

    Returns:
        pytz timezone
    """
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        raise InvalidDataException(_("Unknown timezone: %(name)s") % {"name": name})


def to_utc(date, wall_time, tz):
    """
    Convert a local wall-clock date and time to an aware UTC datetime

    Args:
        date: Local calendar date
        wall_time: Local time of day
        tz: pytz timezone the wall-clock values are expressed in

    Returns:
        Aware datetime in UTC
    """
    return tz.localize(datetime.combine(date, wall_time)).astimezone(pytz.utc)


def local_day_bounds(date, tz):
    """
    Get the absolute [start, end) interval covering a local calendar day

    Args:
        date: Local calendar date
        tz: pytz timezone

    Returns:
        Tuple of aware UTC datetimes (start of day, start of next day)
    """
    return to_utc(date, time.min, tz), to_utc(date + timedelta(days=1), time.min, tz)


def local_date_span(start_date, end_date, tz):
    """
    Get the absolute instants from the start of start_date through the last
    instant of end_date (both inclusive)
    """
    return to_utc(start_date, time.min, tz), to_utc(end_date, time.max, tz)


def local_date(instant, tz):
    """Calendar date of an aware datetime in the given timezone"""
    return instant.astimezone(tz).date()

