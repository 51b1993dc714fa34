from datetime import date, datetime
import pytz

from config import HOTEL_TIMEZONE

# Centralized Timezone Configuration
HOTEL_TIMEZONE_STR = HOTEL_TIMEZONE
HOTEL_TZ = pytz.timezone(HOTEL_TIMEZONE_STR)


def get_hotel_now() -> datetime:
    """Returns current time in Hotel Timezone"""
    return datetime.now(HOTEL_TZ)


def utc_now() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores"""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime) -> datetime:
    """Normalizes an aware datetime to naive UTC; naive values are returned as is"""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def get_operational_date() -> date:
    """Returns today's date in Hotel Timezone"""
    return get_hotel_now().date()
