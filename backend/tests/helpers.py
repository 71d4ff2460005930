"""Shared constants and helpers for tests."""

import datetime
from zoneinfo import ZoneInfo

KST = ZoneInfo("Asia/Seoul")
ADMIN_EMAIL = "admin@walkin.test"
PASSWORD = "walkin2024"

# Inside the default 본사 geofence / about 4.4km north of it
OFFICE_FIX = {"lat": 37.5665, "lng": 126.9780, "accuracy": 10.0}
FAR_FIX = {"lat": 37.6065, "lng": 126.9780, "accuracy": 10.0}


def kst(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime.datetime:
    """A business-timezone timestamp"""
    return datetime.datetime(year, month, day, hour, minute, tzinfo=KST)
