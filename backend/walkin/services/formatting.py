"""Date, time and number formatting shared by services and responses"""
import datetime
import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a calculator (2.5 -> 3), not like round() (2.5 -> 2)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def format_meters(value: float) -> str:
    return f"{value:g}"


def format_date(value: datetime.date) -> str:
    """YYYY-MM-DD"""
    return value.strftime("%Y-%m-%d")


def format_work_hours(hours: float) -> str:
    h = math.floor(hours)
    m = int(round_half_up((hours - h) * 60))
    return f"{h}시간 {m}분"
