"""
Check-in/check-out recording and attendance history.

Records are keyed {uid}_{YYYY-MM-DD}, where the date is the business day in
the configured timezone. Status rules use the same local clock:
- check-in at or after LATE_THRESHOLD (09:05) is "late"
- check-out before WORK_END_HOUR (18:00) is "early"
"""
import calendar
import datetime
from typing import Optional

from sqlalchemy.orm import Session

from walkin.core.config import Settings, settings as default_settings
from walkin.core.db import Attendance, User, as_utc, utcnow
from walkin.core.logger import get_logger
from walkin.services.errors import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    NoCheckInError,
    ValidationError,
)
from walkin.services.formatting import format_date, round_half_up

logger = get_logger("attendance")


def attendance_id(uid: str, date_str: str) -> str:
    return f"{uid}_{date_str}"


def to_local(moment: datetime.datetime, config: Optional[Settings] = None) -> datetime.datetime:
    config = config or default_settings
    return as_utc(moment).astimezone(config.tz)


def local_date_string(
    config: Optional[Settings] = None,
    now: Optional[datetime.datetime] = None,
) -> str:
    """Business date (YYYY-MM-DD) of ``now`` in the configured timezone"""
    return format_date(to_local(now or utcnow(), config))


def determine_check_in_status(check_in_time: datetime.datetime, config: Optional[Settings] = None) -> str:
    config = config or default_settings
    local = to_local(check_in_time, config)
    threshold = config.LATE_THRESHOLD
    if (local.hour, local.minute) >= (threshold.hour, threshold.minute):
        return "late"
    return "normal"


def determine_check_out_status(check_out_time: datetime.datetime, config: Optional[Settings] = None) -> str:
    config = config or default_settings
    if to_local(check_out_time, config).hour < config.WORK_END_HOUR:
        return "early"
    return "normal"


def calculate_work_hours(check_in: datetime.datetime, check_out: datetime.datetime) -> float:
    """Hours between the two times, rounded to 2 decimal places"""
    diff = as_utc(check_out) - as_utc(check_in)
    return round_half_up(diff.total_seconds() / 3600, 2)


def get_attendance(db: Session, uid: str, date_str: str) -> Optional[Attendance]:
    return db.get(Attendance, attendance_id(uid, date_str))


def get_today_attendance(
    db: Session,
    uid: str,
    config: Optional[Settings] = None,
    now: Optional[datetime.datetime] = None,
) -> Optional[Attendance]:
    return get_attendance(db, uid, local_date_string(config, now))


def record_check_in(
    db: Session,
    user: User,
    location: dict,
    config: Optional[Settings] = None,
    status: Optional[str] = None,
    at: Optional[datetime.datetime] = None,
) -> Attendance:
    """
    Record a check-in for the business day containing ``at``.

    Args:
        status: Overrides the time-based status (e.g. "approved")
        at: Event time; defaults to now

    Raises:
        AlreadyCheckedInError: If the day already has a check-in
    """
    config = config or default_settings
    at = as_utc(at) if at else utcnow()
    date_str = local_date_string(config, at)

    record = get_attendance(db, user.uid, date_str)
    if record is not None and record.check_in_time is not None:
        raise AlreadyCheckedInError("이미 출근 기록이 있습니다")

    if record is None:
        record = Attendance(
            id=attendance_id(user.uid, date_str),
            uid=user.uid,
            name=user.name,
            date=date_str,
            created_at=at,
        )
        db.add(record)

    record.check_in_time = at
    record.check_in_location = dict(location)
    record.check_in_status = status or determine_check_in_status(at, config)
    record.check_out_time = None
    record.check_out_location = None
    record.check_out_status = None
    record.work_hours = None
    record.updated_at = at
    db.commit()

    logger.info(f"Check-in recorded: {record.id} ({record.check_in_status})")
    return record


def record_check_out(
    db: Session,
    uid: str,
    location: dict,
    config: Optional[Settings] = None,
    status: Optional[str] = None,
    at: Optional[datetime.datetime] = None,
) -> Attendance:
    """
    Record a check-out and the day's work hours.

    Raises:
        NoCheckInError: If the day has no check-in
        AlreadyCheckedOutError: If the day already has a check-out
        ValidationError: If ``at`` is earlier than the check-in
    """
    config = config or default_settings
    at = as_utc(at) if at else utcnow()
    date_str = local_date_string(config, at)

    record = get_attendance(db, uid, date_str)
    if record is None or record.check_in_time is None:
        raise NoCheckInError("출근 기록이 없습니다")
    if record.check_out_time is not None:
        raise AlreadyCheckedOutError("이미 퇴근 기록이 있습니다")
    if at < as_utc(record.check_in_time):
        raise ValidationError("퇴근 시간은 출근 시간 이후여야 합니다")

    record.check_out_time = at
    record.check_out_location = dict(location)
    record.check_out_status = status or determine_check_out_status(at, config)
    record.work_hours = calculate_work_hours(record.check_in_time, at)
    record.updated_at = at
    db.commit()

    logger.info(f"Check-out recorded: {record.id} ({record.check_out_status}, {record.work_hours}h)")
    return record


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def get_attendance_history(
    db: Session,
    uid: str,
    config: Optional[Settings] = None,
    months_back: Optional[int] = None,
    now: Optional[datetime.datetime] = None,
) -> list[Attendance]:
    """Records since the first day of the month ``months_back`` months ago, newest first"""
    config = config or default_settings
    months_back = config.HISTORY_MONTHS if months_back is None else months_back
    today = to_local(now or utcnow(), config)

    year, month = _shift_month(today.year, today.month, -months_back)
    start = format_date(datetime.date(year, month, 1))

    return (
        db.query(Attendance)
        .filter(Attendance.uid == uid, Attendance.date >= start)
        .order_by(Attendance.date.desc())
        .limit(config.HISTORY_LIMIT)
        .all()
    )


def get_monthly_attendance(db: Session, uid: str, year: int, month: int) -> list[Attendance]:
    """All records for one calendar month, oldest first"""
    last_day = calendar.monthrange(year, month)[1]
    start = format_date(datetime.date(year, month, 1))
    end = format_date(datetime.date(year, month, last_day))

    return (
        db.query(Attendance)
        .filter(Attendance.uid == uid, Attendance.date >= start, Attendance.date <= end)
        .order_by(Attendance.date.asc())
        .all()
    )


def get_available_months(
    config: Optional[Settings] = None,
    now: Optional[datetime.datetime] = None,
) -> list[dict]:
    """The current month plus the previous HISTORY_MONTHS months"""
    config = config or default_settings
    today = to_local(now or utcnow(), config)

    months = []
    for i in range(config.HISTORY_MONTHS + 1):
        year, month = _shift_month(today.year, today.month, -i)
        months.append({"year": year, "month": month, "label": f"{year}년 {month}월"})
    return months
