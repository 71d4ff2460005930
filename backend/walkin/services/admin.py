"""
Admin dashboard queries and daily statistics
"""
from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from walkin.core.db import Attendance, User
from walkin.services.formatting import round_half_up


@dataclass
class AttendanceStats:
    total: int
    checked_in: int
    checked_out: int
    late: int
    early: int
    absent: int
    attendance_rate: int

    def to_dict(self) -> dict:
        return asdict(self)


def get_all_users(db: Session) -> list[User]:
    return sorted(db.query(User).all(), key=lambda user: user.name)


def get_all_employees(db: Session) -> list[User]:
    employees = db.query(User).filter(User.role == "employee").all()
    return sorted(employees, key=lambda user: user.name)


def get_attendance_by_date(db: Session, date_str: str) -> list[Attendance]:
    return db.query(Attendance).filter(Attendance.date == date_str).all()


def calculate_attendance_stats(
    employees: Iterable[User],
    attendance: Iterable[Attendance],
) -> AttendanceStats:
    employees = list(employees)
    # Only employees are counted; admins may check in too
    uids = {employee.uid for employee in employees}
    attendance = [record for record in attendance if record.uid in uids]

    total = len(employees)
    checked_in = sum(1 for a in attendance if a.check_in_time is not None)
    checked_out = sum(1 for a in attendance if a.check_out_time is not None)
    late = sum(1 for a in attendance if a.check_in_status == "late")
    early = sum(1 for a in attendance if a.check_out_status == "early")
    rate = int(round_half_up(checked_in / total * 100)) if total > 0 else 0

    return AttendanceStats(
        total=total,
        checked_in=checked_in,
        checked_out=checked_out,
        late=late,
        early=early,
        absent=total - checked_in,
        attendance_rate=rate,
    )


def combine_employees_with_attendance(
    employees: Iterable[User],
    attendance: Iterable[Attendance],
) -> list[tuple[User, Optional[Attendance]]]:
    by_uid = {}
    for record in attendance:
        by_uid.setdefault(record.uid, record)
    return [(employee, by_uid.get(employee.uid)) for employee in employees]
