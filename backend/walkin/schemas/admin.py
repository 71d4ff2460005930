"""
Pydantic models for the admin dashboard
"""
from typing import List, Optional

from pydantic import BaseModel

from walkin.schemas.attendance import AttendanceResponse
from walkin.schemas.auth import UserResponse


class AttendanceStats(BaseModel):
    total: int
    checked_in: int
    checked_out: int
    late: int
    early: int
    absent: int
    attendance_rate: int


class EmployeeAttendance(BaseModel):
    user: UserResponse
    attendance: Optional[AttendanceResponse] = None


class DashboardResponse(BaseModel):
    date: str
    stats: AttendanceStats
    employees: List[EmployeeAttendance]
