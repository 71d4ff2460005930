"""
Pydantic models for attendance endpoints
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from walkin.services.formatting import format_work_hours

CheckStatus = Literal["normal", "late", "early", "approved", "pending"]


class LocationModel(BaseModel):
    """A GPS fix as reported by the client"""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    accuracy: float = Field(..., ge=0, description="Reported accuracy in meters")

    model_config = ConfigDict(json_schema_extra={
        "example": {"lat": 37.5665, "lng": 126.978, "accuracy": 12.0}
    })


class CheckRequest(BaseModel):
    location: LocationModel


class ValidateRequest(BaseModel):
    type: Literal["check_in", "check_out"]
    location: LocationModel


class CheckInOutResponse(BaseModel):
    time: datetime
    location: LocationModel
    status: CheckStatus


class AttendanceResponse(BaseModel):
    uid: str
    name: str
    date: str
    check_in: Optional[CheckInOutResponse] = None
    check_out: Optional[CheckInOutResponse] = None
    work_hours: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def work_hours_label(self) -> Optional[str]:
        if self.work_hours is None:
            return None
        return format_work_hours(self.work_hours)


class GPSErrorModel(BaseModel):
    type: str
    message: str


class GeofenceResponse(BaseModel):
    is_valid: bool
    location: LocationModel
    distance: Optional[float] = None
    office_id: Optional[str] = None
    office_name: Optional[str] = None
    error: Optional[GPSErrorModel] = None


class MonthOption(BaseModel):
    year: int
    month: int
    label: str
