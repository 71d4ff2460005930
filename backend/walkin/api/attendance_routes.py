from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkin.api.deps import get_app_settings, get_broadcaster, get_current_user, get_request_id
from walkin.core.config import Settings
from walkin.core.db import Attendance, User, get_db_session
from walkin.core.logger import get_logger
from walkin.schemas.attendance import (
    AttendanceResponse,
    CheckRequest,
    GeofenceResponse,
    MonthOption,
    ValidateRequest,
)
from walkin.schemas.offices import OfficeResponse
from walkin.services import attendance, offices
from walkin.services.errors import GeofenceError
from walkin.services.events import EventBroadcaster, attendance_topic
from walkin.services.geo import GeofenceResult, GPSPolicy, validate_position

logger = get_logger("attendance_routes")
router = APIRouter(tags=["attendance"])


def _validate_fix(db: Session, config: Settings, kind: str, location) -> GeofenceResult:
    return validate_position(
        kind,
        location.lat,
        location.lng,
        location.accuracy,
        offices=offices.get_active_offices(db),
        policy=GPSPolicy.from_settings(config),
    )


def _require_valid_fix(db: Session, config: Settings, kind: str, location, request_id: str) -> None:
    """Raise GeofenceError so the client can offer an exception approval request"""
    result = _validate_fix(db, config, kind, location)
    if not result.is_valid:
        logger.info(f"[{request_id}] {kind} rejected: {result.error['type']} (distance={result.distance})")
        raise GeofenceError(result.error["message"], result.error["type"], details=result.to_dict())


@router.get("/offices", response_model=List[OfficeResponse])
async def list_active_offices(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """Offices whose geofences accept check-ins"""
    return offices.get_active_offices(db)


@router.post("/attendance/validate", response_model=GeofenceResponse)
async def validate_location(
    req: ValidateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
):
    """
    Check a GPS fix against the geofence without recording anything
    """
    return _validate_fix(db, config, req.type, req.location).to_dict()


@router.post("/attendance/check-in", response_model=AttendanceResponse, status_code=201)
async def check_in(
    req: CheckRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    request_id: str = Depends(get_request_id),
) -> Attendance:
    """
    Record today's check-in

    Fails with LOW_ACCURACY or OUT_OF_RANGE when the fix is outside the
    nearest office's check-in radius.
    """
    logger.info(f"[{request_id}] Check-in request: {user.uid}")
    _require_valid_fix(db, config, "check_in", req.location, request_id)

    record = attendance.record_check_in(db, user, req.location.model_dump(), config)
    broadcaster.publish(attendance_topic(record.date))
    return record


@router.post("/attendance/check-out", response_model=AttendanceResponse)
async def check_out(
    req: CheckRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    request_id: str = Depends(get_request_id),
) -> Attendance:
    """
    Record today's check-out and work hours
    """
    logger.info(f"[{request_id}] Check-out request: {user.uid}")
    _require_valid_fix(db, config, "check_out", req.location, request_id)

    record = attendance.record_check_out(db, user.uid, req.location.model_dump(), config)
    broadcaster.publish(attendance_topic(record.date))
    return record


@router.get("/attendance/today", response_model=Optional[AttendanceResponse])
async def get_today(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
) -> Optional[Attendance]:
    return attendance.get_today_attendance(db, user.uid, config)


@router.get("/attendance/history", response_model=List[AttendanceResponse])
async def get_history(
    months_back: Optional[int] = Query(None, ge=0, le=24),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
):
    """Recent attendance, newest first"""
    return attendance.get_attendance_history(db, user.uid, config, months_back=months_back)


@router.get("/attendance/monthly", response_model=List[AttendanceResponse])
async def get_monthly(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    """One calendar month, oldest first"""
    return attendance.get_monthly_attendance(db, user.uid, year, month)


@router.get("/attendance/months", response_model=List[MonthOption])
async def get_months(
    user: User = Depends(get_current_user),
    config: Settings = Depends(get_app_settings),
):
    return attendance.get_available_months(config)
