import asyncio
import json
from typing import AsyncGenerator, Callable, List, Optional

import anyio
from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from walkin.api.deps import get_app_settings, get_broadcaster, get_request_id, require_admin
from walkin.core.config import Settings
from walkin.core.db import ApprovalRequest, OfficeLocation, User, get_db_session
from walkin.core.logger import get_logger
from walkin.schemas.admin import AttendanceStats, DashboardResponse, EmployeeAttendance
from walkin.schemas.approvals import ApprovalResponse, RejectRequest
from walkin.schemas.attendance import AttendanceResponse
from walkin.schemas.auth import UserResponse
from walkin.schemas.common import StatusResponse
from walkin.schemas.offices import OfficeCreateRequest, OfficeResponse, OfficeUpdateRequest
from walkin.services import admin, approvals, attendance, offices
from walkin.services.events import APPROVALS_TOPIC, EventBroadcaster, attendance_topic

logger = get_logger("admin_routes")
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx buffering
}


def _resolve_date(date: Optional[str], config: Settings) -> str:
    return date or attendance.local_date_string(config)


def _dashboard(db: Session, date_str: str) -> DashboardResponse:
    employees = admin.get_all_employees(db)
    records = admin.get_attendance_by_date(db, date_str)
    stats = admin.calculate_attendance_stats(employees, records)
    return DashboardResponse(
        date=date_str,
        stats=AttendanceStats(**stats.to_dict()),
        employees=[
            EmployeeAttendance(
                user=UserResponse.model_validate(employee),
                attendance=AttendanceResponse.model_validate(record) if record else None,
            )
            for employee, record in admin.combine_employees_with_attendance(employees, records)
        ],
    )


def _pending_snapshot(db: Session) -> list[dict]:
    return [
        ApprovalResponse.model_validate(request).model_dump(mode="json")
        for request in approvals.get_pending_approvals(db)
    ]


async def stream_snapshots(
    request: Request,
    topic: str,
    load_snapshot: Callable[[Session], object],
    request_id: str,
) -> AsyncGenerator[str, None]:
    """Stream a snapshot as SSE now and again after every publish on ``topic``.

    Snapshots are read in a worker thread with a fresh session so the event
    loop never blocks on the database.
    """
    session_factory = request.app.state.session_factory
    broadcaster: EventBroadcaster = request.app.state.broadcaster
    keepalive = request.app.state.settings.STREAM_KEEPALIVE_SECONDS

    def read() -> str:
        db = session_factory()
        try:
            return json.dumps(jsonable_encoder(load_snapshot(db)), ensure_ascii=False)
        finally:
            db.close()

    logger.info(f"[{request_id}] Stream opened: {topic}")
    try:
        with broadcaster.subscribe(topic) as queue:
            yield f"data: {await anyio.to_thread.run_sync(read)}\n\n"
            while True:
                try:
                    await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    if await request.is_disconnected():
                        break
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {await anyio.to_thread.run_sync(read)}\n\n"
    except asyncio.CancelledError:
        logger.info(f"[{request_id}] Client disconnected from {topic}")
        raise
    except Exception as e:
        logger.error(f"[{request_id}] Streaming error on {topic}: {e}", exc_info=True)
        yield f"data: {json.dumps({'error': 'stream failed', 'done': True})}\n\n"
    logger.info(f"[{request_id}] Stream closed: {topic}")


# === Users ===
@router.get("/users", response_model=List[UserResponse])
async def list_users(db: Session = Depends(get_db_session)):
    """All users, employees and admins, sorted by name"""
    return admin.get_all_users(db)


@router.get("/employees", response_model=List[UserResponse])
async def list_employees(db: Session = Depends(get_db_session)):
    return admin.get_all_employees(db)


# === Attendance ===
@router.get("/attendance", response_model=List[AttendanceResponse])
async def attendance_by_date(
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
):
    return admin.get_attendance_by_date(db, _resolve_date(date, config))


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
) -> DashboardResponse:
    """
    Daily statistics plus every employee with their record for the date
    (defaults to today in the business timezone)
    """
    return _dashboard(db, _resolve_date(date, config))


@router.get("/attendance/stream")
async def attendance_stream(
    request: Request,
    date: Optional[str] = Query(None, pattern=DATE_PATTERN),
    config: Settings = Depends(get_app_settings),
    request_id: str = Depends(get_request_id),
):
    """Live dashboard for a date as server-sent events"""
    date_str = _resolve_date(date, config)
    return StreamingResponse(
        stream_snapshots(request, attendance_topic(date_str), lambda db: _dashboard(db, date_str), request_id),
        media_type="text/event-stream",
        headers=_STREAM_HEADERS,
    )


# === Approvals ===
@router.get("/approvals", response_model=List[ApprovalResponse])
async def list_pending_approvals(db: Session = Depends(get_db_session)):
    """Pending requests, newest first"""
    return approvals.get_pending_approvals(db)


@router.get("/approvals/stream")
async def pending_approvals_stream(
    request: Request,
    request_id: str = Depends(get_request_id),
):
    """Live pending-approval list as server-sent events"""
    return StreamingResponse(
        stream_snapshots(request, APPROVALS_TOPIC, _pending_snapshot, request_id),
        media_type="text/event-stream",
        headers=_STREAM_HEADERS,
    )


@router.post("/approvals/{request_id}/approve", response_model=ApprovalResponse)
async def approve(
    request_id: str,
    reviewer: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    trace_id: str = Depends(get_request_id),
) -> ApprovalRequest:
    """
    Approve a pending request and record the attendance it asked for
    """
    logger.info(f"[{trace_id}] Approving {request_id}")
    approval = approvals.approve_request(db, request_id, reviewer, config)
    broadcaster.publish(APPROVALS_TOPIC)
    broadcaster.publish(attendance_topic(approval.date))
    return approval


@router.post("/approvals/{request_id}/reject", response_model=ApprovalResponse)
async def reject(
    request_id: str,
    req: RejectRequest,
    reviewer: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    trace_id: str = Depends(get_request_id),
) -> ApprovalRequest:
    logger.info(f"[{trace_id}] Rejecting {request_id}")
    approval = approvals.reject_request(db, request_id, reviewer, req.rejection_reason)
    broadcaster.publish(APPROVALS_TOPIC)
    return approval


# === Offices ===
@router.get("/offices", response_model=List[OfficeResponse])
async def list_offices(db: Session = Depends(get_db_session)):
    """All offices, including inactive ones"""
    return offices.get_all_offices(db)


@router.post("/offices", response_model=OfficeResponse, status_code=201)
async def create_office(
    req: OfficeCreateRequest,
    db: Session = Depends(get_db_session),
) -> OfficeLocation:
    return offices.create_office(db, **req.model_dump())


@router.patch("/offices/{office_id}", response_model=OfficeResponse)
async def update_office(
    office_id: str,
    req: OfficeUpdateRequest,
    db: Session = Depends(get_db_session),
) -> OfficeLocation:
    return offices.update_office(db, office_id, **req.model_dump(exclude_unset=True))


@router.delete("/offices/{office_id}", response_model=StatusResponse)
async def delete_office(
    office_id: str,
    db: Session = Depends(get_db_session),
) -> StatusResponse:
    offices.delete_office(db, office_id)
    return StatusResponse(status="deleted", id=office_id)


@router.post("/offices/initialize-defaults", response_model=List[OfficeResponse])
async def initialize_default_offices(db: Session = Depends(get_db_session)):
    """Seed the default offices when none exist; returns the offices created"""
    return offices.initialize_default_offices(db)
