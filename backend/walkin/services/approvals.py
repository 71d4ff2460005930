"""
Exception approval requests for check-ins and check-outs made outside the
office geofence.

A request is keyed {uid}_{date}_{type}, so each user has at most one request
per day and type. Approving a request records the attendance event at the
time the request was filed, with status "approved".
"""
import datetime
from typing import Optional

from sqlalchemy.orm import Session

from walkin.core.config import Settings, settings as default_settings
from walkin.core.db import ApprovalRequest, User, as_utc, utcnow
from walkin.core.logger import get_logger
from walkin.services import attendance
from walkin.services.errors import (
    DuplicatePendingRequestError,
    NoCheckInError,
    NotFoundError,
    RequestAlreadyReviewedError,
    ValidationError,
)

logger = get_logger("approvals")

APPROVAL_TYPES = ("check_in", "check_out")


def approval_id(uid: str, date_str: str, approval_type: str) -> str:
    return f"{uid}_{date_str}_{approval_type}"


def _check_type(approval_type: str) -> None:
    if approval_type not in APPROVAL_TYPES:
        raise ValidationError(f"Unknown approval type: {approval_type}")


def create_approval_request(
    db: Session,
    user: User,
    approval_type: str,
    reason: str,
    location: dict,
    config: Optional[Settings] = None,
    now: Optional[datetime.datetime] = None,
) -> ApprovalRequest:
    """
    File a request for today's check-in or check-out.

    A rejected or already-approved request for the same day and type is
    replaced; a pending one is not.

    Raises:
        ValidationError: If the reason is too short
        DuplicatePendingRequestError: If a pending request already exists
        NoCheckInError: If a check-out is requested before today has a check-in
    """
    config = config or default_settings
    _check_type(approval_type)

    reason = reason.strip()
    if len(reason) < config.APPROVAL_REASON_MIN_LENGTH:
        raise ValidationError(f"사유는 최소 {config.APPROVAL_REASON_MIN_LENGTH}자 이상 입력해주세요")

    now = as_utc(now) if now else utcnow()
    today = attendance.local_date_string(config, now)
    request_id = approval_id(user.uid, today, approval_type)

    request = db.get(ApprovalRequest, request_id)
    if request is not None and request.status == "pending":
        raise DuplicatePendingRequestError("이미 승인 대기 중인 요청이 있습니다")

    if approval_type == "check_out":
        record = attendance.get_attendance(db, user.uid, today)
        if record is None or record.check_in_time is None:
            raise NoCheckInError("출근 기록이 없습니다")

    if request is None:
        request = ApprovalRequest(id=request_id)
        db.add(request)

    request.uid = user.uid
    request.name = user.name
    request.date = today
    request.type = approval_type
    request.reason = reason
    request.location = dict(location)
    request.status = "pending"
    request.reviewed_by = None
    request.reviewed_at = None
    request.rejection_reason = None
    request.created_at = now
    request.updated_at = now
    db.commit()

    logger.info(f"Approval request filed: {request_id}")
    return request


def get_approval_request(db: Session, request_id: str) -> Optional[ApprovalRequest]:
    return db.get(ApprovalRequest, request_id)


def get_today_approval_request(
    db: Session,
    uid: str,
    approval_type: str,
    config: Optional[Settings] = None,
    now: Optional[datetime.datetime] = None,
) -> Optional[ApprovalRequest]:
    _check_type(approval_type)
    today = attendance.local_date_string(config, now)
    return get_approval_request(db, approval_id(uid, today, approval_type))


def get_user_approval_requests(db: Session, uid: str) -> list[ApprovalRequest]:
    return (
        db.query(ApprovalRequest)
        .filter(ApprovalRequest.uid == uid)
        .order_by(ApprovalRequest.created_at.desc())
        .all()
    )


def get_pending_approvals(db: Session) -> list[ApprovalRequest]:
    return (
        db.query(ApprovalRequest)
        .filter(ApprovalRequest.status == "pending")
        .order_by(ApprovalRequest.created_at.desc())
        .all()
    )


def _get_pending(db: Session, request_id: str) -> ApprovalRequest:
    request = get_approval_request(db, request_id)
    if request is None:
        raise NotFoundError(f"Approval request {request_id} not found")
    if request.status != "pending":
        raise RequestAlreadyReviewedError(f"Approval request {request_id} is already {request.status}")
    return request


def approve_request(
    db: Session,
    request_id: str,
    reviewer: User,
    config: Optional[Settings] = None,
) -> ApprovalRequest:
    """
    Record the requested attendance event, then mark the request approved.

    If recording fails (e.g. a check-out with no check-in), the error
    propagates and the request stays pending.
    """
    request = _get_pending(db, request_id)

    employee = db.get(User, request.uid)
    if employee is None:
        raise NotFoundError("사용자 정보를 찾을 수 없습니다")

    if request.type == "check_in":
        attendance.record_check_in(
            db, employee, request.location, config, status="approved", at=request.created_at
        )
    else:
        attendance.record_check_out(
            db, employee.uid, request.location, config, status="approved", at=request.created_at
        )

    now = utcnow()
    request.status = "approved"
    request.reviewed_by = reviewer.uid
    request.reviewed_at = now
    request.updated_at = now
    db.commit()

    logger.info(f"Approval request approved: {request_id} by {reviewer.uid}")
    return request


def reject_request(
    db: Session,
    request_id: str,
    reviewer: User,
    rejection_reason: str,
) -> ApprovalRequest:
    rejection_reason = rejection_reason.strip()
    if not rejection_reason:
        raise ValidationError("거부 사유를 입력해주세요")

    request = _get_pending(db, request_id)

    now = utcnow()
    request.status = "rejected"
    request.reviewed_by = reviewer.uid
    request.reviewed_at = now
    request.rejection_reason = rejection_reason
    request.updated_at = now
    db.commit()

    logger.info(f"Approval request rejected: {request_id} by {reviewer.uid}")
    return request
