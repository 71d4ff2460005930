from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from walkin.api.deps import get_app_settings, get_broadcaster, get_current_user, get_request_id
from walkin.core.config import Settings
from walkin.core.db import ApprovalRequest, User, get_db_session
from walkin.core.logger import get_logger
from walkin.schemas.approvals import ApprovalCreateRequest, ApprovalResponse
from walkin.services import approvals
from walkin.services.events import APPROVALS_TOPIC, EventBroadcaster

logger = get_logger("approval_routes")
router = APIRouter(prefix="/approvals", tags=["approvals"])


@router.post("", response_model=ApprovalResponse, status_code=201)
async def create_request(
    req: ApprovalCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
    request_id: str = Depends(get_request_id),
) -> ApprovalRequest:
    """
    Ask an admin to accept a check-in or check-out made outside the geofence

    - **reason**: at least 10 characters
    - **location**: the rejected GPS fix
    """
    logger.info(f"[{request_id}] Approval request: {user.uid} {req.type}")
    request = approvals.create_approval_request(
        db, user, req.type, req.reason, req.location.model_dump(), config
    )
    broadcaster.publish(APPROVALS_TOPIC)
    return request


@router.get("/today", response_model=Optional[ApprovalResponse])
async def get_today_request(
    type: Literal["check_in", "check_out"] = Query(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    config: Settings = Depends(get_app_settings),
) -> Optional[ApprovalRequest]:
    """Today's request of the given type, so the client can poll its status"""
    return approvals.get_today_approval_request(db, user.uid, type, config)


@router.get("/mine", response_model=List[ApprovalResponse])
async def list_my_requests(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
):
    return approvals.get_user_approval_requests(db, user.uid)
