"""
Pydantic models for exception approval endpoints
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from walkin.schemas.attendance import LocationModel

ApprovalType = Literal["check_in", "check_out"]
ApprovalStatus = Literal["pending", "approved", "rejected"]


class ApprovalCreateRequest(BaseModel):
    type: ApprovalType
    reason: str = Field(..., max_length=1000)
    location: LocationModel

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "type": "check_in",
            "reason": "외근으로 인해 사무실 외부에서 출근합니다",
            "location": {"lat": 37.4, "lng": 127.1, "accuracy": 20.0}
        }
    })


class RejectRequest(BaseModel):
    rejection_reason: str = Field(..., max_length=1000)


class ApprovalResponse(BaseModel):
    id: str
    uid: str
    name: str
    date: str
    type: ApprovalType
    reason: str
    location: LocationModel
    status: ApprovalStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
