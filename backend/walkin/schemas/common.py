"""
Shared response models
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorResponse(BaseModel):
    """Standardized error response"""
    error: str = Field(..., description="Error message")
    error_code: str = Field(..., description="Error code for client handling")
    timestamp: datetime = Field(default_factory=_utcnow)
    request_id: Optional[str] = Field(None, description="Trace ID for debugging")
    details: Optional[Dict[str, Any]] = Field(None, description="Structured error context")


class StatusResponse(BaseModel):
    status: str
    id: Optional[str] = None


class HealthCheckResponse(BaseModel):
    """System health status"""
    status: str = Field(..., description="System status: 'healthy' or 'degraded'")
    components: Dict[str, str] = Field(..., description="Individual component statuses")
    timestamp: datetime = Field(default_factory=_utcnow)
