"""
Pydantic models for office location endpoints
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OfficeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    address: str = Field(default="", max_length=300)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    check_in_radius: float = Field(default=1000, gt=0)
    check_out_radius: float = Field(default=3000, gt=0)
    is_active: bool = True


class OfficeUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=300)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    check_in_radius: Optional[float] = Field(None, gt=0)
    check_out_radius: Optional[float] = Field(None, gt=0)
    is_active: Optional[bool] = None


class OfficeResponse(BaseModel):
    id: str
    name: str
    address: str
    lat: float
    lng: float
    check_in_radius: float
    check_out_radius: float
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
