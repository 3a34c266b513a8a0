"""Blocked time schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_time


class BlockedTimeCreate(BaseModel):
    staffId: Optional[int] = None
    startDate: date
    endDate: Optional[date] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=255)

    @field_validator("startTime", "endTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class BlockedTimeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    staffId: Optional[int] = None
    startDate: date
    endDate: date
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    allDay: bool
    reason: Optional[str] = None
    createdAt: Optional[datetime] = None
