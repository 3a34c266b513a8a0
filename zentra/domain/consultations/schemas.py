"""Consultation schemas"""

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_time

ConsultationStatus = Literal["scheduled", "in-progress", "completed", "cancelled"]


class ConsultationCreate(BaseModel):
    clientId: int
    staffId: Optional[int] = None
    type: str = Field(..., min_length=1, max_length=100)
    date: dt.date
    startTime: str
    duration: int = Field(30, gt=0, le=480)
    meetingLink: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class ConsultationUpdate(BaseModel):
    staffId: Optional[int] = None
    type: Optional[str] = None
    date: Optional[dt.date] = None
    startTime: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=480)
    status: Optional[ConsultationStatus] = None
    meetingLink: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)
    feedback: Optional[str] = None

    @field_validator("startTime")
    @classmethod
    def check_time(cls, v):
        return validate_time(v)


class ConsultationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    clientId: int
    staffId: Optional[int] = None
    type: str
    date: dt.date
    startTime: str
    duration: int
    status: str
    meetingLink: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    createdAt: Optional[dt.datetime] = None
