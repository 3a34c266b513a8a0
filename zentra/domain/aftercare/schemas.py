"""Aftercare template schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

AftercareCategory = Literal["Facial", "Hair", "Hair Removal", "Wellness", "Nails", "Eyelashes", "General"]


class AftercareTemplateCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: AftercareCategory = "General"
    content: str = Field(..., min_length=1)


class AftercareTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[AftercareCategory] = None
    content: Optional[str] = Field(None, min_length=1)


class AftercareTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: str
    content: str
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
