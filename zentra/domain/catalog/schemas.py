"""Catalog schemas - services a business offers"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    duration: int = Field(..., gt=0, le=24 * 60)
    price: float = Field(..., ge=0)
    depositRequired: bool = False
    active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    price: Optional[float] = Field(None, ge=0)
    depositRequired: Optional[bool] = None
    active: Optional[bool] = None


class ServiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration: int
    price: float
    depositRequired: bool
    active: bool
    createdAt: Optional[datetime] = None
