"""Context schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContextCreate(BaseModel):
    """Context creation schema."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ContextUpdate(BaseModel):
    """Context update schema."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None


class ContextInfo(BaseModel):
    """Context response schema."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
