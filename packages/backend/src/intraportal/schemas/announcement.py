"""Pydantic schemas for announcements."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    priority: str = Field(default="normal", min_length=1, max_length=20)
    is_urgent: bool = False
    end_date: Optional[datetime] = None
    visible_to_roles: list[str] = Field(default_factory=list)


class AnnouncementRead(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    author_name: Optional[str] = None
    priority: str
    is_urgent: bool
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    visible_to_roles: list[str] = []
    created_at: datetime
    published_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class AnnouncementList(BaseModel):
    items: list[AnnouncementRead]
    count: int
