"""Pydantic schemas for news items.

Learn: Separate "Create"/"Update" schemas (input) from "Read" schemas
(output). Update schemas are all-optional: only fields the client sends
are applied (the equivalent of SQL COALESCE on each column).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class NewsCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    featured: bool = False


class NewsUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    tags: Optional[list[str]] = None
    featured: Optional[bool] = None


class NewsRead(BaseModel):
    id: uuid.UUID
    title: str
    content: str
    author_id: uuid.UUID
    author_name: Optional[str] = None
    category: Optional[str] = None
    featured: bool
    image_url: Optional[str] = None
    tags: list[str] = []
    created_at: datetime
    updated_at: datetime
    published_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NewsList(BaseModel):
    items: list[NewsRead]
    count: int
