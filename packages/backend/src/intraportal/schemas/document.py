"""Pydantic schemas for uploaded documents."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DocumentRead(BaseModel):
    id: uuid.UUID
    title: str
    file_name: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    uploaded_by: uuid.UUID
    uploaded_by_name: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = []
    is_shared: bool
    shared_with: list[str] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DocumentList(BaseModel):
    items: list[DocumentRead]
    count: int


class DocumentShare(BaseModel):
    shared_with: list[uuid.UUID] = Field(..., description="User ids to share with")
