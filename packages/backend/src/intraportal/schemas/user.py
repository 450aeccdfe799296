"""Pydantic schemas for user profiles, preferences and activity."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UserRead(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    role: str
    avatar_url: Optional[str] = None
    theme_preference: str
    timezone: str
    last_login: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    theme_preference: Optional[str] = Field(None, pattern=r"^(light|dark|system)$")
    timezone: Optional[str] = Field(None, max_length=50)
    avatar_url: Optional[str] = None


class PreferencesRead(BaseModel):
    user_id: uuid.UUID
    notifications_enabled: bool
    email_digest_frequency: str
    language: str
    display_announcements: bool
    display_events: bool
    display_news: bool
    display_documents: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class PreferencesUpdate(BaseModel):
    notifications_enabled: Optional[bool] = None
    email_digest_frequency: Optional[str] = Field(
        None, pattern=r"^(never|daily|weekly|monthly)$"
    )
    language: Optional[str] = Field(None, max_length=10)
    display_announcements: Optional[bool] = None
    display_events: Optional[bool] = None
    display_news: Optional[bool] = None
    display_documents: Optional[bool] = None


class ActivityRead(BaseModel):
    id: uuid.UUID
    action: str
    resource_type: str
    resource_id: Optional[uuid.UUID] = None
    meta: dict = Field(default_factory=dict, serialization_alias="metadata")
    created_at: datetime

    model_config = {"from_attributes": True}
