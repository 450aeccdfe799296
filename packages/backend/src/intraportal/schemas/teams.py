"""Pydantic schemas for the Microsoft Teams integration."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TeamsMessage(BaseModel):
    id: str
    sender: Optional[str] = None
    content: Optional[str] = None
    timestamp: Optional[datetime] = None


class TeamsChannel(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    messages: list[TeamsMessage] = []


class TeamsSendRequest(BaseModel):
    message: Optional[str] = Field(None, max_length=28000)


class TeamsSyncResult(BaseModel):
    channels_count: int
    created: int
    messages_count: int
