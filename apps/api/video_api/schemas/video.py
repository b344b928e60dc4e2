"""Data contracts for the video endpoints."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date_created: datetime | None = None
    date_updated: datetime | None = None
    status: str | None = None
    sid: str = Field(..., description="Vendor-assigned room sid")
    unique_name: str | None = None
    duration: int | None = None
    record_participants_on_connect: bool | None = None
    url: str | None = None
    links: dict[str, Any] | None = None


class RecordingSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date_created: datetime | None = None
    duration: int | None = None
    links: dict[str, Any] | None = None
    sid: str
    grouping_sids: dict[str, Any] | None = None
    status: str | None = None
    url: str | None = None
    type: str | None = Field(default=None, description="audio, video or data")


class CompositionEvent(BaseModel):
    """Status callback payload posted by Twilio for a composition."""

    event: str
    composition_sid: str | None = None
    room_sid: str | None = None
    media_uri: str | None = None
    email: str = ""
