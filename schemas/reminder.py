"""Reminder and pinned quote schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from schemas.base import CamelSchema

ReminderFrequency = Literal["daily", "weekly", "monthly"]
ReminderType = Literal["quote", "journal", "goal"]

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class ReminderCreateSchema(CamelSchema):
    """Schema for creating a reminder (goals are reminders of type 'goal')."""

    title: str = Field(..., min_length=1, max_length=500, description="Reminder title")
    content: str = Field(..., min_length=1, description="Reminder body")
    frequency: ReminderFrequency = Field(..., description="'daily', 'weekly' or 'monthly'")
    time: str = Field(..., pattern=TIME_PATTERN, description="Time of day in HH:MM")
    type: ReminderType = Field(..., description="'quote', 'journal' or 'goal'")
    reference_id: Optional[int] = Field(None, description="Id of the referenced item")


class ReminderSchema(ReminderCreateSchema):
    """Complete reminder schema."""

    id: int = Field(..., description="Reminder ID")
    user_id: str = Field(..., description="Owner")
    is_active: bool = Field(True, description="Whether the reminder fires")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
