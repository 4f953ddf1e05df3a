"""Journal entry schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from schemas.base import CamelSchema


class JournalEntryCreateSchema(CamelSchema):
    """Schema for creating a journal entry."""

    text: str = Field(..., min_length=1, description="Reflection text")
    quote_id: Optional[int] = Field(None, description="Quote the reflection responds to")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v


class JournalEntrySchema(CamelSchema):
    """Complete journal entry schema."""

    id: int
    user_id: str
    text: str
    quote_id: Optional[int] = None
    created_at: Optional[datetime] = None
    is_pinned: bool = False
