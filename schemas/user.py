"""User schemas."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.base import CamelSchema


class UserBaseSchema(CamelSchema):
    """Base user schema with the fields the identity provider supplies."""

    email: Optional[str] = Field(None, max_length=255, description="Email address")
    first_name: Optional[str] = Field(None, max_length=255, description="Given name")
    last_name: Optional[str] = Field(None, max_length=255, description="Family name")
    profile_image_url: Optional[str] = Field(None, max_length=1000, description="Avatar URL")


class UserUpsertSchema(UserBaseSchema):
    """Schema for creating or refreshing a user from identity claims."""

    id: str = Field(..., min_length=1, max_length=255, description="Identity provider subject")


class UserSchema(UserBaseSchema):
    """Complete user schema with all fields."""

    id: str = Field(..., description="Identity provider subject")
    created_at: Optional[datetime] = Field(None, description="User creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last profile update")
    setup_completed: bool = Field(False, description="Whether the setup flow was finished")
