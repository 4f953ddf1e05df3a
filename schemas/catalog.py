"""Character, philosophy and quote schemas."""

from typing import List, Optional

from pydantic import Field

from schemas.base import CamelSchema


class CharacterSchema(CamelSchema):
    """A figure whose quotes a user can follow."""

    id: int
    name: str
    description: str
    category: str
    image_url: Optional[str] = None
    biography: Optional[str] = None


class PhilosophySchema(CamelSchema):
    """A named school of thought."""

    id: int
    name: str
    description: str


class QuoteSchema(CamelSchema):
    """A quote, optionally linked to a character and a philosophy."""

    id: int
    text: str
    author: str
    character_id: Optional[int] = None
    philosophy_id: Optional[int] = None
    category: Optional[str] = None


class CharacterSelectionSchema(CamelSchema):
    """Body of the character selection endpoints."""

    character_ids: List[int] = Field(..., description="Selected character ids")


class PhilosophySelectionSchema(CamelSchema):
    """Body of the philosophy selection endpoints."""

    philosophy_ids: List[int] = Field(..., description="Selected philosophy ids")


class PreferencesSchema(CamelSchema):
    """Catalogue plus the user's current selections, for the settings page."""

    characters: List[CharacterSchema] = Field(default_factory=list)
    philosophies: List[PhilosophySchema] = Field(default_factory=list)
    selected_character_ids: List[int] = Field(default_factory=list)
    selected_philosophy_ids: List[int] = Field(default_factory=list)
