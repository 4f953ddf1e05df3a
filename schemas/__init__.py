"""
Pydantic schemas for type-safe data transfer.
"""

from schemas.user import UserSchema, UserUpsertSchema
from schemas.catalog import (
    CharacterSchema,
    PhilosophySchema,
    QuoteSchema,
    CharacterSelectionSchema,
    PhilosophySelectionSchema,
    PreferencesSchema,
)
from schemas.journal import JournalEntrySchema, JournalEntryCreateSchema
from schemas.reminder import ReminderSchema, ReminderCreateSchema

__all__ = [
    "UserSchema",
    "UserUpsertSchema",
    "CharacterSchema",
    "PhilosophySchema",
    "QuoteSchema",
    "CharacterSelectionSchema",
    "PhilosophySelectionSchema",
    "PreferencesSchema",
    "JournalEntrySchema",
    "JournalEntryCreateSchema",
    "ReminderSchema",
    "ReminderCreateSchema",
]
