"""
SQLAlchemy models for Wisdom Compass.
Defines the catalogue (characters, philosophies, quotes) and per-user data.
"""

from datetime import datetime

from sqlalchemy import (
    Column,
    Index,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class AuthSession(Base):
    """Server-side login sessions, keyed by the id stored in the session cookie."""

    __tablename__ = "sessions"
    __table_args__ = (
        Index("IDX_session_expire", "expire"),
    )

    sid = Column(String(255), primary_key=True)
    sess = Column(JSON, nullable=False)  # user_id, claims, access/refresh tokens
    expire = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<AuthSession(sid='{self.sid[:8]}...', expire={self.expire})>"


class User(Base):
    """User table - one row per identity provider subject."""

    __tablename__ = "users"

    id = Column(String(255), primary_key=True)
    email = Column(String(255), unique=True, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    profile_image_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    setup_completed = Column(Boolean, default=False, nullable=False)

    # Relationships
    journal_entries = relationship("JournalEntry", back_populates="user", cascade="all, delete-orphan")
    reminders = relationship("Reminder", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', setup_completed={self.setup_completed})>"


class Character(Base):
    """Historical or contemporary figure."""

    __tablename__ = "characters"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(Text, nullable=False)  # "philosophy", "spirituality", "contemporary", ...
    image_url = Column(Text, nullable=True)
    biography = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Character(id={self.id}, name='{self.name}')>"


class Philosophy(Base):
    """School of thought."""

    __tablename__ = "philosophies"

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False)

    def __repr__(self):
        return f"<Philosophy(id={self.id}, name='{self.name}')>"


class Quote(Base):
    """Quote table."""

    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True)
    text = Column(Text, nullable=False)
    author = Column(Text, nullable=False)
    character_id = Column(Integer, ForeignKey("characters.id"), nullable=True, index=True)
    philosophy_id = Column(Integer, ForeignKey("philosophies.id"), nullable=True, index=True)
    category = Column(Text, nullable=True)  # free-form theme, e.g. "mindset", "peace"

    def __repr__(self):
        return f"<Quote(id={self.id}, author='{self.author}')>"


class UserCharacter(Base):
    """Characters a user follows."""

    __tablename__ = "user_characters"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    character_id = Column(Integer, ForeignKey("characters.id"), nullable=False)
    selected_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)


class UserPhilosophy(Base):
    """Philosophies a user follows."""

    __tablename__ = "user_philosophies"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    philosophy_id = Column(Integer, ForeignKey("philosophies.id"), nullable=False)
    selected_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)


class JournalEntry(Base):
    """Journal reflections, optionally responding to a quote."""

    __tablename__ = "journal_entries"
    __table_args__ = (
        Index("idx_journal_entries_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    is_pinned = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="journal_entries")

    def __repr__(self):
        return f"<JournalEntry(id={self.id}, user_id='{self.user_id}', quote_id={self.quote_id})>"


class PinnedQuote(Base):
    """Quotes a user pinned; each pin also creates a quote reminder."""

    __tablename__ = "pinned_quotes"
    __table_args__ = (
        UniqueConstraint("user_id", "quote_id", name="uq_pinned_quotes_user_quote"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id"), nullable=False)
    pinned_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)


class Reminder(Base):
    """Recurring reminders of type quote, journal or goal."""

    __tablename__ = "reminders"
    __table_args__ = (
        Index("idx_reminders_user_created", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id"), nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    frequency = Column(String(20), nullable=False)  # "daily", "weekly", "monthly"
    time = Column(String(5), nullable=False)  # HH:MM
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.utcnow(), nullable=False)
    type = Column(String(20), nullable=False)  # "quote", "journal", "goal"
    reference_id = Column(Integer, nullable=True)  # id of the referenced item

    # Relationships
    user = relationship("User", back_populates="reminders")

    def __repr__(self):
        return f"<Reminder(id={self.id}, type='{self.type}', title='{self.title}', active={self.is_active})>"
