"""
Async database operations for Wisdom Compass.
Async SQLAlchemy with retry on dropped connections, structured logging and
pydantic schemas at the boundary: no ORM instance leaves this module.
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

import pytz
from sqlalchemy import delete, event, or_, select, func
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.settings import settings
from core import (
    get_logger,
    DatabaseConnectionError,
    DatabaseException,
    DuplicateRecordError,
    InspireException,
    InvalidInputError,
    RecordNotFoundError,
    UserNotFoundError,
)
from schemas import (
    CharacterSchema,
    JournalEntryCreateSchema,
    JournalEntrySchema,
    PhilosophySchema,
    PreferencesSchema,
    QuoteSchema,
    ReminderCreateSchema,
    ReminderSchema,
    UserSchema,
    UserUpsertSchema,
)
from storage.matching import (
    PINNED_REMINDER_TITLE,
    extract_keywords,
    format_pinned_quote_content,
    pick_daily_quote_id,
)
from storage.models import (
    AuthSession,
    Base,
    Character,
    JournalEntry,
    Philosophy,
    PinnedQuote,
    Quote,
    Reminder,
    User,
    UserCharacter,
    UserPhilosophy,
)

logger = get_logger(__name__)

retry_on_disconnect = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(DatabaseConnectionError),
    reraise=True,
)


def _to_async_url(db_url: str) -> str:
    if db_url.startswith("postgresql://"):
        return db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return db_url


def user_local_today() -> date:
    """Calendar date in the configured application timezone."""
    return datetime.now(pytz.timezone(settings.TIMEZONE)).date()


class AsyncDatabase:
    """
    Async database interface:
    - Connection pooling and retry on dropped connections
    - Type-safe results with Pydantic
    - Proper error handling and logging
    - Transaction per operation
    """

    def __init__(self, database_url: Optional[str] = None):
        """Initialize async database engine and session factory."""
        db_url = _to_async_url(database_url or settings.DATABASE_URL)

        engine_kwargs: Dict[str, Any] = {
            "echo": settings.LOG_LEVEL == "DEBUG",
            "pool_pre_ping": True,  # Verify connections before use
        }
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in db_url:
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(
                pool_size=10,
                max_overflow=20,
                pool_recycle=3600,  # Recycle connections after 1 hour
            )

        self.engine: AsyncEngine = create_async_engine(db_url, **engine_kwargs)

        if db_url.startswith("sqlite"):
            # SQLite leaves foreign keys unchecked unless asked per connection
            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self.async_session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info("Async database engine initialized", db_url=db_url.split("@")[-1])

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for database sessions with automatic cleanup.

        Commits on success and rolls back on any error. Errors caused by a
        dropped connection surface as DatabaseConnectionError so callers can
        retry them.

        Yields:
            AsyncSession instance
        """
        async with self.async_session_factory() as session:
            try:
                yield session
                await session.commit()
            except InspireException:
                await session.rollback()
                raise
            except DBAPIError as e:
                await session.rollback()
                if e.connection_invalidated:
                    logger.error("Database connection lost", error=str(e))
                    raise DatabaseConnectionError(str(e)) from e
                logger.error("Session rolled back", error=str(e))
                raise
            except Exception as e:
                await session.rollback()
                logger.error("Session rolled back", error=str(e))
                raise

    async def create_tables(self) -> None:
        """Create all database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def close(self) -> None:
        await self.engine.dispose()

    # ==================== Auth Sessions ====================

    async def create_auth_session(self, sid: str, sess: Dict[str, Any], expire: datetime) -> None:
        """Store a login session."""
        try:
            async with self.get_session() as session:
                session.add(AuthSession(sid=sid, sess=sess, expire=expire))
            logger.debug("Auth session created", user_id=sess.get("user_id"))
        except SQLAlchemyError as e:
            logger.error("Failed to create auth session", error=str(e))
            raise DatabaseException(f"Failed to create auth session: {e}")

    @retry_on_disconnect
    async def get_auth_session(self, sid: str) -> Optional[Dict[str, Any]]:
        """
        Load a live session.

        Returns:
            The session payload, or None when unknown or expired
        """
        try:
            async with self.get_session() as session:
                record = await session.get(AuthSession, sid)
                if not record:
                    return None
                if record.expire <= datetime.utcnow():
                    await session.delete(record)
                    logger.debug("Expired auth session removed")
                    return None
                return dict(record.sess)
        except SQLAlchemyError as e:
            logger.error("Failed to load auth session", error=str(e))
            raise DatabaseException(f"Failed to load auth session: {e}")

    async def update_auth_session(self, sid: str, sess: Dict[str, Any]) -> None:
        """Replace the payload of an existing session (after a token refresh)."""
        try:
            async with self.get_session() as session:
                record = await session.get(AuthSession, sid)
                if not record:
                    raise RecordNotFoundError("Session", sid[:8])
                record.sess = sess
        except SQLAlchemyError as e:
            logger.error("Failed to update auth session", error=str(e))
            raise DatabaseException(f"Failed to update auth session: {e}")

    async def delete_auth_session(self, sid: str) -> None:
        try:
            async with self.get_session() as session:
                await session.execute(delete(AuthSession).where(AuthSession.sid == sid))
        except SQLAlchemyError as e:
            logger.error("Failed to delete auth session", error=str(e))
            raise DatabaseException(f"Failed to delete auth session: {e}")

    async def purge_expired_auth_sessions(self) -> int:
        """Delete expired sessions, returns how many were removed."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    delete(AuthSession).where(AuthSession.expire <= datetime.utcnow())
                )
                removed = result.rowcount or 0
            if removed:
                logger.info("Purged expired auth sessions", count=removed)
            return removed
        except SQLAlchemyError as e:
            logger.error("Failed to purge auth sessions", error=str(e))
            raise DatabaseException(f"Failed to purge auth sessions: {e}")

    # ==================== User Operations ====================

    @retry_on_disconnect
    async def get_user(self, user_id: str) -> Optional[UserSchema]:
        """Get user by identity provider subject."""
        try:
            async with self.get_session() as session:
                user = await session.get(User, user_id)
                return UserSchema.model_validate(user) if user else None

        except SQLAlchemyError as e:
            logger.error("Failed to get user", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get user: {e}")

    @retry_on_disconnect
    async def upsert_user(self, data: UserUpsertSchema) -> UserSchema:
        """
        Insert a user, or refresh an existing one from new identity claims.

        Only fields present in ``data`` are written on update.

        Returns:
            UserSchema with user data

        Raises:
            DuplicateRecordError: If the email belongs to another user
            DatabaseException: If database operation fails
        """
        try:
            async with self.get_session() as session:
                user = await session.get(User, data.id)
                now = datetime.utcnow()

                if user:
                    for field, value in data.model_dump(exclude_unset=True, exclude={"id"}).items():
                        setattr(user, field, value)
                    user.updated_at = now
                    logger.debug("Updated existing user", user_id=user.id)
                else:
                    user = User(
                        id=data.id,
                        email=data.email,
                        first_name=data.first_name,
                        last_name=data.last_name,
                        profile_image_url=data.profile_image_url,
                        created_at=now,
                        updated_at=now,
                        setup_completed=False,
                    )
                    session.add(user)
                    logger.info("Created new user", user_id=data.id)

                await session.flush()
                return UserSchema.model_validate(user)

        except IntegrityError as e:
            logger.warning("User upsert conflict", user_id=data.id, error=str(e))
            raise DuplicateRecordError("User", "email", data.email)
        except SQLAlchemyError as e:
            logger.error("Failed to upsert user", user_id=data.id, error=str(e))
            raise DatabaseException(f"Failed to upsert user: {e}")

    async def complete_user_setup(self, user_id: str) -> UserSchema:
        """Mark the setup flow as finished."""
        try:
            async with self.get_session() as session:
                user = await session.get(User, user_id)
                if not user:
                    raise UserNotFoundError(user_id)
                user.setup_completed = True
                user.updated_at = datetime.utcnow()
                logger.info("User completed setup", user_id=user_id)
                return UserSchema.model_validate(user)

        except SQLAlchemyError as e:
            logger.error("Failed to complete setup", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to complete setup: {e}")

    # ==================== Characters & Philosophies ====================

    async def get_characters(self) -> List[CharacterSchema]:
        """Full character catalogue."""
        try:
            async with self.get_session() as session:
                result = await session.execute(select(Character).order_by(Character.id))
                return [CharacterSchema.model_validate(c) for c in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get characters", error=str(e))
            raise DatabaseException(f"Failed to get characters: {e}")

    async def get_philosophies(self) -> List[PhilosophySchema]:
        """Full philosophy catalogue."""
        try:
            async with self.get_session() as session:
                result = await session.execute(select(Philosophy).order_by(Philosophy.id))
                return [PhilosophySchema.model_validate(p) for p in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get philosophies", error=str(e))
            raise DatabaseException(f"Failed to get philosophies: {e}")

    async def add_user_character(self, user_id: str, character_id: int) -> None:
        try:
            async with self.get_session() as session:
                session.add(UserCharacter(user_id=user_id, character_id=character_id))
        except SQLAlchemyError as e:
            logger.error("Failed to add user character", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to add user character: {e}")

    async def clear_user_characters(self, user_id: str) -> None:
        try:
            async with self.get_session() as session:
                await session.execute(delete(UserCharacter).where(UserCharacter.user_id == user_id))
        except SQLAlchemyError as e:
            logger.error("Failed to clear user characters", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to clear user characters: {e}")

    async def add_user_philosophy(self, user_id: str, philosophy_id: int) -> None:
        try:
            async with self.get_session() as session:
                session.add(UserPhilosophy(user_id=user_id, philosophy_id=philosophy_id))
        except SQLAlchemyError as e:
            logger.error("Failed to add user philosophy", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to add user philosophy: {e}")

    async def clear_user_philosophies(self, user_id: str) -> None:
        try:
            async with self.get_session() as session:
                await session.execute(delete(UserPhilosophy).where(UserPhilosophy.user_id == user_id))
        except SQLAlchemyError as e:
            logger.error("Failed to clear user philosophies", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to clear user philosophies: {e}")

    async def replace_user_characters(self, user_id: str, character_ids: Sequence[int]) -> List[int]:
        """
        Replace a user's character selection in one transaction.

        Args:
            user_id: User ID
            character_ids: New selection; duplicates are collapsed

        Returns:
            The stored selection, in request order

        Raises:
            InvalidInputError: If any id is not in the catalogue
        """
        return await self._replace_selection(
            user_id, character_ids, Character, UserCharacter, "character_id", "characterIds"
        )

    async def replace_user_philosophies(self, user_id: str, philosophy_ids: Sequence[int]) -> List[int]:
        """Replace a user's philosophy selection in one transaction."""
        return await self._replace_selection(
            user_id, philosophy_ids, Philosophy, UserPhilosophy, "philosophy_id", "philosophyIds"
        )

    async def _replace_selection(
        self,
        user_id: str,
        ids: Sequence[int],
        catalogue_model,
        link_model,
        link_field: str,
        input_name: str,
    ) -> List[int]:
        unique_ids = list(dict.fromkeys(ids))
        try:
            async with self.get_session() as session:
                if unique_ids:
                    result = await session.execute(
                        select(catalogue_model.id).where(catalogue_model.id.in_(unique_ids))
                    )
                    known = set(result.scalars().all())
                    unknown = [i for i in unique_ids if i not in known]
                    if unknown:
                        raise InvalidInputError(input_name, f"unknown ids {unknown}")

                await session.execute(delete(link_model).where(link_model.user_id == user_id))
                now = datetime.utcnow()
                for item_id in unique_ids:
                    session.add(link_model(user_id=user_id, selected_at=now, **{link_field: item_id}))

            logger.info(
                "Selection replaced",
                user_id=user_id,
                table=link_model.__tablename__,
                count=len(unique_ids),
            )
            return unique_ids

        except SQLAlchemyError as e:
            logger.error("Failed to replace selection", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to replace selection: {e}")

    async def _get_selected_ids(self, session: AsyncSession, user_id: str) -> Tuple[List[int], List[int]]:
        characters = await session.execute(
            select(UserCharacter.character_id)
            .where(UserCharacter.user_id == user_id)
            .order_by(UserCharacter.id)
        )
        philosophies = await session.execute(
            select(UserPhilosophy.philosophy_id)
            .where(UserPhilosophy.user_id == user_id)
            .order_by(UserPhilosophy.id)
        )
        return list(characters.scalars().all()), list(philosophies.scalars().all())

    async def get_user_preferences(self, user_id: str) -> PreferencesSchema:
        """Catalogue plus the user's selections."""
        try:
            async with self.get_session() as session:
                character_ids, philosophy_ids = await self._get_selected_ids(session, user_id)
                characters = await session.execute(select(Character).order_by(Character.id))
                philosophies = await session.execute(select(Philosophy).order_by(Philosophy.id))
                return PreferencesSchema(
                    characters=[CharacterSchema.model_validate(c) for c in characters.scalars().all()],
                    philosophies=[PhilosophySchema.model_validate(p) for p in philosophies.scalars().all()],
                    selected_character_ids=character_ids,
                    selected_philosophy_ids=philosophy_ids,
                )
        except SQLAlchemyError as e:
            logger.error("Failed to get preferences", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get preferences: {e}")

    # ==================== Quotes ====================

    @retry_on_disconnect
    async def get_daily_quote(self, user_id: str, today: Optional[date] = None) -> Optional[QuoteSchema]:
        """
        Choose the user's quote of the day.

        Selection rules:
        - no selections at all: the first quote in the catalogue
        - characters selected: quotes by those characters
        - only philosophies selected: quotes from those philosophies
        - nothing matches the selection: any quote

        Among the candidates the pick is random but stable for a given user
        and day.

        Args:
            user_id: User ID
            today: Calendar day to pick for, defaults to today in settings.TIMEZONE

        Returns:
            QuoteSchema, or None when the catalogue is empty
        """
        today = today or user_local_today()
        try:
            async with self.get_session() as session:
                character_ids, philosophy_ids = await self._get_selected_ids(session, user_id)

                if not character_ids and not philosophy_ids:
                    result = await session.execute(select(Quote).order_by(Quote.id).limit(1))
                    quote = result.scalar_one_or_none()
                    logger.debug("Daily quote without preferences", user_id=user_id)
                    return QuoteSchema.model_validate(quote) if quote else None

                if character_ids:
                    condition = Quote.character_id.in_(character_ids)
                else:
                    condition = Quote.philosophy_id.in_(philosophy_ids)

                result = await session.execute(select(Quote.id).where(condition))
                candidate_ids = list(result.scalars().all())

                if not candidate_ids:
                    logger.info(
                        "No quotes match preferences, using full catalogue",
                        user_id=user_id,
                        characters=len(character_ids),
                        philosophies=len(philosophy_ids),
                    )
                    result = await session.execute(select(Quote.id))
                    candidate_ids = list(result.scalars().all())

                quote_id = pick_daily_quote_id(candidate_ids, user_id, today)
                if quote_id is None:
                    return None

                quote = await session.get(Quote, quote_id)
                logger.debug(
                    "Daily quote selected",
                    user_id=user_id,
                    quote_id=quote_id,
                    candidates=len(candidate_ids),
                )
                return QuoteSchema.model_validate(quote)

        except SQLAlchemyError as e:
            logger.error("Failed to get daily quote", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get daily quote: {e}")

    async def get_all_quotes(self) -> List[QuoteSchema]:
        """All quotes ordered by author, then text."""
        try:
            async with self.get_session() as session:
                result = await session.execute(select(Quote).order_by(Quote.author, Quote.text))
                return [QuoteSchema.model_validate(q) for q in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get quotes", error=str(e))
            raise DatabaseException(f"Failed to get quotes: {e}")

    async def get_quote(self, quote_id: int) -> Optional[QuoteSchema]:
        try:
            async with self.get_session() as session:
                quote = await session.get(Quote, quote_id)
                return QuoteSchema.model_validate(quote) if quote else None
        except SQLAlchemyError as e:
            logger.error("Failed to get quote", quote_id=quote_id, error=str(e))
            raise DatabaseException(f"Failed to get quote: {e}")

    async def _is_pinned(self, user_id: str, quote_id: int) -> bool:
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(PinnedQuote.id).where(
                        PinnedQuote.user_id == user_id,
                        PinnedQuote.quote_id == quote_id,
                    )
                )
                return result.scalar_one_or_none() is not None
        except SQLAlchemyError as e:
            logger.error("Failed to check pin", user_id=user_id, quote_id=quote_id, error=str(e))
            raise DatabaseException(f"Failed to check pin: {e}")

    async def pin_quote(self, user_id: str, quote_id: int) -> ReminderSchema:
        """
        Pin a quote and schedule a daily reminder for it.

        Args:
            user_id: User ID
            quote_id: Quote to pin

        Returns:
            The reminder created for the pin

        Raises:
            DuplicateRecordError: If the user already pinned this quote
            RecordNotFoundError: If the quote does not exist
        """
        already_pinned = DuplicateRecordError(
            "PinnedQuote", "quote_id", quote_id, message="Quote is already pinned"
        )
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(PinnedQuote.id).where(
                        PinnedQuote.user_id == user_id,
                        PinnedQuote.quote_id == quote_id,
                    )
                )
                if result.scalar_one_or_none() is not None:
                    raise already_pinned

                quote = await session.get(Quote, quote_id)
                if not quote:
                    raise RecordNotFoundError("Quote", quote_id)

                now = datetime.utcnow()
                session.add(PinnedQuote(user_id=user_id, quote_id=quote_id, pinned_at=now))
                reminder = Reminder(
                    user_id=user_id,
                    title=PINNED_REMINDER_TITLE,
                    content=format_pinned_quote_content(quote.text, quote.author),
                    frequency="daily",
                    time=settings.PINNED_REMINDER_TIME,
                    type="quote",
                    reference_id=quote.id,
                    is_active=True,
                    created_at=now,
                )
                session.add(reminder)
                await session.flush()

                logger.info("Quote pinned", user_id=user_id, quote_id=quote_id, reminder_id=reminder.id)
                return ReminderSchema.model_validate(reminder)

        except IntegrityError as e:
            # Only a pin that now exists means we lost a race on the unique constraint
            if await self._is_pinned(user_id, quote_id):
                raise already_pinned
            logger.error("Failed to pin quote", user_id=user_id, quote_id=quote_id, error=str(e))
            raise DatabaseException(f"Failed to pin quote: {e}")
        except SQLAlchemyError as e:
            logger.error("Failed to pin quote", user_id=user_id, quote_id=quote_id, error=str(e))
            raise DatabaseException(f"Failed to pin quote: {e}")

    async def unpin_quote(self, user_id: str, quote_id: int) -> None:
        """Remove a pin together with the quote reminder it created."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(PinnedQuote).where(
                        PinnedQuote.user_id == user_id,
                        PinnedQuote.quote_id == quote_id,
                    )
                )
                pin = result.scalar_one_or_none()
                if not pin:
                    raise RecordNotFoundError("PinnedQuote", quote_id)

                await session.delete(pin)
                await session.execute(
                    delete(Reminder).where(
                        Reminder.user_id == user_id,
                        Reminder.type == "quote",
                        Reminder.reference_id == quote_id,
                    )
                )
                logger.info("Quote unpinned", user_id=user_id, quote_id=quote_id)
        except SQLAlchemyError as e:
            logger.error("Failed to unpin quote", user_id=user_id, quote_id=quote_id, error=str(e))
            raise DatabaseException(f"Failed to unpin quote: {e}")

    async def get_pinned_quotes(self, user_id: str) -> List[QuoteSchema]:
        """Quotes pinned by the user, most recent pin first."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Quote)
                    .join(PinnedQuote, PinnedQuote.quote_id == Quote.id)
                    .where(PinnedQuote.user_id == user_id)
                    .order_by(PinnedQuote.pinned_at.desc(), PinnedQuote.id.desc())
                )
                return [QuoteSchema.model_validate(q) for q in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get pinned quotes", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get pinned quotes: {e}")

    async def get_quote_suggestions(
        self, user_id: str, text: str, limit: Optional[int] = None
    ) -> List[QuoteSchema]:
        """
        Suggest quotes for a journal entry being written.

        The first keyword of the text (see extract_keywords) is matched
        case-insensitively against quote text and category. Text without
        keywords gets the first quotes of the catalogue.

        Args:
            user_id: User ID
            text: Journal text so far
            limit: Maximum suggestions, defaults to settings.QUOTE_SUGGESTION_LIMIT

        Returns:
            List of QuoteSchema
        """
        if limit is None:
            limit = settings.QUOTE_SUGGESTION_LIMIT
        keywords = extract_keywords(text)
        try:
            async with self.get_session() as session:
                query = select(Quote).order_by(Quote.id).limit(limit)
                if keywords:
                    keyword = keywords[0]
                    query = query.where(
                        or_(
                            func.lower(Quote.text).contains(keyword, autoescape=True),
                            func.lower(Quote.category).contains(keyword, autoescape=True),
                        )
                    )
                result = await session.execute(query)
                suggestions = [QuoteSchema.model_validate(q) for q in result.scalars().all()]

            logger.debug(
                "Quote suggestions",
                user_id=user_id,
                keyword=keywords[0] if keywords else None,
                count=len(suggestions),
            )
            return suggestions

        except SQLAlchemyError as e:
            logger.error("Failed to get quote suggestions", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get quote suggestions: {e}")

    # ==================== Journal ====================

    async def get_journal_entries(self, user_id: str) -> List[JournalEntrySchema]:
        """Journal entries for a user, newest first."""
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(JournalEntry)
                    .where(JournalEntry.user_id == user_id)
                    .order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
                )
                return [JournalEntrySchema.model_validate(e) for e in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get journal entries", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get journal entries: {e}")

    async def create_journal_entry(
        self, user_id: str, data: JournalEntryCreateSchema
    ) -> JournalEntrySchema:
        """
        Add a journal entry.

        Raises:
            RecordNotFoundError: If quote_id is given but does not exist
        """
        try:
            async with self.get_session() as session:
                if data.quote_id is not None and not await session.get(Quote, data.quote_id):
                    raise RecordNotFoundError("Quote", data.quote_id)

                entry = JournalEntry(
                    user_id=user_id,
                    text=data.text,
                    quote_id=data.quote_id,
                    created_at=datetime.utcnow(),
                    is_pinned=False,
                )
                session.add(entry)
                await session.flush()
                logger.info("Journal entry created", user_id=user_id, entry_id=entry.id)
                return JournalEntrySchema.model_validate(entry)

        except SQLAlchemyError as e:
            logger.error("Failed to create journal entry", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to create journal entry: {e}")

    async def delete_journal_entry(self, user_id: str, entry_id: int) -> None:
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    delete(JournalEntry).where(
                        JournalEntry.id == entry_id,
                        JournalEntry.user_id == user_id,
                    )
                )
                if not result.rowcount:
                    raise RecordNotFoundError("JournalEntry", entry_id)
        except SQLAlchemyError as e:
            logger.error("Failed to delete journal entry", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to delete journal entry: {e}")

    # ==================== Reminders ====================

    async def get_reminders(
        self, user_id: str, reminder_type: Optional[str] = None
    ) -> List[ReminderSchema]:
        """Reminders for a user, newest first, optionally of one type."""
        try:
            async with self.get_session() as session:
                query = select(Reminder).where(Reminder.user_id == user_id)
                if reminder_type:
                    query = query.where(Reminder.type == reminder_type)
                result = await session.execute(
                    query.order_by(Reminder.created_at.desc(), Reminder.id.desc())
                )
                return [ReminderSchema.model_validate(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Failed to get reminders", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to get reminders: {e}")

    async def create_reminder(self, user_id: str, data: ReminderCreateSchema) -> ReminderSchema:
        try:
            async with self.get_session() as session:
                reminder = Reminder(
                    user_id=user_id,
                    title=data.title,
                    content=data.content,
                    frequency=data.frequency,
                    time=data.time,
                    type=data.type,
                    reference_id=data.reference_id,
                    is_active=True,
                    created_at=datetime.utcnow(),
                )
                session.add(reminder)
                await session.flush()
                logger.info("Reminder created", user_id=user_id, reminder_id=reminder.id, type=data.type)
                return ReminderSchema.model_validate(reminder)
        except SQLAlchemyError as e:
            logger.error("Failed to create reminder", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to create reminder: {e}")

    async def toggle_reminder(self, user_id: str, reminder_id: int) -> ReminderSchema:
        """
        Flip a reminder between active and paused.

        Raises:
            RecordNotFoundError: If the reminder does not exist or belongs to someone else
        """
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    select(Reminder).where(
                        Reminder.id == reminder_id,
                        Reminder.user_id == user_id,
                    )
                )
                reminder = result.scalar_one_or_none()
                if not reminder:
                    raise RecordNotFoundError("Reminder", reminder_id)

                reminder.is_active = not reminder.is_active
                await session.flush()
                logger.info(
                    "Reminder toggled",
                    user_id=user_id,
                    reminder_id=reminder_id,
                    is_active=reminder.is_active,
                )
                return ReminderSchema.model_validate(reminder)
        except SQLAlchemyError as e:
            logger.error("Failed to toggle reminder", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to toggle reminder: {e}")

    async def delete_reminder(self, user_id: str, reminder_id: int) -> None:
        try:
            async with self.get_session() as session:
                result = await session.execute(
                    delete(Reminder).where(
                        Reminder.id == reminder_id,
                        Reminder.user_id == user_id,
                    )
                )
                if not result.rowcount:
                    raise RecordNotFoundError("Reminder", reminder_id)
        except SQLAlchemyError as e:
            logger.error("Failed to delete reminder", user_id=user_id, error=str(e))
            raise DatabaseException(f"Failed to delete reminder: {e}")


# Singleton instance
db = AsyncDatabase()


def get_db() -> AsyncDatabase:
    """FastAPI dependency returning the shared database."""
    return db
