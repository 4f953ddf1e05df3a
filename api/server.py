import os
from contextlib import asynccontextmanager, contextmanager
from typing import List, Optional, Type, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import require_user, router as auth_router
from config.settings import settings
from core import configure_logging, get_logger, InspireException
from schemas import (
    CharacterSchema,
    CharacterSelectionSchema,
    JournalEntryCreateSchema,
    JournalEntrySchema,
    PhilosophySchema,
    PhilosophySelectionSchema,
    PreferencesSchema,
    QuoteSchema,
    ReminderCreateSchema,
    ReminderSchema,
    UserSchema,
)
from storage.database import AsyncDatabase, db, get_db
from storage.seed import seed_database

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for the FastAPI app.
    Prepares the schema and catalogue before serving requests.
    """
    logger.info("Starting Wisdom Compass API", environment=settings.ENVIRONMENT)
    await db.create_tables()
    await seed_database(db)
    await db.purge_expired_auth_sessions()

    yield

    logger.info("Shutting down...")
    await db.close()


app = FastAPI(title="Wisdom Compass API", lifespan=lifespan)

if settings.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

app.include_router(auth_router)


# ── Helpers ─────────────────────────────────────────────────────────

class SuccessResponse(BaseModel):
    success: bool = True


@contextmanager
def failure_message(message: str, **context):
    """
    Turn unexpected errors inside a route into a 500 with ``message``.

    Client errors (HTTPException and InspireExceptions below 500) pass
    through untouched.
    """
    try:
        yield
    except HTTPException:
        raise
    except InspireException as e:
        if e.status_code < 500:
            raise
        logger.error(message, error=e.message, **context)
        raise HTTPException(status_code=e.status_code, detail=message)
    except Exception as e:
        logger.error(message, error=str(e), exc_info=True, **context)
        raise HTTPException(status_code=500, detail=message)


async def parse_body(request: Request, schema: Type[SchemaT], message: str) -> SchemaT:
    """Validate the JSON body against ``schema``; any failure is a 400 with ``message``."""
    try:
        payload = await request.json()
        return schema.model_validate(payload)
    except ValueError:  # JSON decode errors and pydantic ValidationError
        raise HTTPException(status_code=400, detail=message)


def parse_id(raw: str, message: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=message)
    if value < 1:
        raise HTTPException(status_code=400, detail=message)
    return value


# ── Health & Auth ───────────────────────────────────────────────────

@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/auth/user", response_model=UserSchema)
async def get_current_user(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to fetch user", user_id=user_id):
        user = await database.get_user(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Catalogue & Setup ───────────────────────────────────────────────

@app.get("/api/characters", response_model=List[CharacterSchema])
async def get_characters(database: AsyncDatabase = Depends(get_db)):
    with failure_message("Failed to fetch characters"):
        return await database.get_characters()


@app.get("/api/philosophies", response_model=List[PhilosophySchema])
async def get_philosophies(database: AsyncDatabase = Depends(get_db)):
    with failure_message("Failed to fetch philosophies"):
        return await database.get_philosophies()


async def _save_characters(request: Request, user_id: str, database: AsyncDatabase) -> SuccessResponse:
    selection = await parse_body(request, CharacterSelectionSchema, "Character IDs must be an array")
    with failure_message("Failed to save character selection", user_id=user_id):
        await database.replace_user_characters(user_id, selection.character_ids)
    return SuccessResponse()


async def _save_philosophies(request: Request, user_id: str, database: AsyncDatabase) -> SuccessResponse:
    selection = await parse_body(request, PhilosophySelectionSchema, "Philosophy IDs must be an array")
    with failure_message("Failed to save philosophy selection", user_id=user_id):
        await database.replace_user_philosophies(user_id, selection.philosophy_ids)
    return SuccessResponse()


@app.post("/api/setup/characters", response_model=SuccessResponse)
async def setup_characters(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """Setup flow step 1: the characters the user follows."""
    return await _save_characters(request, user_id, database)


@app.post("/api/setup/philosophies", response_model=SuccessResponse)
async def setup_philosophies(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """Setup flow step 2: the philosophies the user follows."""
    return await _save_philosophies(request, user_id, database)


@app.post("/api/setup/complete", response_model=SuccessResponse)
async def complete_setup(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to complete setup", user_id=user_id):
        await database.complete_user_setup(user_id)
    return SuccessResponse()


# ── Settings ────────────────────────────────────────────────────────

@app.get("/api/settings/preferences", response_model=PreferencesSchema)
async def get_preferences(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to fetch preferences", user_id=user_id):
        return await database.get_user_preferences(user_id)


@app.put("/api/settings/characters", response_model=SuccessResponse)
async def update_characters(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    return await _save_characters(request, user_id, database)


@app.put("/api/settings/philosophies", response_model=SuccessResponse)
async def update_philosophies(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    return await _save_philosophies(request, user_id, database)


# ── Quotes ──────────────────────────────────────────────────────────

@app.get("/api/quotes/daily", response_model=Optional[QuoteSchema])
async def get_daily_quote(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """Quote of the day, chosen from the user's characters or philosophies."""
    with failure_message("Failed to fetch daily quote", user_id=user_id):
        return await database.get_daily_quote(user_id)


@app.get("/api/quotes/all", response_model=List[QuoteSchema])
async def get_all_quotes(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to fetch quotes", user_id=user_id):
        return await database.get_all_quotes()


@app.get("/api/quotes/pinned", response_model=List[QuoteSchema])
async def get_pinned_quotes(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to fetch pinned quotes", user_id=user_id):
        return await database.get_pinned_quotes(user_id)


@app.get("/api/quotes/suggestions/{text}", response_model=List[QuoteSchema])
async def get_quote_suggestions(
    text: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """Quotes related to the journal text being written."""
    with failure_message("Failed to fetch quote suggestions", user_id=user_id):
        return await database.get_quote_suggestions(user_id, text)


@app.post("/api/quotes/{quote_id}/pin", response_model=SuccessResponse)
async def pin_quote(
    quote_id: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """Pin a quote; a daily reminder for it is created as well."""
    parsed_id = parse_id(quote_id, "Invalid quote ID")
    with failure_message("Failed to pin quote", user_id=user_id, quote_id=parsed_id):
        await database.pin_quote(user_id, parsed_id)
    return SuccessResponse()


@app.delete("/api/quotes/{quote_id}/pin", response_model=SuccessResponse)
async def unpin_quote(
    quote_id: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    parsed_id = parse_id(quote_id, "Invalid quote ID")
    with failure_message("Failed to unpin quote", user_id=user_id, quote_id=parsed_id):
        await database.unpin_quote(user_id, parsed_id)
    return SuccessResponse()


# ── Journal ─────────────────────────────────────────────────────────

@app.get("/api/journal", response_model=List[JournalEntrySchema])
async def get_journal_entries(
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    with failure_message("Failed to fetch journal entries", user_id=user_id):
        return await database.get_journal_entries(user_id)


@app.post("/api/journal", response_model=JournalEntrySchema)
async def create_journal_entry(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    data = await parse_body(request, JournalEntryCreateSchema, "Invalid journal entry data")
    with failure_message("Failed to create journal entry", user_id=user_id):
        return await database.create_journal_entry(user_id, data)


@app.delete("/api/journal/{entry_id}", response_model=SuccessResponse)
async def delete_journal_entry(
    entry_id: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    parsed_id = parse_id(entry_id, "Invalid journal entry ID")
    with failure_message("Failed to delete journal entry", user_id=user_id):
        await database.delete_journal_entry(user_id, parsed_id)
    return SuccessResponse()


# ── Reminders & Goals ───────────────────────────────────────────────

@app.get("/api/reminders", response_model=List[ReminderSchema])
async def get_reminders(
    type: Optional[str] = None,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    """All reminders, or only one type (the goals page asks for type=goal)."""
    with failure_message("Failed to fetch reminders", user_id=user_id):
        return await database.get_reminders(user_id, reminder_type=type)


@app.post("/api/reminders", response_model=ReminderSchema)
async def create_reminder(
    request: Request,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    data = await parse_body(request, ReminderCreateSchema, "Invalid reminder data")
    with failure_message("Failed to create reminder", user_id=user_id):
        return await database.create_reminder(user_id, data)


@app.patch("/api/reminders/{reminder_id}/toggle", response_model=ReminderSchema)
async def toggle_reminder(
    reminder_id: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    parsed_id = parse_id(reminder_id, "Invalid reminder ID")
    with failure_message("Failed to toggle reminder", user_id=user_id, reminder_id=parsed_id):
        return await database.toggle_reminder(user_id, parsed_id)


@app.delete("/api/reminders/{reminder_id}", response_model=SuccessResponse)
async def delete_reminder(
    reminder_id: str,
    user_id: str = Depends(require_user),
    database: AsyncDatabase = Depends(get_db),
):
    parsed_id = parse_id(reminder_id, "Invalid reminder ID")
    with failure_message("Failed to delete reminder", user_id=user_id, reminder_id=parsed_id):
        await database.delete_reminder(user_id, parsed_id)
    return SuccessResponse()


# ==================== Error Handlers ====================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
    )


@app.exception_handler(InspireException)
async def inspire_exception_handler(request, exc):
    """Map domain errors to their HTTP status"""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, **exc.to_dict())
        return JSONResponse(status_code=exc.status_code, content={"message": "Internal server error"})
    logger.info("Request rejected", path=request.url.path, error=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions"""
    logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error"},
    )


# Mount Static Files (Frontend)
class SPAStaticFiles(StaticFiles):
    """Static files that fall back to index.html so client-side routes resolve."""

    async def get_response(self, path, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404 or path.startswith("api"):
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == 404 and not path.startswith("api"):
            return await super().get_response("index.html", scope)
        return response


base_dir = os.path.dirname(os.path.dirname(__file__))
static_dir = settings.STATIC_DIR
if not os.path.isabs(static_dir):
    static_dir = os.path.join(base_dir, static_dir)

if os.path.exists(os.path.join(static_dir, "index.html")):
    logger.info("Serving frontend", static_dir=static_dir)
    app.mount("/", SPAStaticFiles(directory=static_dir, html=True), name="static")
else:
    logger.warning("No built frontend found, serving API only", static_dir=static_dir)
