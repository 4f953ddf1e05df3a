"""
Tests for the exception hierarchy and its HTTP status mapping.
"""

import pytest

from core import (
    DatabaseConnectionError,
    DatabaseException,
    DuplicateRecordError,
    IdentityProviderError,
    InspireException,
    InvalidInputError,
    RecordNotFoundError,
    UserNotFoundError,
)


@pytest.mark.parametrize(
    "exc, status",
    [
        (RecordNotFoundError("Quote", 1), 404),
        (UserNotFoundError("u1"), 404),
        (DuplicateRecordError("PinnedQuote", "quote_id", 1), 409),
        (InvalidInputError("characterIds", "unknown ids [99]"), 400),
        (DatabaseConnectionError("gone"), 503),
        (IdentityProviderError("token_exchange", 500), 502),
        (DatabaseException("boom"), 500),
    ],
)
def test_status_codes(exc, status):
    assert isinstance(exc, InspireException)
    assert exc.status_code == status


def test_record_not_found_message():
    assert RecordNotFoundError("Reminder", 3).message == "Reminder not found"


def test_duplicate_custom_message():
    exc = DuplicateRecordError("PinnedQuote", "quote_id", 1, message="Quote is already pinned")
    assert exc.message == "Quote is already pinned"
    assert exc.context["value"] == 1


def test_to_dict():
    data = InvalidInputError("time", "bad format").to_dict()
    assert data["error"] == "INVALID_INPUT"
    assert data["context"] == {"field": "time", "reason": "bad format"}
