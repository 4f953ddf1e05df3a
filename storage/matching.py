"""
Pure helpers behind quote selection and suggestions.

Kept free of database access so the rules can be tested directly.
"""

import random
from datetime import date
from typing import List, Optional, Sequence

PINNED_REMINDER_TITLE = "Daily Inspiration"
MIN_KEYWORD_LENGTH = 4


def extract_keywords(text: str) -> List[str]:
    """
    Split journal text into suggestion keywords.

    Words are lowercased and split on whitespace; only words longer than three
    characters count. Order of appearance is preserved.
    """
    return [word for word in text.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


def pick_daily_quote_id(candidate_ids: Sequence[int], user_id: str, today: date) -> Optional[int]:
    """
    Pick one quote id for a user and day.

    The choice is random but seeded by (user, day), so repeated calls during
    the same day return the same quote while different users and days vary.
    """
    if not candidate_ids:
        return None
    rng = random.Random(f"{user_id}:{today.isoformat()}")
    return rng.choice(sorted(candidate_ids))


def format_pinned_quote_content(text: str, author: str) -> str:
    """Reminder body for a pinned quote."""
    return f"\"{text}\" — {author}"
