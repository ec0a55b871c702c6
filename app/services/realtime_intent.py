# /aria-backend/app/services/realtime_intent.py

"""
Keyword heuristic deciding whether a user message probably needs fresh,
post-training information (and therefore a web search).
"""

import re
from datetime import date

FRESHNESS_KEYWORDS = (
    "current", "latest", "recent", "today", "now",
    "news", "weather", "price", "stock", "update",
)
FIRST_TRACKED_YEAR = 2024

_RECENT_YEARS = tuple(str(year) for year in range(FIRST_TRACKED_YEAR, date.today().year + 1))
_REAL_TIME_PATTERN = re.compile(
    r"\b(" + "|".join(FRESHNESS_KEYWORDS + _RECENT_YEARS) + r")\b",
    re.IGNORECASE,
)


def needs_real_time_info(message: str) -> bool:
    """True if the text contains any freshness keyword or recent year as a whole word."""
    if not message:
        return False
    return _REAL_TIME_PATTERN.search(message) is not None
