"""Suggested grade and follow-up helpers derived from an analysis."""
from urllib.parse import quote_plus

_GRADE_BANDS: tuple[tuple[int, str], ...] = (
    (85, "A"),
    (70, "B"),
    (55, "C"),
    (40, "D"),
)
_SEARCH_PREFIX_CHARS = 200


def suggest_grade(ai_percentage: int) -> str:
    """Map the originality (100 - AI likelihood) onto a letter grade."""
    originality = 100 - max(0, min(100, ai_percentage))
    for floor, letter in _GRADE_BANDS:
        if originality >= floor:
            return letter
    return "F"


def build_search_url(text: str) -> str:
    """Web search for the opening of the text, to spot copied passages."""
    query = quote_plus(text[:_SEARCH_PREFIX_CHARS])
    return f"https://www.google.com/search?q={query}"
