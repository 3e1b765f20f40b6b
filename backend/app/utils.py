"""Shared utility functions for the league tracker backend."""

import re
import unicodedata
from datetime import date, datetime
from typing import Optional


def normalize_name(name: str) -> str:
    """
    Normalize a player name for matching across different data sources.

    - Removes accents (é → e, ñ → n)
    - Converts to lowercase
    - Treats hyphens as spaces ("Crow-Armstrong" == "Crow Armstrong")
    - Drops every other non-letter character ("J.D." → "jd")
    - Collapses whitespace

    Args:
        name: The player name to normalize

    Returns:
        Normalized name string for comparison
    """
    if not name:
        return ""
    # Remove accents
    normalized = unicodedata.normalize('NFD', name)
    without_accents = ''.join(c for c in normalized if unicodedata.category(c) != 'Mn')
    result = without_accents.lower().replace('-', ' ')
    result = re.sub(r'[^a-z\s]', '', result)
    return re.sub(r'\s+', ' ', result).strip()


def sanitize_error_message(error: Exception) -> str:
    """
    Sanitize an error message for safe display to clients.

    Removes sensitive information like file paths, credentials, etc.

    Args:
        error: The exception to sanitize

    Returns:
        A safe error message string
    """
    error_str = str(error)
    # Remove file paths
    error_str = re.sub(r'/[^\s]+\.py', '[file]', error_str)
    # Remove line numbers
    error_str = re.sub(r'line \d+', 'line [num]', error_str)
    # Remove database connection strings
    error_str = re.sub(r'sqlite(\+aiosqlite)?:///[^\s]+', '[database]', error_str)
    # Remove auth cookies that may appear in echoed URLs
    error_str = re.sub(r'(espn_s2|SWID)=[^\s&;]+', r'\1=[redacted]', error_str)
    # Truncate long messages
    if len(error_str) > 200:
        error_str = error_str[:200] + '...'
    return error_str


def validate_search_query(query: str, max_length: int = 100) -> str:
    """
    Validate a free-text player name lookup.

    Raises:
        ValueError: If query is empty or too long
    """
    if not query or not query.strip():
        raise ValueError("Search query cannot be empty")

    query = query.strip()

    if len(query) > max_length:
        raise ValueError(f"Search query too long (max {max_length} characters)")

    return query


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a YYYY-MM-DD string (a full ISO timestamp is also accepted).

    Returns None for empty input; raises ValueError for anything unparseable.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > 10:
        return datetime.fromisoformat(value).date()
    return date.fromisoformat(value)
