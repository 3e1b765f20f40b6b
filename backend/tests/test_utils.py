from datetime import date

import pytest
from app.utils import (
    normalize_name,
    parse_iso_date,
    sanitize_error_message,
    validate_search_query,
)


# ---------------------------------------------------------------------------
# normalize_name
# ---------------------------------------------------------------------------

class TestNormalizeName:
    def test_basic_name(self):
        assert normalize_name("Aaron Judge") == "aaron judge"

    def test_removes_accents(self):
        assert normalize_name("Ronald Acuña") == "ronald acuna"

    def test_keeps_suffix_letters(self):
        assert normalize_name("Ronald Acuña Jr.") == "ronald acuna jr"

    def test_drops_initial_periods(self):
        assert normalize_name("J.D. Martinez") == "jd martinez"

    def test_hyphen_becomes_space(self):
        assert normalize_name("Pete Crow-Armstrong") == "pete crow armstrong"

    def test_apostrophe_dropped(self):
        assert normalize_name("Tyler O'Neill") == "tyler oneill"

    def test_empty_string(self):
        assert normalize_name("") == ""

    def test_none_input(self):
        assert normalize_name(None) == ""

    def test_strips_whitespace(self):
        assert normalize_name("  Aaron   Judge  ") == "aaron judge"


# ---------------------------------------------------------------------------
# validate_search_query
# ---------------------------------------------------------------------------

class TestValidateSearchQuery:
    def test_valid_query(self):
        assert validate_search_query("Aaron Judge") == "Aaron Judge"

    def test_strips_whitespace(self):
        assert validate_search_query("  acuna  ") == "acuna"

    def test_accepts_punctuation_in_names(self):
        assert validate_search_query("Tyler O'Neill") == "Tyler O'Neill"

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            validate_search_query("")

    def test_whitespace_only_raises(self):
        with pytest.raises(ValueError):
            validate_search_query("   ")

    def test_too_long_raises(self):
        with pytest.raises(ValueError):
            validate_search_query("a" * 101)


# ---------------------------------------------------------------------------
# sanitize_error_message
# ---------------------------------------------------------------------------

class TestSanitizeErrorMessage:
    def test_redacts_espn_cookies(self):
        message = sanitize_error_message(Exception("GET https://x.test/?espn_s2=AEBsecret&SWID={ABC}"))
        assert "AEBsecret" not in message
        assert "{ABC}" not in message
        assert "espn_s2=[redacted]" in message

    def test_redacts_database_url(self):
        message = sanitize_error_message(Exception("cannot open sqlite+aiosqlite:///./league_tracker.db"))
        assert "league_tracker" not in message

    def test_truncates_long_messages(self):
        assert len(sanitize_error_message(Exception("x" * 500))) == 203


# ---------------------------------------------------------------------------
# parse_iso_date
# ---------------------------------------------------------------------------

class TestParseIsoDate:
    def test_plain_date(self):
        assert parse_iso_date("2025-04-02") == date(2025, 4, 2)

    def test_timestamp(self):
        assert parse_iso_date("2025-04-02T19:05:00") == date(2025, 4, 2)

    def test_empty_is_none(self):
        assert parse_iso_date(None) is None
        assert parse_iso_date("  ") is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_iso_date("yesterday")
