"""
Unit tests for pagination normalisation and query parameter parsing.
"""

import pytest

from lyric.core.errors import AppError, ValidationErrors
from lyric.services.pagination import Page, normalise_page, normalise_per_page, offset
from lyric.services.params import (
    parse_int,
    parse_int_or_default,
    parse_path_id,
    parse_positive_int,
    parse_search,
)


class TestNormalisation:
    @pytest.mark.parametrize("page,expected", [(None, 1), (0, 1), (-4, 1), (1, 1), (9, 9)])
    def test_page(self, page, expected):
        assert normalise_page(page) == expected

    @pytest.mark.parametrize("per_page,expected", [(None, 10), (0, 10), (-1, 10), (5, 5), (100, 100), (101, 100)])
    def test_per_page(self, per_page, expected):
        assert normalise_per_page(per_page) == expected

    def test_offset(self):
        assert offset(1, 10) == 0
        assert offset(3, 20) == 40
        assert offset(0, 10) == 0

    def test_empty_page_envelope(self):
        page = Page.empty(2, 500)
        assert page.to_dict() == {"data": [], "page": 2, "per_page": 100, "total": 0}


class TestParams:
    def test_errors_are_collected(self):
        errors = ValidationErrors()
        assert parse_positive_int("abc", "page", errors) is None
        assert parse_positive_int("0", "per_page", errors) is None
        assert parse_positive_int("3", "album_id", errors) == 3
        with pytest.raises(AppError) as exc_info:
            errors.raise_if_any()
        assert exc_info.value.status_code == 422
        assert exc_info.value.details == {
            "page": "must be a positive integer",
            "per_page": "must be a positive integer",
        }

    def test_blank_means_absent(self):
        errors = ValidationErrors()
        assert parse_positive_int("  ", "page", errors) is None
        assert parse_int(None, "release_year", errors) is None
        assert not errors.has_errors

    def test_parse_int_accepts_sign(self):
        errors = ValidationErrors()
        assert parse_int("-5", "release_year", errors) == -5
        assert parse_int("1.5", "release_year", errors) is None
        assert errors.has_errors

    def test_lenient_defaults(self):
        assert parse_int_or_default("x", 2) == 2
        assert parse_int_or_default("-3", 2) == -3
        assert parse_int_or_default(None, 0) == 0

    def test_path_id(self):
        assert parse_path_id("12") == 12
        with pytest.raises(AppError) as exc_info:
            parse_path_id("0", "song_id")
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "song_id must be a positive integer"

    def test_search_trimmed(self):
        assert parse_search("  grace ") == "grace"
        assert parse_search(None) == ""
