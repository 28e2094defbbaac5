"""
Lavandaria API — Pagination Normalizer Unit Tests
===================================================

What we test:
    ✅ Defaults (limit 50, offset 0, sort id, order DESC)
    ✅ Clamping of out-of-range limit/offset
    ✅ Non-numeric limit/offset fall back to defaults; decimals truncate
    ✅ Non-string sort/order values are checked, not crashed on
    ✅ Unknown sort field and bad order are 400-class errors
    ✅ apply() emits ORDER BY / LIMIT / OFFSET for the mapped column only
"""

import pytest
from sqlalchemy import select

from app.exceptions import InvalidOrderError, InvalidSortFieldError, ValidationError
from app.models import User
from app.pagination import PaginationRequest, normalize, pagination

ALLOWED = ["id", "name"]


class TestDefaults:

    def test_empty_query(self):
        page = normalize({}, ALLOWED)
        assert page == PaginationRequest(limit=50, offset=0, sort="id", order="DESC")

    def test_empty_strings_use_defaults(self):
        page = normalize({"limit": "", "offset": "", "sort": "", "order": ""}, ALLOWED)
        assert (page.limit, page.offset, page.sort, page.order) == (50, 0, "id", "DESC")

    def test_custom_default_sort(self):
        assert normalize({}, ["created_at"], default_sort="created_at").sort == "created_at"


class TestClamping:

    @pytest.mark.parametrize("raw, expected", [
        (0, 1), ("0", 1), ("-3", 1), (9999, 100), ("100", 100), ("25", 25),
    ])
    def test_limit(self, raw, expected):
        assert normalize({"limit": raw}, ALLOWED).limit == expected

    def test_negative_offset(self):
        assert normalize({"offset": -5}, ALLOWED).offset == 0

    def test_non_numeric_values_fall_back(self):
        page = normalize({"limit": "lots", "offset": "x"}, ALLOWED)
        assert page.limit == 50
        assert page.offset == 0

    @pytest.mark.parametrize("raw, expected", [("10.5", 10), ("7.9", 7), (12.0, 12), (" 3.0 ", 3)])
    def test_decimal_limit_truncates(self, raw, expected):
        assert normalize({"limit": raw}, ALLOWED).limit == expected

    def test_decimal_offset_truncates(self):
        assert normalize({"offset": "20.7"}, ALLOWED).offset == 20

    @pytest.mark.parametrize("raw", ["inf", "-inf", "nan", "1e999"])
    def test_non_finite_limit_falls_back(self, raw):
        assert normalize({"limit": raw}, ALLOWED).limit == 50


class TestSortAndOrder:

    def test_unknown_sort_field(self):
        with pytest.raises(InvalidSortFieldError) as exc_info:
            normalize({"sort": "password"}, ALLOWED)

        err = exc_info.value
        assert isinstance(err, ValidationError)
        assert err.status_code == 400
        assert err.code == "INVALID_SORT_FIELD"
        assert "id" in err.message and "name" in err.message

    def test_allowed_sort_field(self):
        assert normalize({"sort": "name"}, ALLOWED).sort == "name"

    @pytest.mark.parametrize("raw", ["asc", "Asc", "ASC"])
    def test_order_is_case_insensitive(self, raw):
        assert normalize({"order": raw}, ALLOWED).order == "ASC"

    def test_invalid_order(self):
        with pytest.raises(InvalidOrderError) as exc_info:
            normalize({"order": "sideways"}, ALLOWED)
        assert exc_info.value.code == "INVALID_ORDER"
        assert exc_info.value.status_code == 400

    def test_non_string_sort_is_rejected(self):
        with pytest.raises(InvalidSortFieldError):
            normalize({"sort": 5}, ALLOWED)

    def test_non_string_order_is_rejected(self):
        with pytest.raises(InvalidOrderError):
            normalize({"order": 1}, ALLOWED)


class TestApply:

    def test_adds_order_limit_offset(self):
        page = PaginationRequest(limit=10, offset=20, sort="full_name", order="ASC")
        query = page.apply(select(User), {"full_name": User.full_name})
        sql = str(query.compile(compile_kwargs={"literal_binds": True}))

        assert "ORDER BY users.full_name ASC" in sql
        assert "LIMIT 10" in sql
        assert "OFFSET 20" in sql


class TestDependencyFactory:

    def test_default_sort_must_be_allowed(self):
        with pytest.raises(ValueError):
            pagination(["id"], default_sort="created_at")
