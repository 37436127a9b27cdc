"""Unit tests for persistence query builder helpers."""

from __future__ import annotations

import pytest

from app.core.errors import ValidationError
from app.persistence.company_repository import COMPANY_FILTERS
from app.persistence.job_repository import JOB_FILTERS
from app.persistence.query_builder import (
    FilterKind,
    FilterRule,
    SqlFragment,
    build_partial_update,
    coerce_number,
    compose_filters,
    escape_like,
    is_flag_set,
)
from app.persistence.user_repository import USER_COLUMNS, USER_FILTERS

# ---------------------------------------------------------------------------
# build_partial_update
# ---------------------------------------------------------------------------


def test_build_partial_update_numbers_placeholders_in_order() -> None:
    fragment = build_partial_update({"title": "updated title", "salary": 42, "equity": 0.99})

    assert fragment.text == '"title"=$1, "salary"=$2, "equity"=$3'
    assert fragment.params == ("updated title", 42, 0.99)


def test_build_partial_update_translates_names() -> None:
    fragment = build_partial_update({"firstName": "Aliya", "age": 32}, {"firstName": "first_name"})

    assert fragment.text == '"first_name"=$1, "age"=$2'
    assert fragment.params == ("Aliya", 32)


def test_build_partial_update_uses_user_columns() -> None:
    fragment = build_partial_update({"lastName": "Lee", "isAdmin": True}, USER_COLUMNS)

    assert fragment.text == '"last_name"=$1, "is_admin"=$2'
    assert fragment.params == ("Lee", True)


def test_build_partial_update_ignores_unused_translations() -> None:
    fragment = build_partial_update({"name": "New"}, {"numEmployees": "num_employees"})

    assert fragment.text == '"name"=$1'


def test_build_partial_update_rejects_empty_data() -> None:
    with pytest.raises(ValidationError) as exc_info:
        build_partial_update({})

    assert exc_info.value.message == "no data"
    assert exc_info.value.status_code == 400


def test_build_partial_update_keeps_null_values() -> None:
    fragment = build_partial_update({"logoUrl": None}, {"logoUrl": "logo_url"})

    assert fragment.text == '"logo_url"=$1'
    assert fragment.params == (None,)


def test_build_partial_update_start_offset() -> None:
    fragment = build_partial_update({"a": 1, "b": 2}, start=3)

    assert fragment.text == '"a"=$3, "b"=$4'
    assert fragment.next_placeholder == 5


def test_build_partial_update_next_placeholder_for_where_key() -> None:
    fragment = build_partial_update({"name": "x", "description": "y"})

    assert fragment.next_placeholder == 3


# ---------------------------------------------------------------------------
# compose_filters
# ---------------------------------------------------------------------------


def test_compose_filters_all_job_filters() -> None:
    fragment = compose_filters({"title": "j2", "minSalary": 20, "hasEquity": True}, JOB_FILTERS)

    assert fragment.text == "LOWER(title) LIKE $1 AND salary >= $2 AND equity > $3"
    assert fragment.params == ("%j2%", "20", 0)


def test_compose_filters_is_independent_of_mapping_order() -> None:
    fragment = compose_filters({"hasEquity": True, "minSalary": 20, "title": "j2"}, JOB_FILTERS)

    assert fragment.text == "LOWER(title) LIKE $1 AND salary >= $2 AND equity > $3"
    assert fragment.params == ("%j2%", "20", 0)


def test_compose_filters_renumbers_after_skipped_rule() -> None:
    fragment = compose_filters({"minSalary": "20", "hasEquity": "true"}, JOB_FILTERS)

    assert fragment.text == "salary >= $1 AND equity > $2"
    assert fragment.params == ("20", 0)


def test_compose_filters_has_equity_false_is_skipped() -> None:
    fragment = compose_filters({"hasEquity": False}, JOB_FILTERS)

    assert fragment.text == ""
    assert fragment.params == ()
    assert not fragment
    assert fragment.where_clause() == ""


def test_compose_filters_has_equity_false_string_is_skipped() -> None:
    fragment = compose_filters({"hasEquity": "false"}, JOB_FILTERS)

    assert not fragment


def test_compose_filters_zero_is_applied() -> None:
    fragment = compose_filters({"minSalary": 0}, JOB_FILTERS)

    assert fragment.text == "salary >= $1"
    assert fragment.params == ("0",)


def test_compose_filters_non_numeric_is_skipped() -> None:
    fragment = compose_filters({"title": "eng", "minSalary": "lots"}, JOB_FILTERS)

    assert fragment.text == "LOWER(title) LIKE $1"
    assert fragment.params == ("%eng%",)


def test_compose_filters_blank_title_is_skipped() -> None:
    fragment = compose_filters({"title": "   "}, JOB_FILTERS)

    assert not fragment


def test_compose_filters_lowercases_search_text() -> None:
    fragment = compose_filters({"title": "Engineer"}, JOB_FILTERS)

    assert fragment.params == ("%engineer%",)


def test_compose_filters_escapes_like_metacharacters() -> None:
    fragment = compose_filters({"title": "100%_off"}, JOB_FILTERS)

    assert fragment.params == ("%100\\%\\_off%",)


def test_compose_filters_ignores_unknown_keys() -> None:
    fragment = compose_filters({"companyHandle": "c1", "bogus": 1}, JOB_FILTERS)

    assert not fragment


def test_compose_filters_none_filters() -> None:
    fragment = compose_filters(None, JOB_FILTERS)

    assert fragment == SqlFragment()


def test_compose_filters_company_range() -> None:
    fragment = compose_filters(
        {"name": "net", "minEmployees": "10", "maxEmployees": 500}, COMPANY_FILTERS
    )

    assert fragment.text == "LOWER(name) LIKE $1 AND num_employees >= $2 AND num_employees <= $3"
    assert fragment.params == ("%net%", "10", "500")
    assert fragment.where_clause().startswith("WHERE LOWER(name)")


def test_compose_filters_user_is_admin() -> None:
    fragment = compose_filters({"email": "Example.COM", "isAdmin": "yes"}, USER_FILTERS)

    assert fragment.text == "LOWER(email) LIKE $1 AND is_admin = $2"
    assert fragment.params == ("%example.com%", True)


def test_compose_filters_start_offset() -> None:
    fragment = compose_filters({"minSalary": 5, "hasEquity": True}, JOB_FILTERS, start=4)

    assert fragment.text == "salary >= $4 AND equity > $5"
    assert fragment.next_placeholder == 6


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("20.5", "20"),
        ("1e3", "1000"),
        ("2E1", "20"),
        (1000.9, "1000"),
        ("-3.7", "-3"),
    ],
)
def test_compose_filters_truncates_fractional_threshold(raw, expected) -> None:
    fragment = compose_filters({"minSalary": raw}, JOB_FILTERS)

    assert fragment.text == "salary >= $1"
    assert fragment.params == (expected,)


def test_compose_filters_company_bounds_are_integers() -> None:
    fragment = compose_filters({"minEmployees": "10.7", "maxEmployees": 2.5e2}, COMPANY_FILTERS)

    assert fragment.text == "num_employees >= $1 AND num_employees <= $2"
    assert fragment.params == ("10", "250")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (20, 20),
        ("20", 20),
        (" 7 ", 7),
        ("2.5", 2.5),
        (0, 0),
        (True, None),
        (None, None),
        ("", None),
        ("abc", None),
        ("nan", None),
        (float("inf"), None),
        ([1], None),
    ],
)
def test_coerce_number(raw, expected) -> None:
    assert coerce_number(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (True, True),
        (False, False),
        (None, False),
        ("true", True),
        ("TRUE", True),
        ("1", True),
        ("on", True),
        ("false", False),
        ("0", False),
        ("", False),
    ],
)
def test_is_flag_set(raw, expected) -> None:
    assert is_flag_set(raw) is expected


def test_escape_like_backslash_first() -> None:
    assert escape_like("a\\b%") == "a\\\\b\\%"


def test_presence_rule_requires_operator() -> None:
    with pytest.raises(ValueError):
        FilterRule("hasEquity", FilterKind.PRESENCE_BOOL, "equity")


def test_sql_fragment_is_immutable() -> None:
    fragment = SqlFragment(text="a = $1", params=(1,))

    with pytest.raises(AttributeError):
        fragment.text = "b = $1"  # type: ignore[misc]
