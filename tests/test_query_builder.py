"""
Tests for the partial-update query builder.
"""

import pytest

from storefront.catalog.query import (
    RawSQL,
    build_update,
    dollar_placeholder,
    qmark_placeholder,
)


class TestBuildUpdate:

    def test_only_present_fields_are_assigned(self):
        sql, params = build_update(
            "plans", {"name": "RDP Pro", "price": 9500}, {"id": "rdp-pro"}, dollar_placeholder
        )
        assert sql == (
            "UPDATE plans SET name = $1, price_pkr = $2, updated_at = CURRENT_TIMESTAMP "
            "WHERE id = $3"
        )
        assert params == ["RDP Pro", 9500, "rdp-pro"]

    def test_qmark_placeholders(self):
        sql, params = build_update("plans", {"label": "popular"}, {"id": "p1"}, qmark_placeholder)
        assert sql == "UPDATE plans SET label = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?"
        assert params == ["popular", "p1"]

    def test_explicit_none_is_written_as_null(self):
        sql, params = build_update("plans", {"description": None}, {"id": "p1"}, dollar_placeholder)
        assert "description = $1" in sql
        assert params == [None, "p1"]

    def test_empty_changes_still_touch_updated_at(self):
        sql, params = build_update("plans", {}, {"id": "p1"}, dollar_placeholder)
        assert sql == "UPDATE plans SET updated_at = CURRENT_TIMESTAMP WHERE id = $1"
        assert params == ["p1"]

    def test_raw_sql_is_not_parameterized(self):
        sql, params = build_update(
            "plans", {"os": RawSQL("NULL")}, {"id": "p1"}, dollar_placeholder
        )
        assert "os = NULL" in sql
        assert params == ["p1"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown field"):
            build_update("plans", {"name; DROP TABLE plans": "x"}, {"id": "p1"}, dollar_placeholder)

    def test_missing_where_rejected(self):
        with pytest.raises(ValueError, match="WHERE"):
            build_update("plans", {"name": "x"}, {}, dollar_placeholder)
