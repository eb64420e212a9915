"""Unit tests for response envelope mapping helpers."""

from __future__ import annotations

import pytest

from aurelane.services.api_mapping import (
    DataMapper,
    extract_items,
    extract_message,
    extract_order_id,
    is_explicit_failure,
    is_explicit_success,
    unwrap_envelope,
)


class TestDataMapper:
    def test_safe_get_uses_first_present_key(self):
        data = {"gem": None, "data": {"_id": "g1"}}

        assert DataMapper.safe_get(data, "gem", "data") == {"_id": "g1"}
        assert DataMapper.safe_get(data, "missing", default="fallback") == "fallback"
        assert DataMapper.safe_get(None, "gem") is None

    def test_safe_get_nested_paths(self):
        data = {"order": {"_id": "o1"}}

        assert DataMapper.safe_get_nested(data, "orderId", ["order", "_id"]) == "o1"
        assert DataMapper.safe_get_nested(data, ["order", "id"]) is None
        assert DataMapper.safe_get_nested({}, "orderId") is None


class TestExtractItems:
    def test_nested_under_data(self):
        assert extract_items({"data": {"gems": [1, 2]}}, "gems") == [1, 2]

    def test_top_level_key(self):
        assert extract_items({"success": True, "reviews": [1]}, "reviews") == [1]

    def test_data_is_list(self):
        assert extract_items({"data": ["ruby"]}, "categories") == ["ruby"]

    def test_bare_list(self):
        assert extract_items(["ruby"], "gems") == ["ruby"]

    @pytest.mark.parametrize("payload", [None, "oops", {"data": {"gems": "x"}}, {}])
    def test_anything_else_is_empty(self, payload):
        assert extract_items(payload, "gems") == []


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"orderId": "ORD1"}, "ORD1"),
        ({"data": {"orderId": "ORD2"}}, "ORD2"),
        ({"order": {"_id": "o3"}}, "o3"),
        ({"data": {"order": {"id": 4}}}, "4"),
        ({"success": True}, None),
        (None, None),
    ],
)
def test_extract_order_id(payload, expected):
    assert extract_order_id(payload) == expected


class TestExtractMessage:
    def test_top_level(self):
        assert extract_message({"message": "Out of stock"}) == "Out of stock"

    def test_gateway_error_description(self):
        assert extract_message({"error": {"description": "Bad key"}}) == "Bad key"

    def test_nested_data_message(self):
        assert extract_message({"data": {"message": "Queued"}}) == "Queued"

    def test_default(self):
        assert extract_message({"message": ""}, "fallback") == "fallback"
        assert extract_message(None) is None


def test_unwrap_envelope():
    assert unwrap_envelope({"data": {"a": 1}}) == {"a": 1}
    assert unwrap_envelope({"data": [1]}) == {"data": [1]}
    assert unwrap_envelope(None) is None


def test_explicit_flags_require_booleans():
    assert is_explicit_success({"success": True})
    assert not is_explicit_success({"success": "true"})
    assert is_explicit_failure({"success": False})
    assert not is_explicit_failure({})
    assert not is_explicit_failure(None)
