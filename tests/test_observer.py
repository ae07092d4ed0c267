"""Tests for parsing observed Tekmetric traffic."""

from helper_engine.src.models import AuthSession, OrderEventKind
from helper_engine.src.observer import capture_session, parse_order_event


class TestCaptureSession:
    def test_captures_token_shop_and_origin(self):
        session = capture_session(
            None,
            "https://shop.tekmetric.com/api/token/shop/469",
            {"X-Auth-Token": "abc"},
        )
        assert session.token == "abc"
        assert session.shop_id == "469"
        assert session.base_url == "https://shop.tekmetric.com"
        assert session.is_complete

    def test_header_name_is_case_insensitive(self):
        session = capture_session(None, "https://shop.tekmetric.com/api/shop/1", [("x-AUTH-token", "t")])
        assert session.token == "t"

    def test_later_capture_overwrites(self):
        first = capture_session(None, "https://shop.tekmetric.com/api/shop/1", {"x-auth-token": "old"})
        second = capture_session(first, "https://sandbox.tekmetric.com/api/shop/2", {"x-auth-token": "new"})
        assert (second.token, second.shop_id, second.base_url) == ("new", "2", "https://sandbox.tekmetric.com")

    def test_missing_parts_keep_previous_values(self):
        first = capture_session(None, "https://shop.tekmetric.com/api/shop/1", {"x-auth-token": "abc"})
        second = capture_session(first, "https://shop.tekmetric.com/api/customers", {})
        assert second.token == "abc"
        assert second.shop_id == "1"

    def test_token_without_shop_is_incomplete(self):
        session = capture_session(AuthSession(), "https://shop.tekmetric.com/api/customers", {"x-auth-token": "abc"})
        assert not session.is_complete


class TestParseOrderEvent:
    def test_existing_order_from_page_url(self):
        event = parse_order_event("https://shop.tekmetric.com/shop/469/repair-order/1001", "1")
        assert event.order_id == "1001"
        assert event.shop_id == "469"
        assert event.kind == OrderEventKind.EXISTING_ORDER_VIEWED

    def test_existing_order_from_api_url(self):
        event = parse_order_event("https://cba.tekmetric.com/api/cba/88/repair-order/55", None)
        assert (event.shop_id, event.order_id) == ("88", "55")

    def test_new_order_uses_session_shop(self):
        event = parse_order_event("https://shop.tekmetric.com/api/repair-order/1001/estimate", "469")
        assert event.order_id == "1001"
        assert event.shop_id == "469"
        assert event.kind == OrderEventKind.NEW_ORDER_CREATED

    def test_new_order_without_any_shop_is_dropped(self):
        assert parse_order_event("https://shop.tekmetric.com/api/repair-order/1001/estimate", None) is None

    def test_generic_order_url_falls_back_to_session_shop(self):
        event = parse_order_event("https://shop.tekmetric.com/api/repair-order/77/", "469")
        assert (event.shop_id, event.order_id) == ("469", "77")

    def test_unrelated_url(self):
        assert parse_order_event("https://shop.tekmetric.com/api/shop/469/customers", "469") is None
