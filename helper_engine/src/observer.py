"""
Parsing of observed Tekmetric traffic.

Two inputs reach the labor rate reconciler from the host:
- outgoing API requests, which carry the auth token header and the shop id;
- completed repair order requests, which identify the order being viewed or
  the order that was just created.
"""

import re
from typing import Mapping, Optional
from urllib.parse import urlsplit

from helper_engine.src.models import AuthSession, OrderEventKind, RepairOrderEvent

AUTH_TOKEN_HEADER = "x-auth-token"

# /api/token/shop/123 or /api/shop/123
SHOP_ID_RE = re.compile(r"/(?:token/)?shop/(\d+)")

# /repair-order/456/estimate (new RO created)
NEW_ORDER_RE = re.compile(r"/repair-order/(\d+)/estimate")

# /shop/123/repair-order/456, /api/sandbox/123/repair-order/456, ...
SHOP_ORDER_RE = re.compile(r"/(?:api/)?(?:sandbox|shop|cba)/(\d+)/repair-order/(\d+)")

# Fallback, shop id comes from the captured session
GENERIC_ORDER_RE = re.compile(r"/repair-order/(\d+)(?:/|$)")


def _header(headers: Mapping[str, str] | list[tuple[str, str]], name: str) -> Optional[str]:
    items = headers.items() if isinstance(headers, Mapping) else headers
    for key, value in items:
        if key.lower() == name:
            return value
    return None


def capture_session(
    session: Optional[AuthSession],
    url: str,
    headers: Mapping[str, str] | list[tuple[str, str]],
) -> AuthSession:
    """Fold one observed request into the session. Last observed value wins."""
    current = session or AuthSession()
    updates: dict = {}

    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        updates["base_url"] = f"{parts.scheme}://{parts.netloc}"

    shop_match = SHOP_ID_RE.search(url)
    if shop_match:
        updates["shop_id"] = shop_match.group(1)

    token = _header(headers, AUTH_TOKEN_HEADER)
    if token:
        updates["token"] = token

    return current.model_copy(update=updates)


def parse_order_event(url: str, fallback_shop_id: Optional[str]) -> Optional[RepairOrderEvent]:
    """Turn a completed request URL into a repair order event, or None."""
    shop_order = SHOP_ORDER_RE.search(url)

    new_order = NEW_ORDER_RE.search(url)
    if new_order:
        shop_id = shop_order.group(1) if shop_order else fallback_shop_id
        if not shop_id:
            return None
        return RepairOrderEvent(
            order_id=new_order.group(1),
            shop_id=shop_id,
            kind=OrderEventKind.NEW_ORDER_CREATED,
        )

    if shop_order:
        return RepairOrderEvent(
            order_id=shop_order.group(2),
            shop_id=shop_order.group(1),
            kind=OrderEventKind.EXISTING_ORDER_VIEWED,
        )

    generic = GENERIC_ORDER_RE.search(url)
    if generic and fallback_shop_id:
        return RepairOrderEvent(
            order_id=generic.group(1),
            shop_id=fallback_shop_id,
            kind=OrderEventKind.EXISTING_ORDER_VIEWED,
        )

    return None
