"""
Labor Rate Reconciler

Keeps the labor rate of Tekmetric repair orders consistent with the shop's
labor rate groups:

1. Fetch the order snapshot with the captured session token.
2. Evaluate: first group (in configured order) covering the vehicle make.
3. Apply: PUT the new rate plus every pass-through field to the order
   summary, then broadcast a refresh notice.

Each order id is processed at most once in a row; the id is claimed
synchronously before the first await so duplicate events delivered
back-to-back cannot both reach the network. Failures are logged and never
retried; the operator re-triggers by navigating again.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Union

import httpx
from loguru import logger
from pydantic import ValidationError

from helper_engine.config.settings import CURRENT_SHOP_KEY, HTTP_TIMEOUT, TEKMETRIC_WEB_URL
from helper_engine.src.errors import FetchFailed, TekmetricError, WriteFailed
from helper_engine.src.models import (
    AuthSession,
    LaborRateGroup,
    RefreshNotice,
    RepairOrderEvent,
    RepairOrderSnapshot,
)
from helper_engine.src.notify import Broadcaster
from helper_engine.src.observer import capture_session, parse_order_event
from helper_engine.src.store import ConfigStore, load_groups


class SkipReason(str, Enum):
    NO_MATCHING_GROUP = "no-matching-group"
    ALREADY_CORRECT = "already-correct"
    SESSION_MISSING = "session-missing"


@dataclass
class Applied:
    new_rate: int
    group_name: str


@dataclass
class Skipped:
    reason: SkipReason


@dataclass
class Failed:
    error: Exception


Outcome = Union[Applied, Skipped, Failed]


class ReconcilerContext:
    """Process-local state owned by the host: captured session and last order id."""

    def __init__(self, store: ConfigStore | None = None):
        self.session: Optional[AuthSession] = None
        self.last_processed_order_id: Optional[str] = None
        self.store = store

    def observe_request(self, url: str, headers: Mapping[str, str] | list[tuple[str, str]]) -> AuthSession:
        previous_shop = self.session.shop_id if self.session else None
        self.session = capture_session(self.session, url, headers)
        if self.session.shop_id and self.session.shop_id != previous_shop:
            logger.info(f"[Labor Rate] Shop ID captured: {self.session.shop_id}")
            if self.store is not None:
                self.store.set(CURRENT_SHOP_KEY, self.session.shop_id)
        return self.session

    @property
    def has_session(self) -> bool:
        return self.session is not None and self.session.is_complete

    def base_url(self) -> str:
        if self.session and self.session.base_url:
            return self.session.base_url
        return TEKMETRIC_WEB_URL

    def token(self) -> Optional[str]:
        return self.session.token if self.session else None

    def claim(self, order_id: str) -> bool:
        """Mark the order as processed. False if it was the last one processed."""
        if self.last_processed_order_id == order_id:
            return False
        self.last_processed_order_id = order_id
        return True


class OrderClient:
    """Calls the Tekmetric web API with a token captured from the browser."""

    def __init__(self, http: httpx.AsyncClient | None = None):
        self.http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    @staticmethod
    def _headers(token: str | None) -> dict:
        return {"x-auth-token": token or "", "content-type": "application/json"}

    async def fetch_order(self, base_url: str, shop_id: str, order_id: str, token: str | None) -> RepairOrderSnapshot:
        url = f"{base_url}/api/shop/{shop_id}/repair-order/{order_id}"
        try:
            resp = await self.http.get(url, headers=self._headers(token))
        except httpx.HTTPError as e:
            raise FetchFailed(str(e)) from e
        if not resp.is_success:
            raise FetchFailed(resp.text, status_code=resp.status_code)
        try:
            return RepairOrderSnapshot.from_api(resp.json())
        except ValueError as e:
            raise FetchFailed(f"Unreadable repair order: {e}") from e

    async def update_summary(self, base_url: str, order_id: str, payload: dict, token: str | None) -> None:
        url = f"{base_url}/api/repair-order/{order_id}/summary"
        try:
            resp = await self.http.put(url, headers=self._headers(token), json=payload)
        except httpx.HTTPError as e:
            raise WriteFailed(str(e)) from e
        if not resp.is_success:
            raise WriteFailed(resp.text, status_code=resp.status_code)

    async def aclose(self) -> None:
        await self.http.aclose()


def select_group(groups: list[LaborRateGroup], make: Optional[str]) -> Optional[LaborRateGroup]:
    for group in groups:
        if group.covers(make):
            return group
    return None


async def reconcile(
    event: RepairOrderEvent,
    context: ReconcilerContext,
    groups: list[LaborRateGroup],
    client: OrderClient,
    notifier: Broadcaster | None = None,
) -> Outcome:
    """Bring one order's labor rate in line with the configured groups."""
    if not context.has_session:
        logger.warning(f"[Labor Rate] No auth token or shop ID - not fetching RO {event.order_id}")
        return Skipped(SkipReason.SESSION_MISSING)

    try:
        # Session is re-read at each call; a newer capture may have landed.
        snapshot = await client.fetch_order(context.base_url(), event.shop_id, event.order_id, context.token())
    except TekmetricError as e:
        logger.error(f"[Labor Rate] Failed to fetch RO {event.order_id}: {e}")
        return Failed(e)

    make = snapshot.vehicle_make.lower() if snapshot.vehicle_make else None
    logger.info(f"[Labor Rate] Current rate: {snapshot.labor_rate}, Vehicle make: {make}")

    group = select_group(groups, make)
    if group is None:
        logger.info(f"[Labor Rate] No matching group found for make: {make}")
        return Skipped(SkipReason.NO_MATCHING_GROUP)

    if group.labor_rate == snapshot.labor_rate:
        logger.info("[Labor Rate] No change needed - rate already correct")
        return Skipped(SkipReason.ALREADY_CORRECT)

    payload = snapshot.summary_payload(group.labor_rate)
    try:
        await client.update_summary(context.base_url(), event.order_id, payload, context.token())
    except TekmetricError as e:
        logger.error(f"[Labor Rate] Failed to update RO {event.order_id}: {e}")
        return Failed(e)

    logger.info(
        f"[Labor Rate] Updated to ${group.labor_rate / 100:.2f} ({group.name}) for RO: {event.order_id}"
    )
    if notifier is not None:
        await notifier.broadcast(
            RefreshNotice(order_id=event.order_id, rate=group.labor_rate, group_name=group.name)
        )
    return Applied(new_rate=group.labor_rate, group_name=group.name)


class LaborRateWatcher:
    """Host-facing handler for observed Tekmetric traffic."""

    def __init__(
        self,
        store: ConfigStore,
        client: OrderClient | None = None,
        notifier: Broadcaster | None = None,
        context: ReconcilerContext | None = None,
    ):
        self.store = store
        self.client = client or OrderClient()
        self.notifier = notifier or Broadcaster()
        self.context = context or ReconcilerContext(store)

    def on_request_headers(self, url: str, headers: Mapping[str, str] | list[tuple[str, str]]) -> None:
        self.context.observe_request(url, headers)

    async def on_request_completed(self, url: str) -> Optional[Outcome]:
        """Handle a completed request. None when the event is dropped."""
        if not self.context.has_session:
            logger.warning("[Labor Rate] Skipping - no auth token or shop ID")
            return None

        event = parse_order_event(url, self.context.session.shop_id)
        if event is None:
            return None

        if not self.context.claim(event.order_id):
            logger.info(f"[Labor Rate] Skipping duplicate RO: {event.order_id}")
            return None

        logger.info(f"[Labor Rate] Repair order detected: {event.order_id} Shop: {event.shop_id} ({event.kind.value})")
        try:
            groups = load_groups(self.store)
        except ValidationError as e:
            logger.error(f"[Labor Rate] Invalid labor rate groups in store: {e}")
            return Failed(e)
        return await reconcile(event, self.context, groups, self.client, self.notifier)

    def status(self) -> dict:
        session = self.context.session
        return {
            "hasAuthToken": bool(session and session.token),
            "shopId": session.shop_id if session else None,
            "baseUrl": session.base_url if session else None,
        }
