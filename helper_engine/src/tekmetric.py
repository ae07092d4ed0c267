"""
Tekmetric API Client (server side)

Talks to the public Tekmetric API with the shop's API key, for connection
checks, estimate creation and part pricing refresh.
Shop ids come from the environment per location (NB, WM, EV).
"""

import os
from typing import Optional
from urllib.parse import quote

import requests
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from helper_engine.config.settings import HTTP_TIMEOUT, TEKMETRIC_BASE_URL, TEKMETRIC_WEB_URL
from helper_engine.src.errors import NotConfigured, TekmetricError
from helper_engine.src.models import JobEstimate

SHOP_NAMES = {
    "NB": "Northbrook",
    "WM": "Wilmette",
    "EV": "Evanston",
}

SHOP_ENV_VARS = {
    "NB": "TM_SHOP_ID_NB",
    "WM": "TM_SHOP_ID_WM",
    "EV": "TM_SHOP_ID_EV",
}


def get_shop_id(location: str) -> Optional[str]:
    env_var = SHOP_ENV_VARS.get(location)
    return (os.getenv(env_var) or None) if env_var else None


def get_api_key() -> Optional[str]:
    return os.getenv("TEKMETRIC_API_KEY") or None


class TekmetricClient:
    """Tekmetric public API client with retries."""

    def __init__(self, api_key: str | None = None, base_url: str = TEKMETRIC_BASE_URL):
        self.api_key = api_key or get_api_key()
        self.base_url = base_url
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def is_configured(self, location: str | None = None) -> bool:
        if not self.api_key:
            return False
        if location:
            return get_shop_id(location) is not None
        return bool(self.available_shops())

    def available_shops(self) -> list[str]:
        return [loc for loc in SHOP_NAMES if get_shop_id(loc)]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def _send(self, method: str, url: str, headers: dict, body: dict | None) -> requests.Response:
        resp = self.session.request(method, url, headers=headers, json=body, timeout=HTTP_TIMEOUT)
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    def _request(self, path: str, method: str = "GET", body: dict | None = None, location: str | None = None) -> dict:
        """Call a Tekmetric endpoint and return its JSON body."""
        if not self.api_key:
            raise NotConfigured("Tekmetric API key not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        shop_id = get_shop_id(location) if location else None
        if shop_id:
            headers["X-Shop-Id"] = shop_id

        try:
            resp = self._send(method, f"{self.base_url}{path}", headers, body)
        except requests.RequestException as e:
            status = e.response.status_code if e.response is not None else None
            raise TekmetricError(str(e), status_code=status) from e

        if not resp.ok:
            raise TekmetricError(resp.text, status_code=resp.status_code)
        return resp.json()

    def test_connection(self, location: str) -> bool:
        try:
            self._request("/shops/current", location=location)
            return True
        except Exception as e:
            logger.warning(f"Tekmetric connection test failed: {e}")
            return False

    def create_estimate(
        self,
        job: JobEstimate,
        location: str,
        customer_id: int | None = None,
        vehicle_id: int | None = None,
    ) -> dict:
        """Create a repair order estimate from a historical job."""
        shop_id = get_shop_id(location)
        if not shop_id:
            raise NotConfigured(f"No Tekmetric shop id configured for {location}")

        payload = {
            "customerId": customer_id,
            "vehicleId": vehicle_id,
            "jobs": [
                {
                    "name": job.name,
                    "authorized": False,
                    "laborItems": [
                        {
                            "name": labor.name,
                            "laborTime": labor.hours,
                            "laborRate": labor.rate,
                            "technicianId": labor.technician_id,
                        }
                        for labor in job.labor_items
                    ],
                    "parts": [
                        {
                            "name": part.name,
                            "partNumber": part.part_number or "",
                            "cost": part.cost,
                            "quantity": part.quantity or 1,
                            "retail": part.retail or part.cost,
                        }
                        for part in job.parts
                    ],
                    "note": f"Imported from historical job #{job.id}" if job.id else None,
                }
            ],
        }

        result = self._request("/repair-orders", method="POST", body=payload, location=location)
        logger.info(f"Tekmetric: created estimate RO {result['id']} at {SHOP_NAMES.get(location, location)}")
        return {
            "repair_order_id": result["id"],
            "url": f"{TEKMETRIC_WEB_URL}/shop/{shop_id}/repair-orders/{result['id']}",
        }

    def fetch_current_pricing(self, part_numbers: list[str], location: str) -> dict[str, dict]:
        """Look up current cost/retail for each part number. Misses are skipped."""
        results: dict[str, dict] = {}
        for part_number in part_numbers:
            try:
                data = self._request(f"/parts/search?query={quote(part_number)}", location=location)
                items = data.get("items") or []
                if items:
                    part = items[0]
                    results[part_number] = {
                        "cost": part.get("cost") or 0,
                        "retail": part.get("retail") or part.get("cost") or 0,
                    }
            except Exception as e:
                logger.warning(f"Failed to fetch pricing for {part_number}: {e}")
        logger.info(f"Tekmetric: refreshed pricing for {len(results)}/{len(part_numbers)} parts")
        return results
