"""Tests for the server-side Tekmetric client."""

from unittest.mock import MagicMock, patch

import pytest

from helper_engine.src.errors import NotConfigured, TekmetricError
from helper_engine.src.models import JobEstimate, LaborLine, PartLine
from helper_engine.src.tekmetric import TekmetricClient, get_shop_id


@pytest.fixture
def shops_env(monkeypatch):
    monkeypatch.setenv("TEKMETRIC_API_KEY", "key-123")
    monkeypatch.setenv("TM_SHOP_ID_NB", "469")
    monkeypatch.delenv("TM_SHOP_ID_WM", raising=False)
    monkeypatch.delenv("TM_SHOP_ID_EV", raising=False)


def _response(status: int, body: dict):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = status < 400
    resp.json.return_value = body
    resp.text = str(body)
    return resp


class TestConfiguration:
    def test_shops_from_env(self, shops_env):
        client = TekmetricClient()
        assert client.available_shops() == ["NB"]
        assert client.is_configured()
        assert client.is_configured("NB")
        assert not client.is_configured("WM")
        assert get_shop_id("XX") is None

    def test_no_api_key(self, monkeypatch, shops_env):
        monkeypatch.delenv("TEKMETRIC_API_KEY")
        client = TekmetricClient()
        assert not client.is_configured("NB")
        with pytest.raises(NotConfigured):
            client._request("/shops/current", location="NB")


class TestRequests:
    def test_headers(self, shops_env):
        client = TekmetricClient(base_url="https://tm.test/api/v1")
        client.session.request = MagicMock(return_value=_response(200, {"id": 1}))

        assert client._request("/shops/current", location="NB") == {"id": 1}

        method, url = client.session.request.call_args.args
        headers = client.session.request.call_args.kwargs["headers"]
        assert (method, url) == ("GET", "https://tm.test/api/v1/shops/current")
        assert headers == {"Authorization": "Bearer key-123", "X-Shop-Id": "469"}

    def test_client_error_not_retried(self, shops_env):
        client = TekmetricClient()
        client.session.request = MagicMock(return_value=_response(404, {"message": "nope"}))

        with pytest.raises(TekmetricError) as exc_info:
            client._request("/shops/current", location="NB")
        assert exc_info.value.status_code == 404
        assert client.session.request.call_count == 1

    def test_connection_failure_is_false(self, shops_env):
        client = TekmetricClient()
        with patch.object(client, "_request", side_effect=TekmetricError("down", status_code=503)):
            assert client.test_connection("NB") is False


class TestCreateEstimate:
    def test_payload_and_link(self, shops_env):
        client = TekmetricClient()
        job = JobEstimate(
            id=88,
            name="Front brakes",
            labor_items=[LaborLine(name="Replace pads", hours=1.5, rate=16000)],
            parts=[PartLine(name="Pads", part_number="BP-1", cost=4500)],
        )

        with patch.object(client, "_request", return_value={"id": 5001}) as request:
            result = client.create_estimate(job, "NB", customer_id=3, vehicle_id=4)

        assert result == {
            "repair_order_id": 5001,
            "url": "https://shop.tekmetric.com/shop/469/repair-orders/5001",
        }
        path = request.call_args.args[0]
        body = request.call_args.kwargs["body"]
        assert path == "/repair-orders"
        assert body["customerId"] == 3
        job_body = body["jobs"][0]
        assert job_body["laborItems"][0]["laborTime"] == 1.5
        assert job_body["parts"][0] == {
            "name": "Pads",
            "partNumber": "BP-1",
            "cost": 4500,
            "quantity": 1,
            "retail": 4500,
        }
        assert job_body["note"] == "Imported from historical job #88"

    def test_link_uses_configured_web_origin(self, shops_env, monkeypatch):
        monkeypatch.setattr("helper_engine.src.tekmetric.TEKMETRIC_WEB_URL", "https://sandbox.tekmetric.com")
        client = TekmetricClient()

        with patch.object(client, "_request", return_value={"id": 7}):
            result = client.create_estimate(JobEstimate(name="Oil change"), "NB")

        assert result["url"] == "https://sandbox.tekmetric.com/shop/469/repair-orders/7"

    def test_unconfigured_location(self, shops_env):
        with pytest.raises(NotConfigured):
            TekmetricClient().create_estimate(JobEstimate(name="x"), "WM")


class TestPricing:
    def test_failures_skipped(self, shops_env):
        client = TekmetricClient()

        def fake_request(path, location=None):
            if "BAD" in path:
                raise TekmetricError("boom", status_code=500)
            if "MISS" in path:
                return {"items": []}
            return {"items": [{"cost": 1200, "retail": 2400}]}

        with patch.object(client, "_request", side_effect=fake_request):
            pricing = client.fetch_current_pricing(["P1", "BAD", "MISS"], "NB")

        assert pricing == {"P1": {"cost": 1200, "retail": 2400}}
