import json
from datetime import datetime, timezone

import httpx
import pytest

from price_alerts.config import Settings

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

DB_HOST = "db.test"
PRICES_HOST = "prices.test"
MAIL_HOST = "mail.test"


def make_settings(**overrides) -> Settings:
    values = {
        "supabase_url": f"https://{DB_HOST}",
        "supabase_service_role_key": "service-key",
        "resend_api_key": "re_test",
        "resend_base_url": f"https://{MAIL_HOST}",
        "from_email": "Alerts <alerts@site.test>",
        "coingecko_base_url": f"https://{PRICES_HOST}/api/v3",
        "site_url": "https://site.test",
        "scheduler_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def alert_row(
    alert_id: str = "a1",
    user_id: str = "u1",
    asset: str = "bitcoin",
    symbol: str = "BTC",
    target: float = 50000,
    condition: str = "above",
    is_active: bool = True,
) -> dict:
    return {
        "id": alert_id,
        "user_id": user_id,
        "cryptocurrency_id": asset,
        "symbol": symbol,
        "target_price": target,
        "condition": condition,
        "is_active": is_active,
        "created_at": "2025-12-01T00:00:00+00:00",
    }


class FakeServices:
    """Supabase, CoinGecko and Resend behind one httpx.MockTransport."""

    def __init__(self, alerts=None, users=None, prices=None) -> None:
        self.alerts: list[dict] = alerts or []
        self.users: dict[str, str | None] = users or {}
        self.prices: dict[str, float] = prices or {}

        self.alerts_status = 200
        self.prices_status = 200
        self.patch_status = 200
        self.prices_network_error = False
        self.failing_recipients: set[str] = set()

        self.alert_reads: list[httpx.Request] = []
        self.user_lookups: list[str] = []
        self.price_requests: list[httpx.Request] = []
        self.patches: list[dict] = []
        self.emails: list[dict] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def patched_ids(self) -> list[str]:
        return [p["id"] for p in self.patches]

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host == DB_HOST:
            return self._supabase(request)
        if host == PRICES_HOST:
            return self._coingecko(request)
        if host == MAIL_HOST:
            return self._resend(request)
        return httpx.Response(404)

    def _supabase(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/rest/v1/price_alerts" and request.method == "GET":
            self.alert_reads.append(request)
            if self.alerts_status != 200:
                return httpx.Response(self.alerts_status, json={"message": "db down"})
            return httpx.Response(200, json=self.alerts)

        if path == "/rest/v1/price_alerts" and request.method == "PATCH":
            alert_id = request.url.params["id"].removeprefix("eq.")
            if self.patch_status >= 400:
                return httpx.Response(self.patch_status, json={"message": "write failed"})
            self.patches.append({"id": alert_id, "body": json.loads(request.content)})
            return httpx.Response(self.patch_status)

        if path.startswith("/auth/v1/admin/users/"):
            user_id = path.rsplit("/", 1)[-1]
            self.user_lookups.append(user_id)
            if user_id not in self.users:
                return httpx.Response(404, json={"msg": "User not found"})
            return httpx.Response(200, json={"id": user_id, "email": self.users[user_id]})

        return httpx.Response(404)

    def _coingecko(self, request: httpx.Request) -> httpx.Response:
        self.price_requests.append(request)
        if self.prices_network_error:
            raise httpx.ConnectError("connection refused", request=request)
        if self.prices_status != 200:
            return httpx.Response(self.prices_status, json={"status": {"error_code": self.prices_status}})
        ids = request.url.params["ids"].split(",")
        return httpx.Response(
            200, json={i: {"usd": self.prices[i]} for i in ids if i in self.prices}
        )

    def _resend(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["to"][0] in self.failing_recipients:
            return httpx.Response(
                422,
                json={"statusCode": 422, "name": "validation_error", "message": "Invalid `to` field"},
            )
        self.emails.append(body)
        return httpx.Response(200, json={"id": f"email-{len(self.emails)}"})


@pytest.fixture
def cfg() -> Settings:
    return make_settings()
