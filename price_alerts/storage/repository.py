"""Supabase REST access for the ``price_alerts`` table and auth admin users."""

import asyncio
import logging
from datetime import datetime
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from price_alerts.errors import AlertDecodeError, PersistenceFailed, RepositoryUnavailable
from price_alerts.models import AlertBatch, PriceAlert, UserRecord

logger = logging.getLogger(__name__)

ALERT_COLUMNS = (
    "id,user_id,cryptocurrency_id,symbol,target_price,condition,is_active,created_at"
)


class AlertRepository:
    """Reads active alerts and clears them once their notification went out."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        service_key: str,
        lookup_concurrency: int = 10,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._lookup_limit = asyncio.Semaphore(max(1, lookup_concurrency))

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
        }

    async def fetch_active_alerts(self) -> AlertBatch:
        """Return every active alert, each with a best-effort owner email.

        Rows that fail validation are left out of ``alerts`` and listed in
        ``invalid_ids``; one bad row never hides the others.
        """
        try:
            resp = await self._client.get(
                f"{self._base_url}/rest/v1/price_alerts",
                params={"is_active": "eq.true", "select": ALERT_COLUMNS},
                headers=self._headers,
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise RepositoryUnavailable(f"Failed to fetch alerts: {exc}") from exc
        except ValueError as exc:
            raise AlertDecodeError(f"Alert response is not JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise AlertDecodeError(
                f"Alert response is a {type(payload).__name__}, expected a list"
            )

        batch = AlertBatch()
        alerts: list[PriceAlert] = []
        for row in payload:
            try:
                alert = PriceAlert.model_validate(row)
            except ValidationError as exc:
                row_id = str(row.get("id")) if isinstance(row, dict) else "?"
                logger.warning(
                    "Invalid alert row %s (%d errors): %s", row_id, exc.error_count(), exc
                )
                batch.invalid_ids.append(row_id)
                continue
            if alert.is_active:
                alerts.append(alert)

        emails = await asyncio.gather(*(self._resolve_email(a.user_id) for a in alerts))
        batch.alerts = [
            a.model_copy(update={"user_email": email})
            for a, email in zip(alerts, emails)
        ]
        return batch

    async def _resolve_email(self, user_id: str) -> str | None:
        async with self._lookup_limit:
            try:
                resp = await self._client.get(
                    f"{self._base_url}/auth/v1/admin/users/{quote(user_id, safe='')}",
                    headers=self._headers,
                )
                resp.raise_for_status()
                user = UserRecord.model_validate(resp.json())
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Email lookup failed for user %s: %s", user_id, exc)
                return None

        if not user.email:
            logger.warning("User %s has no email address", user_id)
            return None
        return user.email

    async def mark_triggered(self, alert_id: str, triggered_at: datetime) -> None:
        """Deactivate exactly one alert and stamp when it fired."""
        try:
            resp = await self._client.patch(
                f"{self._base_url}/rest/v1/price_alerts",
                params={"id": f"eq.{alert_id}"},
                headers={**self._headers, "Prefer": "return=minimal"},
                json={"is_active": False, "triggered_at": triggered_at.isoformat()},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise PersistenceFailed(
                f"Failed to mark alert {alert_id} as triggered: {exc}"
            ) from exc
