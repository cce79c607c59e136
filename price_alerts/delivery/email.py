import logging

import httpx
from pydantic import BaseModel, ConfigDict

from price_alerts.delivery.base import EmailChannel
from price_alerts.models import EmailSendResult

logger = logging.getLogger(__name__)


class _ResendAccepted(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str


class _ResendError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    statusCode: int | None = None
    name: str | None = None
    message: str | None = None


class ResendDelivery(EmailChannel):
    """Transactional email through the Resend HTTP API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        from_email: str,
        base_url: str = "https://api.resend.com",
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._from_email = from_email
        self._base_url = base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def send(
        self, to: str, subject: str, html: str, from_email: str | None = None
    ) -> EmailSendResult:
        if not self.configured:
            logger.warning("Email not configured, not sending to %s", to)
            return EmailSendResult(success=False, error="Email provider not configured")

        try:
            resp = await self._client.post(
                f"{self._base_url}/emails",
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={
                    "from": from_email or self._from_email,
                    "to": [to],
                    "subject": subject,
                    "html": html,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Error sending email to %s: %s", to, exc)
            return EmailSendResult(success=False, error=str(exc))

        if resp.is_success:
            try:
                accepted = _ResendAccepted.model_validate(resp.json())
            except ValueError as exc:
                # Resend took the message (2xx) even if we can't read its id
                logger.warning("Unreadable Resend response for %s: %s", to, exc)
                return EmailSendResult(success=True)
            logger.info("Email sent to %s (id=%s)", to, accepted.id)
            return EmailSendResult(success=True, message_id=accepted.id)

        error = _describe_error(resp)
        logger.error("Failed to send email to %s: %s", to, error)
        return EmailSendResult(success=False, error=error)


def _describe_error(resp: httpx.Response) -> str:
    try:
        payload = _ResendError.model_validate(resp.json())
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    label = payload.name or f"HTTP {resp.status_code}"
    return f"{label}: {payload.message}" if payload.message else label
