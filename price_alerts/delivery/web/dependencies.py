import functools
import hmac
from collections.abc import AsyncIterator, Awaitable, Callable

import httpx
from fastapi import Depends, Header, Request

from price_alerts.config import Settings, settings
from price_alerts.delivery.base import EmailChannel
from price_alerts.delivery.email import ResendDelivery
from price_alerts.models import RunSummary
from price_alerts.pipeline import check_price_alerts


class Unauthorized(Exception):
    """Request lacks the credentials its endpoint requires."""


def get_settings() -> Settings:
    return settings


def get_alert_runner(
    cfg: Settings = Depends(get_settings),
) -> Callable[[], Awaitable[RunSummary]]:
    return functools.partial(check_price_alerts, cfg)


async def get_mailer(
    cfg: Settings = Depends(get_settings),
) -> AsyncIterator[EmailChannel]:
    async with httpx.AsyncClient(timeout=cfg.http_timeout_seconds) as client:
        yield ResendDelivery(
            client,
            api_key=cfg.resend_api_key,
            from_email=cfg.from_email,
            base_url=cfg.resend_base_url,
        )


def has_service_bearer(authorization: str | None, cfg: Settings) -> bool:
    secret = cfg.service_secret
    if not secret or not authorization:
        return False
    return hmac.compare_digest(authorization.encode(), f"Bearer {secret}".encode())


def require_scheduler_or_service_auth(
    request: Request,
    authorization: str | None = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> None:
    """Scheduler marker header, or the service bearer token."""
    if request.headers.get(cfg.cron_header_name):
        return
    if not has_service_bearer(authorization, cfg):
        raise Unauthorized()


def require_service_auth(
    authorization: str | None = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> None:
    """Service bearer token only; the marker header is not a credential here."""
    if not has_service_bearer(authorization, cfg):
        raise Unauthorized()
