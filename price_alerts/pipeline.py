"""Price alert check: read alerts, fetch prices, evaluate, notify, commit.

One call to ``PriceAlertPipeline.run`` is one single-pass run. Nothing is
kept between runs; an alert that could not be notified stays active and is
simply evaluated again next time. A successful send followed by a failed
commit leaves the alert active too, so the owner may get a second email:
duplicates are preferred over silently lost notifications.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx

from price_alerts.config import Settings, settings as default_settings
from price_alerts.delivery.base import EmailChannel
from price_alerts.delivery.email import ResendDelivery
from price_alerts.delivery.rendering import render_price_alert_email
from price_alerts.errors import PersistenceFailed
from price_alerts.evaluator import evaluate
from price_alerts.market.coingecko import CoinGeckoClient
from price_alerts.models import (
    FailureReason,
    NotificationOutcome,
    PriceAlert,
    RunSummary,
    Skip,
    Trigger,
)
from price_alerts.storage.repository import AlertRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PriceAlertPipeline:
    def __init__(
        self,
        repository: AlertRepository,
        prices: CoinGeckoClient,
        mailer: EmailChannel,
        site_url: str,
        clock: Clock = utc_now,
        notify_concurrency: int = 5,
    ) -> None:
        self._repository = repository
        self._prices = prices
        self._mailer = mailer
        self._site_url = site_url
        self._clock = clock
        self._notify_limit = asyncio.Semaphore(max(1, notify_concurrency))

    async def run(self) -> RunSummary:
        """Run one check. Raises RepositoryUnavailable / PriceProviderUnavailable."""
        logger.info("Starting price alert check")

        batch = await self._repository.fetch_active_alerts()
        if batch.invalid_ids:
            logger.warning("Ignoring %d invalid alert rows: %s", len(batch.invalid_ids), batch.invalid_ids)
        alerts = batch.alerts
        if not alerts:
            logger.info("No active alerts found")
            return RunSummary(invalid=batch.invalid_ids)
        logger.info("Found %d active alerts", len(alerts))

        quotes = await self._prices.get_simple_prices(a.cryptocurrency_id for a in alerts)

        summary = RunSummary(checked=len(alerts), invalid=batch.invalid_ids)
        triggered: list[tuple[PriceAlert, float]] = []
        for alert in alerts:
            decision = evaluate(alert, quotes)
            if isinstance(decision, Skip):
                logger.info("No price data for %s, skipping alert %s", alert.cryptocurrency_id, alert.id)
                summary.skipped.append(alert.id)
            elif isinstance(decision, Trigger):
                logger.info(
                    "Alert triggered: %s %s $%s (current: $%s)",
                    alert.symbol, alert.condition.value, alert.target_price, decision.current_price,
                )
                triggered.append((alert, decision.current_price))

        summary.results = list(
            await asyncio.gather(*(self._notify_and_commit(a, px) for a, px in triggered))
        )

        logger.info(
            "Price alert check complete. Triggered: %d/%d (skipped %d)",
            summary.triggered, summary.checked, len(summary.skipped),
        )
        return summary

    async def _notify_and_commit(
        self, alert: PriceAlert, current_price: float
    ) -> NotificationOutcome:
        async with self._notify_limit:
            if not alert.user_email:
                logger.warning("Alert %s has no recipient, leaving it active", alert.id)
                return NotificationOutcome(alert, current_price, False, FailureReason.NO_RECIPIENT)
            if not self._mailer.configured:
                logger.warning("Email not configured, leaving alert %s active", alert.id)
                return NotificationOutcome(
                    alert, current_price, False, FailureReason.PROVIDER_UNAVAILABLE
                )

            try:
                subject, html = render_price_alert_email(alert, current_price, self._site_url)
                result = await self._mailer.send(alert.user_email, subject, html)
            except Exception:
                logger.exception("Error sending email for alert %s", alert.id)
                return NotificationOutcome(alert, current_price, False, FailureReason.SEND_ERROR)
            if not result.success:
                logger.warning("Email for alert %s failed: %s", alert.id, result.error)
                return NotificationOutcome(alert, current_price, False, FailureReason.SEND_ERROR)

            outcome = NotificationOutcome(alert, current_price, True)
            try:
                await self._repository.mark_triggered(alert.id, self._clock())
            except PersistenceFailed as exc:
                # Email already went out; the alert stays active and may fire again
                logger.warning("%s", exc)
            else:
                outcome.persisted = True
            return outcome


def build_pipeline(
    client: httpx.AsyncClient, cfg: Settings, clock: Clock = utc_now
) -> PriceAlertPipeline:
    return PriceAlertPipeline(
        repository=AlertRepository(
            client,
            cfg.supabase_url,
            cfg.supabase_service_role_key,
            lookup_concurrency=cfg.lookup_concurrency,
        ),
        prices=CoinGeckoClient(
            client,
            base_url=cfg.coingecko_base_url,
            vs_currency=cfg.vs_currency,
            api_key=cfg.coingecko_api_key,
        ),
        mailer=ResendDelivery(
            client,
            api_key=cfg.resend_api_key,
            from_email=cfg.from_email,
            base_url=cfg.resend_base_url,
        ),
        site_url=cfg.site_url,
        clock=clock,
        notify_concurrency=cfg.notify_concurrency,
    )


# Serialises runs started in this process (scheduler loop + HTTP trigger).
# Separate processes are not coordinated.
_run_lock = asyncio.Lock()


async def check_price_alerts(
    cfg: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = utc_now,
) -> RunSummary:
    """Run one price alert check with a fresh HTTP client."""
    cfg = cfg or default_settings
    async with _run_lock:
        async with httpx.AsyncClient(
            timeout=cfg.http_timeout_seconds, transport=transport
        ) as client:
            return await build_pipeline(client, cfg, clock).run()


async def alert_check_loop(cfg: Settings | None = None) -> None:
    """Run a check every ``check_interval_seconds``, forever."""
    cfg = cfg or default_settings
    logger.info("Price alert scheduler started (every %ds)", cfg.check_interval_seconds)

    while True:
        try:
            await check_price_alerts(cfg)
        except Exception:
            logger.exception("Error in price alert check loop")

        await asyncio.sleep(cfg.check_interval_seconds)
