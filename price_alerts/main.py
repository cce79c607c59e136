import asyncio
import logging

import uvicorn

from price_alerts.config import settings
from price_alerts.delivery.web.app import create_app
from price_alerts.pipeline import alert_check_loop
from price_alerts.utils.logging import setup_logging

logger = logging.getLogger(__name__)


async def main() -> None:
    setup_logging()
    logger.info("Starting price alert notifier")

    if not settings.supabase_url or not settings.supabase_service_role_key:
        logger.warning("Supabase not configured: every check will fail until SUPABASE_URL is set")
    if not settings.email_configured:
        logger.warning("RESEND_API_KEY not set: triggered alerts will stay active, no emails sent")

    app = create_app()
    config = uvicorn.Config(
        app,
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)

    tasks = [server.serve()]
    if settings.scheduler_enabled:
        tasks.append(alert_check_loop())
    else:
        logger.info("Scheduler disabled, checks only run via POST /api/check-price-alerts")

    await asyncio.gather(*tasks)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
