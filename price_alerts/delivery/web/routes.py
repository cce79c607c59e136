import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from price_alerts.config import Settings
from price_alerts.delivery.base import EmailChannel
from price_alerts.delivery.web.dependencies import (
    get_alert_runner,
    get_mailer,
    get_settings,
    require_scheduler_or_service_auth,
    require_service_auth,
)
from price_alerts.models import RunSummary

logger = logging.getLogger(__name__)

router = APIRouter()


class SendEmailRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to: str = ""
    subject: str = ""
    html: str = ""
    from_email: str | None = Field(default=None, alias="from")


# ═══════════════════════════════════════════════════════════════════════════
# Price alert check (scheduler / service trigger)
# ═══════════════════════════════════════════════════════════════════════════

@router.post(
    "/api/check-price-alerts", dependencies=[Depends(require_scheduler_or_service_auth)]
)
async def check_price_alerts_endpoint(
    run: Callable[[], Awaitable[RunSummary]] = Depends(get_alert_runner),
):
    try:
        summary = await run()
    except Exception as exc:
        logger.exception("Error checking price alerts")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to check price alerts",
                "message": str(exc) or "Unknown error",
            },
        )
    return JSONResponse(content=summary.to_dict())


# ═══════════════════════════════════════════════════════════════════════════
# Transactional email passthrough
# ═══════════════════════════════════════════════════════════════════════════

@router.post("/api/send-email", dependencies=[Depends(require_service_auth)])
async def send_email_endpoint(
    body: SendEmailRequest,
    mailer: EmailChannel = Depends(get_mailer),
):
    if not body.to or not body.subject or not body.html:
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Missing required fields: to, subject, html"},
        )

    result = await mailer.send(body.to, body.subject, body.html, from_email=body.from_email)
    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": f"Email service error: {result.error}"},
        )

    message_id = result.message_id or f"{int(datetime.now(timezone.utc).timestamp() * 1000)}-{body.to}"
    return JSONResponse(content={"success": True, "messageId": message_id})


@router.get("/health")
async def health(cfg: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "email_configured": cfg.email_configured,
        "scheduler_enabled": cfg.scheduler_enabled,
    }
