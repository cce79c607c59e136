"""Typed records for one price alert run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AlertCondition(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class PriceAlert(BaseModel):
    """A row of the ``price_alerts`` table, plus the owner's resolved email."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    cryptocurrency_id: str
    symbol: str
    target_price: float = Field(gt=0)
    condition: AlertCondition
    is_active: bool = True
    created_at: datetime | None = None
    triggered_at: datetime | None = None

    # Resolved from the auth admin API at read time, never stored on the row
    user_email: str | None = None


class UserRecord(BaseModel):
    """The subset of an auth admin user we need."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    email: str | None = None


class SkipReason(str, Enum):
    NO_QUOTE_AVAILABLE = "no_quote_available"


class FailureReason(str, Enum):
    NO_RECIPIENT = "no_recipient"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    SEND_ERROR = "send_error"


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.NO_RECIPIENT: "No email address for alert owner",
    FailureReason.PROVIDER_UNAVAILABLE: "Email provider not configured",
    FailureReason.SEND_ERROR: "Failed to send email",
}


# ---------------------------------------------------------------------------
# Evaluator decisions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Trigger:
    current_price: float


@dataclass(frozen=True)
class NoTrigger:
    pass


@dataclass(frozen=True)
class Skip:
    reason: SkipReason


Decision = Trigger | NoTrigger | Skip


# ---------------------------------------------------------------------------
# Notification + run results
# ---------------------------------------------------------------------------

@dataclass
class EmailSendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass
class NotificationOutcome:
    """What happened to one triggered alert."""

    alert: PriceAlert
    current_price: float
    delivered: bool
    reason: FailureReason | None = None
    persisted: bool = False

    def to_dict(self) -> dict:
        if self.delivered:
            return {
                "alertId": self.alert.id,
                "symbol": self.alert.symbol,
                "condition": self.alert.condition.value,
                "targetPrice": self.alert.target_price,
                "currentPrice": self.current_price,
                "emailSent": True,
            }
        return {
            "alertId": self.alert.id,
            "symbol": self.alert.symbol,
            "error": FAILURE_MESSAGES[self.reason or FailureReason.SEND_ERROR],
        }


@dataclass
class AlertBatch:
    """Active alerts read for one run, plus ids of rows that failed validation."""

    alerts: list[PriceAlert] = field(default_factory=list)
    invalid_ids: list[str] = field(default_factory=list)


@dataclass
class RunSummary:
    checked: int = 0
    results: list[NotificationOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)

    @property
    def triggered(self) -> int:
        return sum(1 for r in self.results if r.delivered)

    def to_dict(self) -> dict:
        if self.checked == 0:
            body = {
                "success": True,
                "message": "No active alerts to check",
                "checked": 0,
                "triggered": 0,
            }
        else:
            body = {
                "success": True,
                "checked": self.checked,
                "triggered": self.triggered,
                "results": [r.to_dict() for r in self.results],
            }
        if self.invalid:
            body["invalidAlerts"] = list(self.invalid)
        return body
