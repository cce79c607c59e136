from collections.abc import Mapping

from price_alerts.models import (
    AlertCondition,
    Decision,
    NoTrigger,
    PriceAlert,
    Skip,
    SkipReason,
    Trigger,
)


def evaluate(alert: PriceAlert, quotes: Mapping[str, float]) -> Decision:
    """Decide whether ``alert`` fires at the quoted price.

    Both thresholds are inclusive: a price exactly at the target fires.
    """
    price = quotes.get(alert.cryptocurrency_id)
    if price is None:
        return Skip(SkipReason.NO_QUOTE_AVAILABLE)

    if alert.condition == AlertCondition.ABOVE and price >= alert.target_price:
        return Trigger(price)
    if alert.condition == AlertCondition.BELOW and price <= alert.target_price:
        return Trigger(price)
    return NoTrigger()
