from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from price_alerts.models import AlertCondition, PriceAlert

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def format_usd(value: float, min_decimals: int = 2, max_decimals: int = 6) -> str:
    """Thousands-separated amount with trailing zeros trimmed to ``min_decimals``."""
    text = f"{value:,.{max_decimals}f}"
    if max_decimals == 0:
        return text
    whole, frac = text.split(".")
    frac = frac.rstrip("0")
    if len(frac) < min_decimals:
        frac = frac.ljust(min_decimals, "0")
    return f"{whole}.{frac}" if frac else whole


_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)
_env.filters["usd"] = format_usd


def price_alert_subject(alert: PriceAlert) -> str:
    direction = "Above" if alert.condition == AlertCondition.ABOVE else "Below"
    target = format_usd(alert.target_price, min_decimals=0, max_decimals=3)
    return f"\U0001f6a8 Price Alert: {alert.symbol} {direction} ${target}"


def render_price_alert_email(
    alert: PriceAlert, current_price: float, site_url: str
) -> tuple[str, str]:
    """Return ``(subject, html)`` for a triggered alert."""
    html = _env.get_template("price_alert.html").render(
        symbol=alert.symbol,
        asset_name=alert.cryptocurrency_id,
        movement="risen above" if alert.condition == AlertCondition.ABOVE else "fallen below",
        current_price=current_price,
        target_price=alert.target_price,
        site_url=site_url.rstrip("/"),
    )
    return price_alert_subject(alert), html
