import pytest

from price_alerts.evaluator import evaluate
from price_alerts.models import NoTrigger, PriceAlert, Skip, SkipReason, Trigger

from tests.conftest import alert_row


def _alert(condition: str, target: float = 100.0, asset: str = "bitcoin") -> PriceAlert:
    return PriceAlert.model_validate(alert_row(asset=asset, target=target, condition=condition))


@pytest.mark.parametrize(
    "price, expected",
    [
        (99.99, NoTrigger()),
        (100.0, Trigger(100.0)),
        (100.01, Trigger(100.01)),
        (1_000_000.0, Trigger(1_000_000.0)),
    ],
)
def test_above_fires_at_or_over_target(price, expected):
    assert evaluate(_alert("above"), {"bitcoin": price}) == expected


@pytest.mark.parametrize(
    "price, expected",
    [
        (100.01, NoTrigger()),
        (100.0, Trigger(100.0)),
        (99.99, Trigger(99.99)),
        (0.0001, Trigger(0.0001)),
    ],
)
def test_below_fires_at_or_under_target(price, expected):
    assert evaluate(_alert("below"), {"bitcoin": price}) == expected


@pytest.mark.parametrize("condition", ["above", "below"])
def test_missing_quote_is_skipped(condition):
    decision = evaluate(_alert(condition), {"ethereum": 100.0})
    assert decision == Skip(SkipReason.NO_QUOTE_AVAILABLE)


def test_empty_quotes_skip_everything():
    assert isinstance(evaluate(_alert("above"), {}), Skip)
    assert isinstance(evaluate(_alert("below"), {}), Skip)


def test_uses_asset_id_not_symbol():
    alert = _alert("above", target=1.0, asset="avalanche-2")
    assert evaluate(alert, {"AVAX": 50.0}) == Skip(SkipReason.NO_QUOTE_AVAILABLE)
    assert evaluate(alert, {"avalanche-2": 50.0}) == Trigger(50.0)


def test_fractional_targets_compare_exactly():
    alert = _alert("below", target=0.00001234)
    assert evaluate(alert, {"bitcoin": 0.00001234}) == Trigger(0.00001234)
    assert evaluate(alert, {"bitcoin": 0.00001235}) == NoTrigger()
