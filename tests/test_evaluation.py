"""Property-based tests for alert grouping and trigger evaluation.

**Feature: price-alerts**
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from pricewatch.engine.evaluation import evaluate_condition, group_by_symbol, should_trigger
from pricewatch.models import Alert

price_strategy = st.floats(min_value=0.01, max_value=100000.0, allow_nan=False, allow_infinity=False)


def make_alert(alert_id: int, symbol: str, condition: str = "greater", threshold: float = 100.0) -> Alert:
    return Alert(
        id=alert_id,
        user_id="alice",
        symbol=symbol,
        company=symbol,
        alert_name=f"alert {alert_id}",
        condition=condition,
        threshold=threshold,
    )


class TestConditionEvaluation:
    """
    **Feature: price-alerts, Property 7: Inclusive Threshold Evaluation**

    *For any* price and threshold, 'greater' fires iff price >= threshold
    and 'less' fires iff price <= threshold.
    """

    @given(threshold=price_strategy, price=price_strategy)
    @settings(max_examples=200)
    def test_greater_condition(self, threshold: float, price: float):
        assert evaluate_condition("greater", threshold, price) == (price >= threshold)

    @given(threshold=price_strategy, price=price_strategy)
    @settings(max_examples=200)
    def test_less_condition(self, threshold: float, price: float):
        assert evaluate_condition("less", threshold, price) == (price <= threshold)

    @given(threshold=price_strategy)
    def test_boundary_fires_both_ways(self, threshold: float):
        """A price exactly at the threshold satisfies both conditions."""
        assert evaluate_condition("greater", threshold, threshold)
        assert evaluate_condition("less", threshold, threshold)

    def test_greater_just_below_threshold(self):
        assert evaluate_condition("greater", 100.0, 99.99) is False
        assert evaluate_condition("greater", 100.0, 100.0) is True

    def test_less_just_above_threshold(self):
        assert evaluate_condition("less", 50.0, 50.01) is False
        assert evaluate_condition("less", 50.0, 50.0) is True

    def test_unknown_condition_rejected(self):
        with pytest.raises(ValueError, match="Unknown condition"):
            evaluate_condition("between", 10.0, 10.0)

    def test_should_trigger_uses_alert_fields(self):
        alert = make_alert(1, "AAPL", condition="less", threshold=150.0)

        assert should_trigger(alert, 149.5) is True
        assert should_trigger(alert, 150.5) is False


class TestGroupBySymbol:
    """
    **Feature: price-alerts, Property 8: Grouping Partition**

    *For any* list of alerts, grouping yields one key per distinct symbol,
    every alert exactly once, in first-occurrence order.
    """

    @given(symbols=st.lists(st.sampled_from(["AAPL", "MSFT", "TSLA", "NVDA", "AMD"]), max_size=30))
    @settings(max_examples=100)
    def test_grouping_is_a_partition(self, symbols: list[str]):
        alerts = [make_alert(i, symbol) for i, symbol in enumerate(symbols)]

        grouped = group_by_symbol(alerts)

        assert list(grouped) == list(dict.fromkeys(symbols))
        flattened = sorted(a.id for group in grouped.values() for a in group)
        assert flattened == list(range(len(symbols)))
        for symbol, group in grouped.items():
            assert all(a.symbol == symbol for a in group)
            assert [a.id for a in group] == sorted(a.id for a in group)

    def test_empty_input(self):
        assert group_by_symbol([]) == {}
