"""Grouping and trigger evaluation for alert snapshots."""

from typing import Iterable

from pricewatch.models import VALID_CONDITIONS, Alert


def group_by_symbol(alerts: Iterable[Alert]) -> dict[str, list[Alert]]:
    """Partition alerts by symbol.

    Symbols appear in order of first occurrence and each symbol's alerts
    keep their input order, so the mapping enumerates deterministically.

    Args:
        alerts: Alert snapshots.

    Returns:
        Mapping of symbol to the alerts referencing it.
    """
    grouped: dict[str, list[Alert]] = {}
    for alert in alerts:
        grouped.setdefault(alert.symbol, []).append(alert)
    return grouped


def evaluate_condition(condition: str, threshold: float, price: float) -> bool:
    """Check a one-sided, inclusive price condition.

    Args:
        condition: 'greater' or 'less'.
        threshold: Target price.
        price: Live price.

    Returns:
        True if ``greater`` and price >= threshold, or ``less`` and
        price <= threshold.

    Raises:
        ValueError: If the condition is not recognised.
    """
    if condition == "greater":
        return price >= threshold
    if condition == "less":
        return price <= threshold
    raise ValueError(
        f"Unknown condition {condition!r}; expected one of {', '.join(VALID_CONDITIONS)}"
    )


def should_trigger(alert: Alert, price: float) -> bool:
    """Whether an alert fires at the given price."""
    if alert.alert_type != "price":
        return False
    return evaluate_condition(alert.condition, alert.threshold, price)
