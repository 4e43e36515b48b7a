"""Alert evaluation and notification engine."""

from pricewatch.engine.evaluation import evaluate_condition, group_by_symbol, should_trigger
from pricewatch.engine.reconciler import Reconciler
from pricewatch.engine.scheduler import CycleRun, Scheduler, TriggerSource

__all__ = [
    "CycleRun",
    "Reconciler",
    "Scheduler",
    "TriggerSource",
    "evaluate_condition",
    "group_by_symbol",
    "should_trigger",
]
