"""Alert reconciliation cycle.

One cycle loads every active alert, fetches one quote per distinct
symbol, evaluates each alert against its quote, atomically moves the
alerts that fire from Active to Triggered and notifies their owners.

Only a failure to load alerts aborts the cycle. Quote, transition,
directory and delivery failures are isolated per item and returned in
the :class:`RunSummary`.

Delivery is at-most-once: an alert is marked Triggered before its owner
is notified, and a notification that fails afterwards is not retried.
"""

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Optional

from pricewatch.db.store import DataStore
from pricewatch.directory import BaseUserDirectory
from pricewatch.engine.evaluation import group_by_symbol, should_trigger
from pricewatch.errors import StoreUnavailableError
from pricewatch.models import (
    Alert,
    ItemError,
    NotificationOutcome,
    PriceAlertNotification,
    RunSummary,
)
from pricewatch.notifiers.base import BaseNotifier
from pricewatch.quotes.base import BaseQuoteProvider, Quote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Hit:
    """An alert whose condition held against a quote."""

    alert: Alert
    quote: Quote
    triggered_at: datetime
    address: Optional[str] = None


class Reconciler:
    """Runs reconciliation cycles against the alert store.

    Cycles may overlap; the store's conditional transition guarantees
    that an alert is won by at most one of them.
    """

    POLL_SECONDS = 0.05

    def __init__(
        self,
        store: DataStore,
        quotes: BaseQuoteProvider,
        directory: BaseUserDirectory,
        notifier: BaseNotifier,
        *,
        max_workers: int = 8,
        call_timeout: float = 10.0,
        resolve_before_transition: bool = False,
    ):
        """Initialize the reconciler.

        Args:
            store: Alert store.
            quotes: Quote provider.
            directory: User directory used to address notifications.
            notifier: Notification dispatcher.
            max_workers: Upper bound on concurrent quote fetches.
            call_timeout: Seconds each external call may run once started.
            resolve_before_transition: Resolve the owner's address before
                marking an alert Triggered, so an unknown user leaves the
                alert Active instead of losing the notification.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.store = store
        self.quotes = quotes
        self.directory = directory
        self.notifier = notifier
        self.max_workers = max_workers
        self.call_timeout = call_timeout
        self.resolve_before_transition = resolve_before_transition

    def run_cycle(self) -> RunSummary:
        """Run one reconciliation cycle.

        Returns:
            Summary of the cycle with per-item errors.

        Raises:
            StoreUnavailableError: If active alerts could not be loaded.
        """
        started_at = datetime.now()
        alerts = self._load()
        logger.info("Found %d active alerts", len(alerts))
        if not alerts:
            return RunSummary(started_at=started_at, finished_at=datetime.now())

        grouped = group_by_symbol(alerts)
        logger.info("Checking %d unique symbols", len(grouped))

        errors: list[ItemError] = []
        outcomes: list[NotificationOutcome] = []

        quotes = self._fetch_quotes(grouped, errors)
        hits = self._evaluate(grouped, quotes)
        if self.resolve_before_transition:
            hits = self._resolve_addresses(hits, errors)
        triggered = self._transition(hits, errors)
        deliverable = triggered
        if not self.resolve_before_transition:
            deliverable = self._resolve_addresses(triggered, errors, outcomes)
        self._send(deliverable, errors, outcomes)

        sent = sum(1 for outcome in outcomes if outcome.success)
        summary = RunSummary(
            alerts_checked=len(alerts),
            alerts_triggered=len(triggered),
            notifications_sent=sent,
            notifications_failed=len(outcomes) - sent,
            errors=errors,
            symbols_checked=len(grouped),
            outcomes=outcomes,
            started_at=started_at,
            finished_at=datetime.now(),
        )
        logger.info(summary.message)
        return summary

    def _load(self) -> list[Alert]:
        try:
            return self.store.list_active()
        except StoreUnavailableError as e:
            logger.error("Error fetching alerts: %s", e)
            raise
        except Exception as e:
            logger.error("Error fetching alerts: %s", e)
            raise StoreUnavailableError(f"Cannot load active alerts: {e}") from e

    @staticmethod
    def _describe(error: BaseException) -> str:
        return str(error) or type(error).__name__

    def _call_each(
        self, stage: str, func: Callable[[Any], Any], args: list, workers: int
    ) -> list[tuple[Any, Optional[str]]]:
        """Call ``func`` once per argument on a fresh pool of ``workers``.

        Each call gets ``call_timeout`` seconds from the moment a worker
        picks it up, so a hung call never eats into another call's time.
        A call still queued once every earlier wave could have timed out
        is failed as well.

        Returns:
            ``(result, error)`` per argument, in order.
        """
        if not args:
            return []
        started: dict[int, float] = {}

        def run(index: int, arg):
            started[index] = time.monotonic()
            return func(arg)

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"pricewatch-{stage}")
        try:
            futures = [pool.submit(run, index, arg) for index, arg in enumerate(args)]
            waves = -(-len(args) // workers)
            queue_deadline = time.monotonic() + self.call_timeout * waves
            results: dict[int, tuple[Any, Optional[str]]] = {}
            pending = set(range(len(futures)))
            while pending:
                now = time.monotonic()
                for index in sorted(pending):
                    future = futures[index]
                    if future.done():
                        try:
                            results[index] = (future.result(), None)
                        except Exception as e:
                            results[index] = (None, self._describe(e))
                    elif index in started:
                        if now - started[index] < self.call_timeout:
                            continue
                        results[index] = (None, f"Timed out after {self.call_timeout:g}s")
                    elif now >= queue_deadline:
                        results[index] = (None, "Timed out waiting for a free worker")
                    else:
                        continue
                    pending.discard(index)
                if pending:
                    wait(
                        [futures[index] for index in pending],
                        timeout=self.POLL_SECONDS,
                        return_when=FIRST_COMPLETED,
                    )
        finally:
            # Hung calls are abandoned rather than awaited.
            pool.shutdown(wait=False, cancel_futures=True)
        return [results[index] for index in range(len(args))]

    def _fetch_quotes(
        self, grouped: dict[str, list[Alert]], errors: list[ItemError]
    ) -> dict[str, Quote]:
        symbols = list(grouped)
        results = self._call_each(
            "quote", self.quotes.get_quote, symbols, min(self.max_workers, len(symbols))
        )
        quotes: dict[str, Quote] = {}
        for symbol, (quote, message) in zip(symbols, results):
            if message is None:
                quotes[symbol] = quote
            else:
                logger.warning(
                    "Skipping %d alerts for %s: %s", len(grouped[symbol]), symbol, message
                )
                errors.append(ItemError(stage="quote", symbol=symbol, message=message))
        return quotes

    def _evaluate(
        self, grouped: dict[str, list[Alert]], quotes: dict[str, Quote]
    ) -> list[_Hit]:
        now = datetime.now()
        hits = []
        for symbol, alerts in grouped.items():
            quote = quotes.get(symbol)
            if quote is None:
                continue
            for alert in alerts:
                if should_trigger(alert, quote.price):
                    logger.info(
                        "Alert %s triggered for %s: %.2f %s %.2f",
                        alert.id, symbol, quote.price, alert.condition, alert.threshold,
                    )
                    hits.append(_Hit(alert=alert, quote=quote, triggered_at=now))
        return hits

    def _transition(self, hits: list[_Hit], errors: list[ItemError]) -> list[_Hit]:
        won = []
        for hit in hits:
            try:
                changed = self.store.try_mark_triggered(hit.alert.id, hit.triggered_at)
            except Exception as e:
                message = self._describe(e)
                logger.warning("Could not mark alert %s triggered: %s", hit.alert.id, message)
                errors.append(ItemError(
                    stage="transition",
                    symbol=hit.alert.symbol,
                    alert_id=hit.alert.id,
                    message=message,
                ))
                continue
            if not changed:
                logger.debug("Alert %s was already triggered by another cycle", hit.alert.id)
                continue
            won.append(hit)
        return won

    def _resolve_addresses(
        self,
        hits: list[_Hit],
        errors: list[ItemError],
        outcomes: Optional[list[NotificationOutcome]] = None,
    ) -> list[_Hit]:
        """Attach each owner's address, looking every user up once.

        Hits whose owner cannot be resolved are reported as directory
        errors. Only already-transitioned hits count as failed
        notifications, so ``outcomes`` is left out before the transition.
        """
        user_ids = list(dict.fromkeys(hit.alert.user_id for hit in hits))
        # One worker per user: a hung lookup must not hold up another user.
        results = self._call_each(
            "directory", self.directory.resolve_email, user_ids, len(user_ids)
        )
        lookups = dict(zip(user_ids, results))

        resolved = []
        for hit in hits:
            user_id = hit.alert.user_id
            address, message = lookups[user_id]
            if message is None:
                resolved.append(replace(hit, address=address))
                continue
            logger.warning("No address for alert %s (user %s): %s", hit.alert.id, user_id, message)
            errors.append(ItemError(
                stage="directory",
                symbol=hit.alert.symbol,
                alert_id=hit.alert.id,
                message=message,
            ))
            if outcomes is not None:
                outcomes.append(NotificationOutcome(
                    alert_id=hit.alert.id,
                    symbol=hit.alert.symbol,
                    success=False,
                    error=message,
                ))
        return resolved

    @staticmethod
    def _build_notification(hit: _Hit) -> PriceAlertNotification:
        return PriceAlertNotification(
            address=hit.address,
            symbol=hit.alert.symbol,
            company=hit.alert.company,
            condition=hit.alert.condition,
            current_price=hit.quote.price,
            target_price=hit.alert.threshold,
            change_percent=hit.quote.change_percent,
            timestamp=hit.triggered_at,
        )

    def _send(
        self,
        hits: list[_Hit],
        errors: list[ItemError],
        outcomes: list[NotificationOutcome],
    ) -> None:
        # These alerts are already Triggered, so every delivery starts at
        # once and none of them waits behind a hung one.
        results = self._call_each(
            "delivery",
            self.notifier.send_price_alert,
            [self._build_notification(hit) for hit in hits],
            len(hits),
        )
        for hit, (result, error) in zip(hits, results):
            if error is None and not result.success:
                error = result.error or "Delivery failed"

            if error is None:
                logger.info("Notification sent to %s for %s", hit.address, hit.alert.symbol)
            else:
                logger.warning("Notification for alert %s failed: %s", hit.alert.id, error)
                errors.append(ItemError(
                    stage="delivery",
                    symbol=hit.alert.symbol,
                    alert_id=hit.alert.id,
                    message=error,
                ))
            outcomes.append(NotificationOutcome(
                alert_id=hit.alert.id,
                symbol=hit.alert.symbol,
                address=hit.address,
                success=error is None,
                error=error,
            ))
