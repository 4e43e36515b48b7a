"""Scheduler that drives reconciliation cycles.

Cycles fire on a fixed interval and on explicit request. The two sources
are independent, so cycles may overlap; the reconciler tolerates that.
"""

import logging
import threading
import time
from collections import deque
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from pricewatch.engine.reconciler import Reconciler
from pricewatch.errors import StoreUnavailableError
from pricewatch.models import RunSummary

logger = logging.getLogger(__name__)


class TriggerSource(str, Enum):
    """What caused a cycle to run."""

    INTERVAL = "interval"
    MANUAL = "manual"


class CycleRun(BaseModel):
    """Record of one scheduled cycle, including its retries."""

    source: TriggerSource = Field(..., description="What fired the cycle")
    attempts: int = Field(..., ge=1, description="Number of cycle attempts")
    started_at: datetime = Field(..., description="When the first attempt started")
    finished_at: datetime = Field(..., description="When the last attempt ended")
    summary: Optional[RunSummary] = Field(default=None, description="Cycle result")
    error: Optional[str] = Field(default=None, description="Fatal error, if any")

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        """Whether the cycle produced a summary."""
        return self.summary is not None


class Scheduler:
    """Fires reconciliation cycles on an interval and on demand."""

    HISTORY_SIZE = 50
    POLL_SECONDS = 0.5

    def __init__(
        self,
        reconciler: Reconciler,
        *,
        interval_seconds: float = 300,
        max_retries: int = 2,
        retry_delay_seconds: float = 5.0,
        on_complete: Optional[Callable[[CycleRun], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the scheduler.

        Args:
            reconciler: Reconciler to drive.
            interval_seconds: Seconds between interval-triggered cycles.
            max_retries: Extra attempts after a failed alert load.
            retry_delay_seconds: Pause between attempts.
            on_complete: Called with every finished :class:`CycleRun`.
            sleep: Sleep function used between retries.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.reconciler = reconciler
        self.interval_seconds = interval_seconds
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.on_complete = on_complete
        self._sleep = sleep
        self._requested = threading.Event()
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self.history: deque[CycleRun] = deque(maxlen=self.HISTORY_SIZE)

    def fire(self, source: TriggerSource = TriggerSource.MANUAL) -> CycleRun:
        """Run one cycle, retrying only when alerts could not be loaded.

        A cycle that produced a summary is never retried, even if it
        recorded item failures, since its alerts may already have been
        transitioned and notified.

        Args:
            source: What triggered the cycle.

        Returns:
            The finished cycle record.
        """
        started_at = datetime.now()
        attempts = 0
        error: Optional[str] = None
        summary: Optional[RunSummary] = None

        while True:
            attempts += 1
            try:
                summary = self.reconciler.run_cycle()
                error = None
                break
            except StoreUnavailableError as e:
                error = str(e)
                if attempts > self.max_retries:
                    logger.error(
                        "%s cycle failed after %d attempts: %s", source.value, attempts, e
                    )
                    break
                logger.warning(
                    "%s cycle attempt %d failed, retrying in %gs: %s",
                    source.value, attempts, self.retry_delay_seconds, e,
                )
                self._sleep(self.retry_delay_seconds)

        run = CycleRun(
            source=source,
            attempts=attempts,
            started_at=started_at,
            finished_at=datetime.now(),
            summary=summary,
            error=error,
        )
        self._record(run)
        return run

    def _record(self, run: CycleRun) -> None:
        with self._lock:
            self.history.append(run)
        if self.on_complete is not None:
            self.on_complete(run)

    def _fire_in_background(self, source: TriggerSource) -> None:
        started_at = datetime.now()
        try:
            self.fire(source)
        except Exception as e:
            logger.exception("%s cycle crashed: %s", source.value, e)
            self._record(CycleRun(
                source=source,
                attempts=1,
                started_at=started_at,
                finished_at=datetime.now(),
                error=f"{type(e).__name__}: {e}",
            ))

    def request_run(self) -> None:
        """Ask the running loop to fire a manual cycle as soon as possible."""
        self._requested.set()

    def _spawn(self, source: TriggerSource) -> threading.Thread:
        thread = threading.Thread(
            target=self._fire_in_background,
            args=(source,),
            name=f"pricewatch-{source.value}",
            daemon=True,
        )
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()
        return thread

    def run_forever(
        self,
        stop_event: Optional[threading.Event] = None,
        max_cycles: Optional[int] = None,
        run_immediately: bool = True,
    ) -> None:
        """Fire cycles until stopped.

        Args:
            stop_event: Set to stop the loop.
            max_cycles: Stop after this many cycles have been fired.
            run_immediately: Fire an interval cycle on start instead of
                waiting one full interval.
        """
        stop_event = stop_event or threading.Event()
        fired = 0
        next_tick = time.monotonic() if run_immediately else time.monotonic() + self.interval_seconds
        logger.info("Scheduler started, interval %gs", self.interval_seconds)

        try:
            while not stop_event.is_set():
                if max_cycles is not None and fired >= max_cycles:
                    break

                remaining = next_tick - time.monotonic()
                # Short waits keep the loop responsive to stop_event.
                if self._requested.wait(min(max(0.0, remaining), self.POLL_SECONDS)):
                    self._requested.clear()
                    self._spawn(TriggerSource.MANUAL)
                    fired += 1
                    continue

                if stop_event.is_set() or time.monotonic() < next_tick:
                    continue
                next_tick += self.interval_seconds
                self._spawn(TriggerSource.INTERVAL)
                fired += 1
        finally:
            with self._lock:
                threads = list(self._threads)
            for thread in threads:
                thread.join()
            logger.info("Scheduler stopped after %d cycles", fired)
