"""
Time-windowed admission gate for the CRPT client.

At most ``request_limit`` callers are admitted per window. Excess callers
block until the background ticker resets the counter. Admitted actions run
under the gate's lock, so the gate also serializes the protected operation.
"""

import threading
import time
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, TypeVar, Union

from shared.errors import ConfigurationError, OperationFailedError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

T = TypeVar("T")


def _window_seconds(window: Union[float, int, timedelta]) -> float:
    if isinstance(window, timedelta):
        seconds = window.total_seconds()
    elif isinstance(window, (int, float)) and not isinstance(window, bool):
        seconds = float(window)
    else:
        raise ConfigurationError(
            "Window must be a number of seconds or a timedelta",
            details={"window": repr(window)}
        )
    if seconds <= 0:
        raise ConfigurationError("Window must be positive", details={"window_seconds": seconds})
    return seconds


class RateLimitedGate:
    """Fixed-window admission counter with blocking waiters."""

    def __init__(self,
                 window: Union[float, int, timedelta],
                 request_limit: int,
                 *,
                 name: str = "gate",
                 metrics: Optional[MetricsCollector] = None,
                 autostart: bool = True):
        if isinstance(request_limit, bool) or not isinstance(request_limit, int) or request_limit < 1:
            raise ConfigurationError(
                "Request limit must be a positive integer",
                details={"request_limit": repr(request_limit)}
            )

        self.name = name
        self.window = _window_seconds(window)
        self.request_limit = request_limit
        self.metrics = metrics
        self.logger = get_logger(f"crpt.gate.{name}")

        # Re-entrant, so an action may call back into the gate
        self._condition = threading.Condition(threading.RLock())
        self._counter = 0
        self._generation = 0
        self._waiting = 0
        self._ticks = 0

        self._stop = threading.Event()
        self._ticker: Optional[threading.Thread] = None

        self.logger.info(
            "Rate gate created",
            request_limit=request_limit,
            window_seconds=self.window
        )

        if autostart:
            self.start()

    @property
    def counter(self) -> int:
        with self._condition:
            return self._counter

    def start(self) -> None:
        """Start the background reset ticker; tick 0 fires immediately."""
        with self._condition:
            if self._ticker is not None:
                return
            self._ticker = threading.Thread(
                target=self._run_ticker,
                name=f"{self.name}-gate-ticker",
                daemon=True
            )
            self._ticker.start()

    def is_running(self) -> bool:
        ticker = self._ticker
        return ticker is not None and ticker.is_alive() and not self._stop.is_set()

    def _run_ticker(self) -> None:
        next_tick = time.monotonic()
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                self.logger.exception("Gate tick failed")
            next_tick += self.window
            now = time.monotonic()
            if next_tick <= now:
                # Late ticks coalesce; restart the schedule from now
                self.logger.debug("Gate tick delayed", behind_seconds=now - next_tick)
                next_tick = now + self.window
            if self._stop.wait(next_tick - now):
                break

    def tick(self) -> None:
        """Reset the counter to zero and wake every blocked caller."""
        with self._condition:
            self._counter = 0
            self._generation += 1
            self._ticks += 1
            self._condition.notify_all()
            self.logger.debug("Request limits refreshed", waiting=self._waiting)
        if self.metrics:
            self.metrics.record_reset(self.name)

    def run_gated(self, action: Callable[[], T]) -> T:
        """Admit the caller, waiting for a reset if over the limit, then run ``action``.

        ``action`` executes while the gate's lock is held. Any exception it
        raises is re-raised as ``OperationFailedError`` chained to the
        original; the admission is not refunded.
        """
        with self._condition:
            self._counter += 1
            waited = False
            if self._counter > self.request_limit:
                waited = True
                self._await_reset()

            if self.metrics:
                self.metrics.record_admission(self.name, waited)

            try:
                return action()
            except Exception as e:
                self.logger.warning(
                    "Gated operation failed",
                    error=str(e),
                    error_type=type(e).__name__
                )
                if self.metrics:
                    self.metrics.record_failure(self.name)
                raise OperationFailedError(e) from e

    def _await_reset(self) -> None:
        # Caller holds self._condition
        generation = self._generation
        thread_name = threading.current_thread().name
        self.logger.info(
            "Thread awaiting gate reset",
            thread=thread_name,
            counter=self._counter,
            request_limit=self.request_limit
        )
        self._set_waiting(self._waiting + 1)
        try:
            while generation == self._generation and not self._stop.is_set():
                self._condition.wait()
        finally:
            self._set_waiting(self._waiting - 1)
        self.logger.debug("Thread admitted after reset", thread=thread_name)

    def _set_waiting(self, value: int) -> None:
        self._waiting = value
        if self.metrics:
            self.metrics.set_waiting(self.name, value)

    def get_state(self) -> Dict[str, Any]:
        """Get current gate state."""
        with self._condition:
            return {
                "name": self.name,
                "counter": self._counter,
                "request_limit": self.request_limit,
                "window_seconds": self.window,
                "waiting": self._waiting,
                "ticks": self._ticks,
                "running": self.is_running()
            }

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the ticker and release anyone still waiting."""
        self._stop.set()
        ticker = self._ticker
        if ticker is not None and ticker is not threading.current_thread():
            ticker.join(timeout if timeout is not None else self.window + 1.0)
        self.tick()
        self.logger.info("Rate gate closed")

    def __enter__(self) -> "RateLimitedGate":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
