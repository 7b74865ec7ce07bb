"""Interrupt windows: a countdown racing a UI-reported action.

Each node presentation owns at most one window. The controller is an
explicit state machine:

    PRESENTING -> WINDOW_OPEN -> TAKEN
                              -> EXPIRED
               (any)          -> CANCELLED   (navigated away)

Time is read from an injectable monotonic clock, so the window can be driven
synchronously by a UI that polls (``poll``/``take``/``expire``) or awaited
with :meth:`InterruptController.wait` in an asyncio front end. Cancelling is
always silent.
"""

from __future__ import annotations

import asyncio
import time
from enum import StrEnum
from typing import TYPE_CHECKING

from stationgraph.engine.errors import SessionStateError
from stationgraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from stationgraph.models import InterruptWindow

log = get_logger(__name__)


class InterruptPhase(StrEnum):
    PRESENTING = "presenting"
    WINDOW_OPEN = "window_open"
    TAKEN = "taken"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class CancellationToken:
    """Handle for one open window; cancelling twice is fine."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class InterruptController:
    """Tracks the interrupt window of the node currently being presented.

    Args:
        clock: Monotonic clock in seconds (``time.monotonic`` by default).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.phase = InterruptPhase.PRESENTING
        self.window: InterruptWindow | None = None
        self.choice_id: str | None = None
        self._opened_at = 0.0
        self._token: CancellationToken | None = None
        self._settled: asyncio.Event | None = None

    def present(self) -> None:
        """Start a new node presentation, cancelling any window still open."""
        self.cancel()
        self.phase = InterruptPhase.PRESENTING
        self.window = None
        self.choice_id = None

    def open(self, window: InterruptWindow, choice_id: str) -> CancellationToken:
        """Start the countdown for ``window``.

        Raises:
            SessionStateError: If this presentation already opened a window.
        """
        if self.phase is not InterruptPhase.PRESENTING:
            raise SessionStateError(f"interrupt window already {self.phase} for this node")
        self.window = window
        self.choice_id = choice_id
        self._opened_at = self._clock()
        self._token = CancellationToken()
        self._settled = asyncio.Event()
        self.phase = InterruptPhase.WINDOW_OPEN
        log.debug("interrupt_opened", choice=choice_id, duration_ms=window.duration, type=str(window.type))
        return self._token

    def remaining_ms(self) -> float:
        """Milliseconds left in the open window (0 when none is open)."""
        if self.phase is not InterruptPhase.WINDOW_OPEN or self.window is None:
            return 0.0
        elapsed = (self._clock() - self._opened_at) * 1000
        return max(0.0, self.window.duration - elapsed)

    def poll(self) -> InterruptPhase:
        """Advance to EXPIRED if the countdown has run out."""
        if self.phase is InterruptPhase.WINDOW_OPEN and self.remaining_ms() <= 0:
            self._settle(InterruptPhase.EXPIRED)
        return self.phase

    def take(self) -> InterruptWindow | None:
        """Report the qualifying action.

        Returns:
            The window if it was taken in time, None if it had already
            expired, been cancelled, or was never opened.
        """
        window = self.pending()
        if window is not None:
            self._settle(InterruptPhase.TAKEN)
        return window

    def pending(self) -> InterruptWindow | None:
        """The window an action reported now would take, without settling it."""
        if self.poll() is not InterruptPhase.WINDOW_OPEN:
            log.debug("interrupt_take_ignored", phase=str(self.phase))
            return None
        return self.window

    def mark_taken(self) -> None:
        """Settle an open window as taken once its action has gone through."""
        if self.phase is InterruptPhase.WINDOW_OPEN:
            self._settle(InterruptPhase.TAKEN)

    def expire(self) -> None:
        """Report that the UI's countdown elapsed. No-op unless a window is open."""
        if self.phase is InterruptPhase.WINDOW_OPEN:
            self._settle(InterruptPhase.EXPIRED)

    def cancel(self) -> None:
        """Abandon the open window, if any. Never raises."""
        if self.phase is InterruptPhase.WINDOW_OPEN:
            self._settle(InterruptPhase.CANCELLED)

    async def wait(self) -> InterruptPhase:
        """Wait until the window is taken, cancelled, or runs out."""
        if self.phase is not InterruptPhase.WINDOW_OPEN or self._settled is None:
            return self.phase
        try:
            await asyncio.wait_for(self._settled.wait(), timeout=self.remaining_ms() / 1000)
        except TimeoutError:
            self.expire()
        return self.phase

    def _settle(self, phase: InterruptPhase) -> None:
        self.phase = phase
        if self._token is not None:
            self._token.cancel()
        if self._settled is not None:
            self._settled.set()
        log.debug("interrupt_settled", choice=self.choice_id, phase=str(phase))
