"""
Render Scheduler - periodic redraw tick for interactive mode
"""
from typing import Any, Callable, Optional

from .logging_service import LoggingService, get_logger
from .message_loop import MessageLoop


INTERACTIVE_UPDATE_RATE_MS = 1000


class RenderScheduler:
    """
    Owns at most one pending tick on the message loop.

    States are Stopped (no tick pending) and Running (one tick pending).
    The scheduler keeps only the two callables it is given, never the
    face itself, and every tick re-checks a cancellation flag before
    calling back so nothing fires after teardown().
    """

    def __init__(
        self,
        loop: MessageLoop,
        should_run: Callable[[], bool],
        redraw: Callable[[], None],
        interval_ms: int = INTERACTIVE_UPDATE_RATE_MS,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize scheduler.

        Args:
            loop: Control-thread message loop
            should_run: True while the face is visible and interactive
            redraw: Requests one redraw
            interval_ms: Tick period; ticks land on multiples of it
            logger: Logging service
        """
        self._loop = loop
        self._should_run = should_run
        self._redraw = redraw
        self._interval_ms = interval_ms
        self._logger = (logger or get_logger()).for_component('scheduler')

        self._token: Any = None
        self._generation = 0
        self._torn_down = False

    def should_run(self) -> bool:
        if self._torn_down:
            return False
        return bool(self._should_run())

    def reconcile(self) -> None:
        """
        Cancel the pending tick and schedule a fresh one if eligible.
        Safe to call any number of times, including after teardown.
        """
        if self._torn_down:
            self._logger.debug("reconcile() after teardown ignored")
            return
        was_running = self.is_running
        self._cancel_pending()
        if self.should_run():
            self._schedule(0)
        if was_running != self.is_running:
            self._logger.debug(f"Scheduler {'started' if self.is_running else 'stopped'}")

    def on_tick(self) -> None:
        """Redraw, then re-arm on the next second boundary if still eligible"""
        if self._torn_down:
            return
        self._redraw()
        if self.should_run():
            self._schedule(self.next_delay_ms(self._loop.now_ms()))

    def next_delay_ms(self, now_ms: int) -> int:
        """Delay to the next interval boundary; a tick exactly on one waits a full interval"""
        return self._interval_ms - (now_ms % self._interval_ms)

    def teardown(self) -> None:
        """Cancel unconditionally; no tick may fire afterwards"""
        self._cancel_pending()
        self._torn_down = True

    def _schedule(self, delay_ms: int) -> None:
        self._cancel_pending()
        self._generation += 1
        generation = self._generation

        def fire():
            if generation != self._generation or self._torn_down:
                return
            self._token = None
            self.on_tick()

        self._token = self._loop.post_delayed(fire, delay_ms)

    def _cancel_pending(self) -> None:
        if self._token is not None:
            self._loop.cancel(self._token)
            self._token = None
        self._generation += 1

    @property
    def is_running(self) -> bool:
        """True while a tick is pending"""
        return self._token is not None
