"""
Message Loop - the single control thread every face event runs on
Delayed callbacks are identified by tokens and can be cancelled.
post() is the only method that may be called from other threads.
"""
import heapq
import itertools
import queue
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from .logging_service import LoggingService, get_logger


def wall_clock_ms() -> int:
    """Milliseconds since the epoch"""
    return int(time.time() * 1000)


class ManualClock:
    """
    Settable millisecond clock for headless runs and tests.
    """

    def __init__(self, start_ms: int = 0):
        self._ms = int(start_ms)

    def __call__(self) -> int:
        return self._ms

    def set_ms(self, value: int) -> None:
        if value < self._ms:
            raise ValueError("ManualClock cannot go backwards")
        self._ms = int(value)

    def advance(self, delta_ms: int) -> None:
        self.set_ms(self._ms + delta_ms)


class MessageLoop:
    """
    Interface shared by the loop implementations.
    """

    def now_ms(self) -> int:
        raise NotImplementedError

    def post(self, callback: Callable[[], None]) -> Any:
        """Queue callback to run as soon as possible (thread-safe)"""
        raise NotImplementedError

    def post_delayed(self, callback: Callable[[], None], delay_ms: int) -> Any:
        """Queue callback to run after delay_ms; returns a cancellation token"""
        raise NotImplementedError

    def cancel(self, token: Any) -> bool:
        """Cancel a pending callback; unknown or fired tokens are ignored"""
        raise NotImplementedError


class SimpleMessageLoop(MessageLoop):
    """
    Heap-ordered loop used for headless rendering and tests.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize loop.

        Args:
            clock: Millisecond clock (wall clock by default)
            logger: Logging service
        """
        self._clock = clock or wall_clock_ms
        self._logger = (logger or get_logger()).for_component('loop')
        self._heap: List[Tuple[int, int]] = []
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._seq = itertools.count(1)
        self._inbox: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._wakeup = threading.Event()
        self._running = False

    def now_ms(self) -> int:
        return self._clock()

    def post(self, callback: Callable[[], None]) -> None:
        self._inbox.put(callback)
        self._wakeup.set()

    def post_delayed(self, callback: Callable[[], None], delay_ms: int) -> int:
        token = next(self._seq)
        due = self.now_ms() + max(0, int(delay_ms))
        self._callbacks[token] = callback
        heapq.heappush(self._heap, (due, token))
        return token

    def cancel(self, token: Any) -> bool:
        return self._callbacks.pop(token, None) is not None

    def is_pending(self, token: Any) -> bool:
        return token in self._callbacks

    def pending_count(self) -> int:
        return len(self._callbacks)

    def next_due_ms(self) -> Optional[int]:
        """Due time of the earliest live callback"""
        while self._heap and self._heap[0][1] not in self._callbacks:
            heapq.heappop(self._heap)
        return self._heap[0][0] if self._heap else None

    def _drain_inbox(self) -> int:
        ran = 0
        while True:
            try:
                callback = self._inbox.get_nowait()
            except queue.Empty:
                return ran
            self._invoke(callback)
            ran += 1

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            self._logger.error(f"Callback {callback!r} failed: {e}", exc_info=True)

    def run_pending(self) -> int:
        """
        Run posted callbacks and every delayed callback that is due.

        Returns:
            Number of callbacks executed
        """
        ran = self._drain_inbox()
        while True:
            due = self.next_due_ms()
            if due is None or due > self.now_ms():
                break
            _, token = heapq.heappop(self._heap)
            callback = self._callbacks.pop(token)
            self._invoke(callback)
            ran += 1 + self._drain_inbox()
        return ran

    def run_for(self, duration_ms: int) -> int:
        """
        Step a ManualClock forward, firing callbacks at their due times.

        Args:
            duration_ms: Simulated time to advance
        """
        if not isinstance(self._clock, ManualClock):
            raise TypeError("run_for() needs a ManualClock")
        end = self.now_ms() + duration_ms
        ran = self.run_pending()
        while True:
            due = self.next_due_ms()
            if due is None or due > end:
                break
            self._clock.set_ms(max(due, self.now_ms()))
            ran += self.run_pending()
        self._clock.set_ms(end)
        return ran + self.run_pending()

    def run_forever(self) -> None:
        """Block the calling thread, dispatching callbacks until stop()"""
        self._running = True
        while self._running:
            self.run_pending()
            due = self.next_due_ms()
            timeout = None if due is None else max(0, due - self.now_ms()) / 1000.0
            self._wakeup.wait(timeout)
            self._wakeup.clear()

    def stop(self) -> None:
        """Stop run_forever(); safe from any thread"""
        self._running = False
        self._wakeup.set()


class TkMessageLoop(MessageLoop):
    """
    Tkinter-backed loop: delayed callbacks map onto root.after().
    Cross-thread posts are queued and drained on the Tk thread.
    """

    POLL_INTERVAL_MS = 50

    def __init__(self, root, logger: Optional[LoggingService] = None):
        self._root = root
        self._logger = (logger or get_logger()).for_component('loop')
        self._inbox: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self._poll_id = None
        self._pending: Dict[str, Callable[[], None]] = {}

    def start(self) -> None:
        """Begin draining cross-thread posts"""
        if self._poll_id is None:
            self._poll_id = self._root.after(self.POLL_INTERVAL_MS, self._poll)

    def stop(self) -> None:
        if self._poll_id is not None:
            self._root.after_cancel(self._poll_id)
            self._poll_id = None
        for after_id in list(self._pending):
            self.cancel(after_id)

    def _poll(self) -> None:
        while True:
            try:
                callback = self._inbox.get_nowait()
            except queue.Empty:
                break
            self._invoke(callback)
        self._poll_id = self._root.after(self.POLL_INTERVAL_MS, self._poll)

    def _invoke(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            self._logger.error(f"Callback {callback!r} failed: {e}", exc_info=True)

    def now_ms(self) -> int:
        return wall_clock_ms()

    def post(self, callback: Callable[[], None]) -> None:
        self._inbox.put(callback)

    def post_delayed(self, callback: Callable[[], None], delay_ms: int) -> str:
        holder = {}

        def fire():
            self._pending.pop(holder['id'], None)
            self._invoke(callback)

        holder['id'] = self._root.after(max(0, int(delay_ms)), fire)
        self._pending[holder['id']] = callback
        return holder['id']

    def cancel(self, token: Any) -> bool:
        if self._pending.pop(token, None) is None:
            return False
        self._root.after_cancel(token)
        return True
