"""
Channel Transport - opaque bidirectional link to the companion device
Completions are always delivered on the watch face's message loop.
"""
from typing import Callable, List, Optional

from ..core.logging_service import LoggingService, get_logger
from ..core.message_loop import MessageLoop
from ..core.protocol import DataEvent, DataEventType, DataItem
from ..core.states import TransportError


DataListener = Callable[[List[DataEvent]], None]
ResultCallback = Callable[[bool], None]


class ChannelTransport:
    """
    Interface the sync channel talks to.

    connect() and put_data_item() are asynchronous: their outcome arrives
    later through the callbacks, on the control thread.
    """

    def connect(self, on_connected: Callable[[], None],
                on_failed: Callable[[Exception], None]) -> None:
        raise NotImplementedError

    def disconnect(self) -> None:
        raise NotImplementedError

    @property
    def is_connected(self) -> bool:
        raise NotImplementedError

    def add_listener(self, listener: DataListener) -> None:
        raise NotImplementedError

    def remove_listener(self, listener: DataListener) -> None:
        raise NotImplementedError

    def put_data_item(self, item: DataItem, on_result: Optional[ResultCallback] = None) -> None:
        raise NotImplementedError


class LoopbackTransport(ChannelTransport):
    """
    In-process transport joining the watch face and a companion object.

    The companion side subscribes with on_companion_item() and answers
    with publish(). Failure switches simulate an unreachable or lossy link.
    """

    def __init__(self, loop: MessageLoop, logger: Optional[LoggingService] = None):
        self._loop = loop
        self._logger = (logger or get_logger()).for_component('transport')
        self._connected = False
        self._listeners: List[DataListener] = []
        self._companion_handlers: List[Callable[[DataItem], None]] = []

        self.fail_connect = False
        self.fail_puts = False
        self.drop_inbound = False

        self.connect_calls = 0
        self.disconnect_calls = 0
        self.sent: List[DataItem] = []

    # Watch side

    def connect(self, on_connected, on_failed) -> None:
        self.connect_calls += 1

        def complete():
            if self.fail_connect:
                on_failed(TransportError("companion unreachable"))
                return
            self._connected = True
            on_connected()

        self._loop.post(complete)

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def add_listener(self, listener: DataListener) -> None:
        if not self._connected:
            raise TransportError("add_listener on a closed channel")
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: DataListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def put_data_item(self, item: DataItem, on_result: Optional[ResultCallback] = None) -> None:
        delivered = self._connected and not self.fail_puts
        if delivered:
            self.sent.append(item)

        def complete():
            if delivered:
                for handler in list(self._companion_handlers):
                    handler(item)
            if on_result:
                on_result(delivered)

        self._loop.post(complete)

    # Companion side

    def on_companion_item(self, handler: Callable[[DataItem], None]) -> None:
        """Register the companion's handler for items put by the watch"""
        self._companion_handlers.append(handler)

    def publish(self, item: DataItem, event_type: DataEventType = DataEventType.CHANGED) -> None:
        """
        Deliver an item from the companion to the watch listeners.
        Thread-safe: delivery happens on the message loop.
        """
        def deliver():
            if self.drop_inbound or not self._connected:
                self._logger.debug(f"Dropped inbound {item.path}")
                return
            events = [DataEvent(item, event_type)]
            for listener in list(self._listeners):
                listener(events)

        self._loop.post(deliver)
