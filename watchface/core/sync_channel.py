"""
Sync Channel - weather request/response exchange with the companion
Never blocks rendering; failures leave the cache stale and are only logged.
"""
from typing import Callable, Dict, Iterable, Optional

from .logging_service import LoggingService, get_logger
from .protocol import (
    DataEvent, DataEventType, SyncRequest,
    WEATHER_INFO_PATH, KEY_HIGH, KEY_LOW, KEY_WEATHER_ID,
)
from .weather_cache import WeatherCache


class ChannelState:
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


class SyncChannel:
    """
    Keeps a transport connection while the face is visible and applies
    weather-info updates to the cache.
    """

    def __init__(
        self,
        transport,
        cache: WeatherCache,
        on_updated: Optional[Callable[[], None]] = None,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize sync channel.

        Args:
            transport: ChannelTransport implementation
            cache: Weather cache to write into
            on_updated: Called after an update changed the cache (out-of-band redraw)
            logger: Logging service
        """
        self._transport = transport
        self._cache = cache
        self._on_updated = on_updated
        self._logger = (logger or get_logger()).for_component('channel')

        self._state = ChannelState.DISCONNECTED
        self._listening = False
        self._attempt = 0
        self._stats: Dict[str, int] = {
            'connects': 0,
            'connect_failures': 0,
            'requests_sent': 0,
            'request_failures': 0,
            'updates_applied': 0,
            'ignored_events': 0,
        }

    def connect(self) -> None:
        """Open the channel; a no-op while connecting or connected"""
        if self._state != ChannelState.DISCONNECTED:
            return
        self._state = ChannelState.CONNECTING
        self._attempt += 1
        attempt = self._attempt
        try:
            self._transport.connect(
                lambda: self._on_connected(attempt),
                lambda error: self._on_connection_failed(attempt, error),
            )
        except Exception as e:
            self._on_connection_failed(attempt, e)

    def _on_connected(self, attempt: int) -> None:
        if attempt != self._attempt:
            # superseded by disconnect() or a newer connect()
            self._logger.debug(f"Ignoring stale connect completion #{attempt}")
            if self._state == ChannelState.DISCONNECTED:
                self._release_transport()
            return
        try:
            self._transport.add_listener(self.on_data_changed)
            self._listening = True
            self._state = ChannelState.CONNECTED
        except Exception as e:
            self._logger.warning(f"Companion listener registration failed: {e}")
            self._stats['connect_failures'] += 1
            self._state = ChannelState.DISCONNECTED
            self._release_transport()
            return

        self._stats['connects'] += 1
        self._logger.info("Connected to companion")
        self.request_refresh()

    def _on_connection_failed(self, attempt: int, error: Exception) -> None:
        self._stats['connect_failures'] += 1
        self._logger.warning(f"Companion connection failed: {error}")
        if attempt == self._attempt and self._state == ChannelState.CONNECTING:
            self._state = ChannelState.DISCONNECTED
            self._release_transport()

    def request_refresh(self) -> Optional[SyncRequest]:
        """
        Ask the companion for fresh weather data (fire-and-forget).

        Returns:
            The request that was sent, or None if the channel is down
        """
        if self._state != ChannelState.CONNECTED:
            self._logger.debug("Refresh requested while disconnected, ignored")
            return None

        request = SyncRequest(urgent=True)
        try:
            self._transport.put_data_item(request.to_data_item(), self._on_request_result)
        except Exception as e:
            self._on_request_result(False)
            self._logger.debug(f"Refresh request raised: {e}")
            return None
        self._stats['requests_sent'] += 1
        return request

    def _on_request_result(self, success: bool) -> None:
        if success:
            self._logger.debug("Successfully asked companion for weather data")
        else:
            self._stats['request_failures'] += 1
            self._logger.debug("Failed asking companion for weather data")

    def on_data_changed(self, events: Iterable[DataEvent]) -> None:
        """Apply every weather-info change in a batch of channel events"""
        for event in events:
            item = event.item
            if event.type != DataEventType.CHANGED or item.path != WEATHER_INFO_PATH:
                self._stats['ignored_events'] += 1
                continue
            if self._apply(item.data):
                self._stats['updates_applied'] += 1
                if self._on_updated:
                    self._on_updated()

    def _apply(self, data: dict) -> bool:
        applied = False

        if KEY_HIGH not in data:
            self._logger.debug("Weather update without high temperature")
        elif not isinstance(data[KEY_HIGH], str):
            self._logger.warning(f"Ignoring non-text high temperature: {data[KEY_HIGH]!r}")
        else:
            self._cache.set_high(data[KEY_HIGH])
            applied = True

        if KEY_LOW not in data:
            self._logger.debug("Weather update without low temperature")
        elif not isinstance(data[KEY_LOW], str):
            self._logger.warning(f"Ignoring non-text low temperature: {data[KEY_LOW]!r}")
        else:
            self._cache.set_low(data[KEY_LOW])
            applied = True

        weather_id = data.get(KEY_WEATHER_ID)
        if KEY_WEATHER_ID not in data:
            self._logger.debug("Weather update without weatherId")
        elif isinstance(weather_id, bool) or not isinstance(weather_id, int):
            self._logger.warning(f"Ignoring non-integer weatherId: {weather_id!r}")
        else:
            self._cache.set_weather_id(weather_id)
            applied = True

        return applied

    def disconnect(self) -> None:
        """Stop listening and release the transport; always safe"""
        if self._state == ChannelState.DISCONNECTED:
            return
        was_connecting = self._state == ChannelState.CONNECTING
        self._state = ChannelState.DISCONNECTED
        self._attempt += 1
        if not was_connecting:
            self._release_transport()
        self._logger.info("Disconnected from companion")

    def _release_transport(self) -> None:
        try:
            if self._listening:
                self._transport.remove_listener(self.on_data_changed)
            if self._transport.is_connected:
                self._transport.disconnect()
        except Exception as e:
            self._logger.warning(f"Error releasing companion channel: {e}")
        finally:
            self._listening = False

    @property
    def is_connected(self) -> bool:
        return self._state == ChannelState.CONNECTED

    @property
    def state(self) -> str:
        return self._state

    @property
    def stats(self) -> Dict[str, int]:
        return dict(self._stats)
