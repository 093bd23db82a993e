"""
Companion wire protocol - data item paths, keys and message types
"""
import uuid
from enum import Enum
from typing import Any, Dict, Optional


# Outbound refresh requests (logical "weather-request")
WEATHER_PATH = '/weather'
# Inbound weather data (logical "weather-info")
WEATHER_INFO_PATH = '/weather-info'

KEY_UUID = 'uuid'
KEY_HIGH = 'high'
KEY_LOW = 'low'
KEY_WEATHER_ID = 'weatherId'


class DataItem:
    """
    A keyed map published on a path, as carried by the channel.
    """

    def __init__(self, path: str, data: Optional[Dict[str, Any]] = None, urgent: bool = False):
        self.path = path
        self.data = dict(data or {})
        self.urgent = urgent

    def __repr__(self) -> str:
        return f"DataItem({self.path!r}, {self.data!r}, urgent={self.urgent})"


class DataEventType(Enum):
    CHANGED = 'changed'
    DELETED = 'deleted'


class DataEvent:
    """Notification that a data item on the channel changed or was deleted."""

    def __init__(self, item: DataItem, event_type: DataEventType = DataEventType.CHANGED):
        self.item = item
        self.type = event_type

    def __repr__(self) -> str:
        return f"DataEvent({self.type.value}, {self.item!r})"


class SyncRequest:
    """
    Refresh request sent to the companion. A fresh request id makes every
    request a distinct data item so the companion always sees a change.
    """

    def __init__(self, request_id: Optional[str] = None, urgent: bool = True):
        self.request_id = request_id or str(uuid.uuid4())
        self.urgent = urgent

    def to_data_item(self) -> DataItem:
        return DataItem(WEATHER_PATH, {KEY_UUID: self.request_id}, urgent=self.urgent)

    def __repr__(self) -> str:
        return f"SyncRequest({self.request_id}, urgent={self.urgent})"


def weather_info_item(high: Optional[str] = None, low: Optional[str] = None,
                      weather_id: Optional[int] = None) -> DataItem:
    """
    Build a weather-info item; fields left as None are omitted.
    """
    data: Dict[str, Any] = {}
    if high is not None:
        data[KEY_HIGH] = high
    if low is not None:
        data[KEY_LOW] = low
    if weather_id is not None:
        data[KEY_WEATHER_ID] = weather_id
    return DataItem(WEATHER_INFO_PATH, data)
