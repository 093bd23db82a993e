"""
Weather Cache - last known high/low temperatures and condition id
Written only by the sync channel; read by the renderer through snapshots.
"""
from typing import Optional


class WeatherSnapshot:
    """Immutable copy of the cache taken at render time."""

    __slots__ = ('high_temp', 'low_temp', 'weather_icon_id')

    def __init__(self, high_temp: str, low_temp: str, weather_icon_id: Optional[int]):
        object.__setattr__(self, 'high_temp', high_temp)
        object.__setattr__(self, 'low_temp', low_temp)
        object.__setattr__(self, 'weather_icon_id', weather_icon_id)

    def __setattr__(self, name, value):
        raise AttributeError("WeatherSnapshot is read-only")

    def __eq__(self, other) -> bool:
        if not isinstance(other, WeatherSnapshot):
            return NotImplemented
        return (self.high_temp, self.low_temp, self.weather_icon_id) == \
            (other.high_temp, other.low_temp, other.weather_icon_id)

    def __repr__(self) -> str:
        return (f"WeatherSnapshot(high={self.high_temp!r}, low={self.low_temp!r}, "
                f"icon={self.weather_icon_id!r})")


class WeatherCache:
    """
    Holds the weather fields. Each field is overwritten independently and
    there is no expiry: values stay until replaced or the process restarts.
    """

    def __init__(self):
        self._high_temp = ""
        self._low_temp = ""
        self._weather_icon_id: Optional[int] = None

    def set_high(self, value: str) -> None:
        self._high_temp = value

    def set_low(self, value: str) -> None:
        self._low_temp = value

    def set_weather_id(self, value: int) -> None:
        self._weather_icon_id = value

    def snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot(self._high_temp, self._low_temp, self._weather_icon_id)

    @property
    def high_temp(self) -> str:
        return self._high_temp

    @property
    def low_temp(self) -> str:
        return self._low_temp

    @property
    def weather_icon_id(self) -> Optional[int]:
        return self._weather_icon_id
