"""
Weather Companion - the paired-device side of the sync protocol
Answers weather requests with OpenWeatherMap data, caching between fetches.
"""
import time
import requests
from threading import Lock, Thread
from typing import Any, Dict, Optional

from ..core.logging_service import LoggingService, get_logger
from ..core.protocol import DataItem, WEATHER_PATH, weather_info_item


class WeatherCompanion:
    """
    Listens for weather requests on a LoopbackTransport and publishes
    weather-info replies. Fetches run off the control thread; replies
    are handed back through transport.publish().
    """

    BASE_URL = 'https://api.openweathermap.org/data/2.5/weather'

    def __init__(
        self,
        transport,
        api_key: str,
        location: str,
        units: str = 'imperial',
        cache_ttl: int = 900,
        timeout: int = 10,
        threaded: bool = True,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize companion.

        Args:
            transport: LoopbackTransport shared with the watch face
            api_key: OpenWeatherMap API key
            location: City name (e.g., 'Mountain View, US')
            units: 'imperial' or 'metric'
            cache_ttl: Seconds a fetched reply is reused
            timeout: HTTP timeout in seconds
            threaded: Fetch in a worker thread (False runs inline)
            logger: Logging service
        """
        self._transport = transport
        self._api_key = api_key
        self._location = location
        self._units = units
        self._cache_ttl = cache_ttl
        self._timeout = timeout
        self._threaded = threaded
        self._logger = (logger or get_logger()).for_component('companion')

        self._cache: Optional[Dict[str, Any]] = None
        self._last_fetch: float = 0
        self._fetch_lock = Lock()
        self._last_error: Optional[str] = None
        self.requests_seen = 0

        transport.on_companion_item(self._on_item)

    def _on_item(self, item: DataItem) -> None:
        if item.path != WEATHER_PATH:
            return
        self.requests_seen += 1
        self._logger.debug(f"Companion got weather request {item.data.get('uuid')}")
        if self._threaded:
            Thread(target=self.reply, daemon=True).start()
        else:
            self.reply()

    def reply(self) -> bool:
        """
        Fetch (or reuse) weather and publish it to the watch.

        Returns:
            True if a reply was published
        """
        weather = self.get_weather()
        if not weather:
            return False
        self._transport.publish(weather_info_item(
            high=weather['high'], low=weather['low'], weather_id=weather['weather_id']
        ))
        return True

    def get_weather(self, force_refresh: bool = False) -> Optional[Dict[str, Any]]:
        """
        Current weather with caching; stale data is returned on fetch errors.
        One fetch at a time: concurrent requests wait and share its result.
        """
        with self._fetch_lock:
            now = time.time()
            if not force_refresh and self._cache and (now - self._last_fetch) < self._cache_ttl:
                return self._cache

            weather = self._fetch_weather()
            if weather:
                self._cache = weather
                self._last_fetch = now
                self._last_error = None
                return weather

            return self._cache

    def _fetch_weather(self) -> Optional[Dict[str, Any]]:
        if not self._api_key or self._api_key == 'your_api_key_here':
            self._last_error = 'no API key configured'
            return None

        params = {
            'q': self._location,
            'appid': self._api_key,
            'units': self._units
        }

        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self._timeout)
            response.raise_for_status()
            return self._parse_weather_data(response.json())
        except requests.exceptions.RequestException as e:
            self._last_error = str(e)
            self._logger.warning(f"Weather API request failed: {e}")
        except (KeyError, IndexError, TypeError, ValueError) as e:
            self._last_error = str(e)
            self._logger.warning(f"Failed to parse weather data: {e}")
        return None

    def _parse_weather_data(self, raw_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Reduce an OpenWeatherMap response to the fields the watch displays.
        """
        main = raw_data['main']
        condition = raw_data['weather'][0]

        return {
            'high': f"{round(main['temp_max'])}°",
            'low': f"{round(main['temp_min'])}°",
            'weather_id': int(condition['id']),
            'description': condition.get('description', ''),
            'timestamp': time.time(),
        }

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def location(self) -> str:
        return self._location
