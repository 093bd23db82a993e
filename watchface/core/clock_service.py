"""
Clock Service - Time and date snapshots
A fresh ClockState is taken on every render; the timezone is re-read each time.
"""
import time
from datetime import datetime, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .logging_service import LoggingService, get_logger


class ClockState:
    """
    Snapshot of the wall clock for a single frame.
    """

    __slots__ = ('_instant',)

    def __init__(self, instant: datetime):
        self._instant = instant

    @property
    def instant(self) -> datetime:
        return self._instant

    @property
    def timezone(self) -> Optional[tzinfo]:
        return self._instant.tzinfo

    def format_time(self, use_24h: bool = True, show_seconds: bool = True) -> str:
        """
        Format the time part, e.g. '09:41' or '09:41:07'.

        Args:
            use_24h: 24-hour clock, otherwise 12-hour without AM/PM
            show_seconds: Append seconds (interactive mode only)
        """
        fmt = '%H:%M' if use_24h else '%I:%M'
        if show_seconds:
            fmt += ':%S'
        return self._instant.strftime(fmt)

    def format_date(self) -> str:
        """Format the date part, e.g. 'Mon, Jun 3 2024'"""
        now = self._instant
        return f"{now.strftime('%a')}, {now.strftime('%b')} {now.day} {now.year}"

    def __repr__(self) -> str:
        return f"ClockState({self._instant.isoformat()})"


class ClockService:
    """
    Produces ClockState snapshots in either a fixed IANA zone or the system zone.
    """

    def __init__(
        self,
        timezone: Optional[str] = None,
        now: Optional[Callable[[], datetime]] = None,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize clock service.

        Args:
            timezone: IANA timezone string, or None to follow the system zone
            now: Source of "now"; naive values are read as system local time
            logger: Logging service
        """
        self._logger = (logger or get_logger()).for_component('clock')
        self._now = now or datetime.now
        self._timezone = timezone
        self._tz_obj: Optional[ZoneInfo] = None
        self._current: Optional[tzinfo] = None
        self._load_timezone()
        self.refresh_timezone()

    def _load_timezone(self) -> None:
        """Load the fixed zone, falling back to the system zone on error"""
        if not self._timezone:
            self._tz_obj = None
            return
        try:
            self._tz_obj = ZoneInfo(self._timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            self._logger.warning(f"Invalid timezone '{self._timezone}', using system zone: {e}")
            self._timezone = None
            self._tz_obj = None

    def set_timezone(self, timezone: Optional[str]) -> bool:
        """
        Pin the clock to an IANA zone (None follows the system zone).

        Returns:
            True if the zone was accepted
        """
        self._timezone = timezone
        self._load_timezone()
        self.refresh_timezone()
        return self._timezone == timezone

    def refresh_timezone(self) -> tzinfo:
        """
        Re-read the effective timezone.

        Called when the system announces a timezone change and whenever the
        face becomes visible, since the change may have happened while hidden.
        """
        if self._tz_obj is not None:
            self._current = self._tz_obj
        else:
            if hasattr(time, 'tzset'):
                time.tzset()
            self._current = self._aware_now().tzinfo
        return self._current

    def _aware_now(self) -> datetime:
        now = self._now()
        # naive values are system local time
        return now if now.tzinfo is not None else now.astimezone()

    def snapshot(self) -> ClockState:
        """Take a fresh snapshot; never reused across frames"""
        now = self._aware_now()
        if self._tz_obj is not None:
            now = now.astimezone(self._tz_obj)
        return ClockState(now)

    @property
    def timezone(self) -> Optional[tzinfo]:
        """Most recently observed timezone"""
        return self._current
