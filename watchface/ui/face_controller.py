"""
Face Controller - bridges host lifecycle events to the render scheduler and
the companion sync channel, and draws frames
"""
from typing import Any, Callable, Dict, Optional

from ..core.clock_service import ClockService
from ..core.logging_service import LoggingService, get_logger
from ..core.message_loop import MessageLoop
from ..core.render_scheduler import RenderScheduler
from ..core.states import PowerMode, TapType, Visibility
from ..core.sync_channel import SyncChannel
from ..core.weather_cache import WeatherCache, WeatherSnapshot
from .layout import FaceLayout
from .surface import Rect, Surface
from .theme import FaceTheme, TextStyle


IconLookup = Callable[[int], Any]


class FaceController:
    """
    Digital face with seconds in interactive mode. In ambient mode the
    seconds are hidden and, on low-bit displays, text is drawn without
    anti-aliasing.
    """

    def __init__(
        self,
        loop: MessageLoop,
        transport,
        clock_service: Optional[ClockService] = None,
        icon_lookup: Optional[IconLookup] = None,
        default_icon: Any = None,
        invalidate: Optional[Callable[[], None]] = None,
        use_24h: bool = True,
        is_round: bool = False,
        logger: Optional[LoggingService] = None
    ):
        """
        Initialize controller.

        Args:
            loop: Control-thread message loop
            transport: Companion ChannelTransport
            clock_service: Clock snapshot source
            icon_lookup: Maps a weather condition id to a bitmap (or None)
            default_icon: Bitmap shown before any weather id is known
            invalidate: Host hook that schedules a redraw of the surface
            use_24h: 24-hour time format
            is_round: Initial layout shape
            logger: Logging service
        """
        self._logger = logger or get_logger()
        self._clock = clock_service or ClockService(logger=self._logger)
        self._icon_lookup = icon_lookup
        self._default_icon = default_icon
        self._host_invalidate = invalidate
        self._use_24h = use_24h
        self._layout = FaceLayout(is_round)

        self._visibility = Visibility.HIDDEN
        self._power_mode = PowerMode.INTERACTIVE
        self._low_bit_ambient = False
        self._tap_count = 0
        self._invalidations = 0
        self._destroyed = False

        self._weather = WeatherCache()
        self._scheduler = RenderScheduler(
            loop, self._should_tick, self.invalidate, logger=self._logger
        )
        self._sync = SyncChannel(
            transport, self._weather, on_updated=self.invalidate, logger=self._logger
        )

    # Lifecycle

    def on_create(self) -> None:
        self._logger.info("Face created")

    def on_destroy(self) -> None:
        """Stop ticking and release the companion channel"""
        self._scheduler.teardown()
        self._sync.disconnect()
        self._destroyed = True
        self._logger.info("Face destroyed")

    def on_properties_changed(self, low_bit_ambient: bool) -> None:
        """Device capabilities, delivered once before the first frame"""
        self._low_bit_ambient = bool(low_bit_ambient)
        self._logger.debug(f"low-bit ambient: {self._low_bit_ambient}")

    def on_apply_window_insets(self, is_round: bool) -> None:
        self._layout.set_round(is_round)

    def on_visibility_changed(self, visible: bool) -> None:
        if self._destroyed:
            return
        self._visibility = Visibility.VISIBLE if visible else Visibility.HIDDEN

        if visible:
            # timezone may have changed while hidden
            self._clock.refresh_timezone()
            try:
                self._sync.connect()
            except Exception as e:
                self._logger.error(f"Companion connect failed: {e}", exc_info=True)
                self._sync.disconnect()
        else:
            self._sync.disconnect()

        self._scheduler.reconcile()

    def on_power_mode_changed(self, mode: PowerMode) -> None:
        if self._destroyed:
            return
        if mode != self._power_mode:
            self._power_mode = mode
            self._logger.debug(f"Power mode: {mode.value}")
            self.invalidate()
        self._scheduler.reconcile()

    def on_tap(self, tap_type: TapType, x: int = 0, y: int = 0, event_time: int = 0) -> None:
        """Only a completed tap flips the theme; every tap event redraws"""
        if tap_type == TapType.TAP:
            self._tap_count += 1
        self.invalidate()

    def on_time_tick(self) -> None:
        """Host minute tick; scheduler state is left alone"""
        self.invalidate()

    def on_timezone_changed(self) -> None:
        self._clock.refresh_timezone()

    def invalidate(self) -> None:
        """Request one redraw from the host"""
        if self._destroyed:
            return
        self._invalidations += 1
        if self._host_invalidate:
            self._host_invalidate()

    def _should_tick(self) -> bool:
        return self._visibility == Visibility.VISIBLE and self._power_mode == PowerMode.INTERACTIVE

    # Rendering

    def current_theme(self, bounds: Optional[Rect] = None) -> FaceTheme:
        sizes = self._layout.text_sizes(bounds) if bounds else {}
        return FaceTheme(self._tap_count, self._power_mode, self._low_bit_ambient, sizes)

    def text_styles(self) -> Dict[str, TextStyle]:
        return self.current_theme().text_styles()

    def weather_icon(self, weather: Optional[WeatherSnapshot] = None) -> Any:
        """Bitmap for the cached condition id, or the default icon"""
        weather = weather or self._weather.snapshot()
        if weather.weather_icon_id is None or not self._icon_lookup:
            return self._default_icon
        try:
            return self._icon_lookup(weather.weather_icon_id)
        except (KeyError, LookupError, ValueError) as e:
            self._logger.warning(f"No icon for weatherId {weather.weather_icon_id}: {e}")
            return self._default_icon

    def render(self, surface: Surface, bounds: Rect) -> None:
        """
        Draw one frame from the current state. Reads only; nothing is mutated.
        """
        theme = self.current_theme(bounds)
        styles = theme.text_styles()
        clock = self._clock.snapshot()
        weather = self._weather.snapshot()
        layout = self._layout

        surface.fill(theme.background_color, bounds)

        time_text = clock.format_time(self._use_24h, show_seconds=not theme.ambient)
        date_text = clock.format_date()

        self._draw_centered(surface, bounds, time_text, layout.row_y('time', bounds), styles['time'])
        self._draw_centered(surface, bounds, date_text, layout.row_y('date', bounds), styles['date'])

        divider_y = bounds.clamp_y(layout.row_y('divider', bounds))
        start = bounds.clamp_x(bounds.center_x - surface.measure_text(time_text, styles['high']) / 3)
        end = bounds.clamp_x(bounds.center_x + surface.measure_text(time_text, styles['low']) / 3)
        surface.draw_line(start, divider_y, end, divider_y, theme.divider_color)

        temp_y = layout.row_y('temp', bounds)
        self._draw_centered(surface, bounds, weather.high_temp, temp_y, styles['high'])
        self._draw_at(surface, bounds, weather.low_temp, layout.low_x(bounds), temp_y, styles['low'])

        icon = self.weather_icon(weather) if theme.show_icon else None
        if icon is not None:
            width = getattr(icon, 'width', 0)
            height = getattr(icon, 'height', 0)
            if width <= bounds.width and height <= bounds.height:
                surface.draw_bitmap(
                    icon,
                    bounds.clamp_x(layout.icon_x(bounds), width),
                    bounds.clamp_y(temp_y, height),
                )

    def _draw_centered(self, surface, bounds, text, y, style) -> None:
        width = surface.measure_text(text, style)
        self._draw_at(surface, bounds, text, bounds.center_x - width / 2, y, style)

    def _draw_at(self, surface, bounds, text, x, y, style) -> None:
        if not text:
            return
        width = surface.measure_text(text, style)
        surface.draw_text(text, bounds.clamp_x(x, width), bounds.clamp_y(y, style.size), style)

    # State

    @property
    def visibility(self) -> Visibility:
        return self._visibility

    @property
    def power_mode(self) -> PowerMode:
        return self._power_mode

    @property
    def low_bit_ambient(self) -> bool:
        return self._low_bit_ambient

    @property
    def tap_count(self) -> int:
        return self._tap_count

    @property
    def invalidation_count(self) -> int:
        return self._invalidations

    @property
    def weather(self) -> WeatherSnapshot:
        return self._weather.snapshot()

    @property
    def scheduler(self) -> RenderScheduler:
        return self._scheduler

    @property
    def sync(self) -> SyncChannel:
        return self._sync

    @property
    def layout(self) -> FaceLayout:
        return self._layout
