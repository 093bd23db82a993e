"""
Main Window - Tkinter host that plays the role of the watch runtime
Maps window events onto face lifecycle events and paints rendered frames.
"""
import tkinter as tk
from datetime import datetime
from typing import Optional

from PIL import ImageTk

from ..core.logging_service import LoggingService
from ..core.message_loop import TkMessageLoop
from ..core.states import PowerMode, TapType
from .face_controller import FaceController
from .surface import PilSurface, Rect


TIME_TICK_MS = 60 * 1000


class MainWindow:
    """
    Tkinter window showing the face.

    Keys: 'a' toggles ambient mode, 'h' hides/shows the face.
    Mouse press/release are delivered as touch and tap.
    """

    def __init__(
        self,
        root: tk.Tk,
        loop: TkMessageLoop,
        face: FaceController,
        logger: LoggingService,
        width: int = 320,
        height: int = 320,
        low_bit_ambient: bool = False,
        is_round: bool = True
    ):
        """
        Initialize main window.

        Args:
            root: Tk root owned by the application
            loop: Message loop bound to root
            face: Face controller
            logger: Logging service
            width: Face width
            height: Face height
            low_bit_ambient: Reported display capability
            is_round: Reported screen shape
        """
        self._root = root
        self._loop = loop
        self._face = face
        self._logger = logger

        self._width = width
        self._height = height
        self._low_bit_ambient = low_bit_ambient
        self._is_round = is_round

        self._canvas: Optional[tk.Canvas] = None
        self._image_id: Optional[int] = None
        self._photo = None
        self._redraw_pending = False
        self._visible = False
        self._tick_id = None
        self._last_tz: Optional[str] = None
        self._running = False

    def initialize(self) -> None:
        """Create canvas, bind events, negotiate face properties"""
        self._root.title("Weather Watch Face")
        self._root.geometry(f"{self._width}x{self._height}")
        self._root.resizable(False, False)

        self._canvas = tk.Canvas(
            self._root,
            width=self._width,
            height=self._height,
            bg='#000000',
            highlightthickness=0
        )
        self._canvas.pack(fill=tk.BOTH, expand=True)
        self._image_id = self._canvas.create_image(0, 0, anchor='nw')

        self._root.bind('<Map>', lambda e: self._set_visible(True))
        self._root.bind('<Unmap>', lambda e: self._set_visible(False))
        self._root.bind('<KeyPress-a>', self._toggle_ambient)
        self._root.bind('<KeyPress-h>', self._toggle_hidden)
        self._canvas.bind('<ButtonPress-1>', lambda e: self._face.on_tap(TapType.TOUCH, e.x, e.y, e.time))
        self._canvas.bind('<ButtonRelease-1>', lambda e: self._face.on_tap(TapType.TAP, e.x, e.y, e.time))
        self._root.protocol("WM_DELETE_WINDOW", self.stop)

        self._face.on_create()
        self._face.on_properties_changed(self._low_bit_ambient)
        self._face.on_apply_window_insets(self._is_round)
        self._last_tz = datetime.now().astimezone().tzname()

        self._logger.info(f"UI initialized: {self._width}x{self._height}")

    def request_redraw(self) -> None:
        """Coalesce redraw requests into one paint per idle period"""
        if self._redraw_pending or not self._root:
            return
        self._redraw_pending = True
        self._root.after_idle(self._paint)

    def _paint(self) -> None:
        self._redraw_pending = False
        if not self._running or not self._canvas:
            return
        try:
            surface = PilSurface(self._width, self._height)
            self._face.render(surface, Rect(0, 0, self._width, self._height))
            self._photo = ImageTk.PhotoImage(surface.image)
            self._canvas.itemconfig(self._image_id, image=self._photo)
        except Exception as e:
            self._logger.error(f"Render error: {e}", exc_info=True)

    def _set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        self._face.on_visibility_changed(visible)

    def _toggle_hidden(self, event=None) -> None:
        self._set_visible(not self._visible)
        if not self._visible and self._canvas:
            self._canvas.itemconfig(self._image_id, image='')
        else:
            self.request_redraw()

    def _toggle_ambient(self, event=None) -> None:
        ambient = self._face.power_mode == PowerMode.AMBIENT
        self._face.on_power_mode_changed(PowerMode.INTERACTIVE if ambient else PowerMode.AMBIENT)

    def _time_tick(self) -> None:
        """Minute tick from the host; also notices system timezone changes"""
        tz = datetime.now().astimezone().tzname()
        if tz != self._last_tz:
            self._last_tz = tz
            self._face.on_timezone_changed()
        self._face.on_time_tick()
        self._tick_id = self._root.after(TIME_TICK_MS, self._time_tick)

    def start(self) -> None:
        """Start the Tk event loop (blocking)"""
        if not self._canvas:
            self.initialize()

        self._logger.info("Starting UI event loop")
        self._running = True
        self._loop.start()
        self._set_visible(True)
        self._tick_id = self._root.after(TIME_TICK_MS, self._time_tick)
        self.request_redraw()

        self._root.mainloop()

    def stop(self) -> None:
        """Tear down the face and close the window"""
        if not self._running:
            return
        self._logger.info("Stopping UI")
        self._running = False

        self._face.on_destroy()
        if self._tick_id is not None:
            self._root.after_cancel(self._tick_id)
            self._tick_id = None
        self._loop.stop()

        try:
            self._root.quit()
            self._root.destroy()
        except tk.TclError as e:
            self._logger.error(f"Error during UI cleanup: {e}")

    def is_running(self) -> bool:
        return self._running
