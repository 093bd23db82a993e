"""
Main entry point for the Weather Watch Face
"""
import os
import sys
import signal
import time
from pathlib import Path
from typing import Any, Callable, Optional

from PIL import Image

from watchface.core.config_service import config
from watchface.core.logging_service import get_logger
from watchface.core.message_loop import MessageLoop, SimpleMessageLoop, TkMessageLoop
from watchface.companion.transport import LoopbackTransport
from watchface.companion.weather_companion import WeatherCompanion
from watchface.core.clock_service import ClockService
from watchface.ui.face_controller import FaceController
from watchface.ui.surface import PilSurface, Rect


def icon_loader(icon_dir: str, size: int) -> Callable[[int], Any]:
    """
    Icon lookup reading '<weatherId>.png' files from a directory.
    """
    cache = {}

    def lookup(weather_id: int) -> Optional[Image.Image]:
        if weather_id not in cache:
            path = Path(icon_dir) / f"{weather_id}.png"
            if path.exists():
                cache[weather_id] = Image.open(path).convert('RGBA').resize((size, size))
            else:
                cache[weather_id] = None
        return cache[weather_id]

    return lookup


class Application:
    """
    Wires the face, the companion link and a host (Tk window or headless).
    """

    def __init__(self):
        config.reload()

        self._logger = get_logger('watchface', config.get('logging.level', 'INFO'))
        self._logger.set_level(config.get('logging.level', 'INFO'))
        self._logger.log_startup(config.get('app.version', '1.0.0'), self._get_config_summary())

        self._headless = os.environ.get('HEADLESS', '').lower() in ('true', '1', 'yes')
        self._root = None
        self._loop: Optional[MessageLoop] = None
        self._transport: Optional[LoopbackTransport] = None
        self._companion: Optional[WeatherCompanion] = None
        self._face: Optional[FaceController] = None
        self._main_window = None
        self._dirty = False

    def _get_config_summary(self) -> dict:
        return {
            'timezone': config.get('timezone'),
            'display': {
                'width': config.get('display.width', 320),
                'height': config.get('display.height', 320),
                'round': config.get('display.round', True),
            },
            'companion': {
                'location': config.get('companion.location', ''),
            }
        }

    def _initialize_loop(self) -> None:
        if self._headless:
            self._loop = SimpleMessageLoop(logger=self._logger)
            return
        import tkinter as tk
        self._root = tk.Tk()
        self._loop = TkMessageLoop(self._root, logger=self._logger)

    def _initialize_services(self) -> None:
        """Companion link, weather source and the face itself"""
        self._transport = LoopbackTransport(self._loop, logger=self._logger)

        if config.get('companion.enabled', True):
            api_key = config.get('companion.api_key', '')
            if api_key and api_key != 'your_api_key_here':
                self._companion = WeatherCompanion(
                    self._transport,
                    api_key,
                    config.get('companion.location', 'Mountain View, US'),
                    units=config.get('companion.units', 'imperial'),
                    timeout=config.get('companion.timeout', 10),
                    logger=self._logger,
                )
                self._logger.info(f"Companion weather source: {self._companion.location}")
            else:
                self._logger.warning("Companion has no API key; weather stays empty")
        else:
            self._logger.info("Companion disabled in config")

        height = config.get('display.height', 320)
        icon_dir = config.get('display.icon_dir')
        self._face = FaceController(
            self._loop,
            self._transport,
            clock_service=ClockService(config.get('timezone'), logger=self._logger),
            icon_lookup=icon_loader(icon_dir, int(height * 0.12)) if icon_dir else None,
            invalidate=self._on_invalidate,
            use_24h=config.get('display.use_24h', True),
            is_round=config.get('display.round', True),
            logger=self._logger,
        )

    def _on_invalidate(self) -> None:
        if self._main_window:
            self._main_window.request_redraw()
        else:
            self._dirty = True

    def _setup_signal_handlers(self) -> None:
        def signal_handler(signum, frame):
            self._logger.info(f"Received signal {signum}, shutting down")
            self.shutdown()
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def run(self) -> None:
        try:
            self._setup_signal_handlers()
            self._initialize_loop()
            self._initialize_services()

            if self._headless:
                self._run_headless()
            else:
                from watchface.ui.main_window import MainWindow
                self._main_window = MainWindow(
                    self._root, self._loop, self._face, self._logger,
                    width=config.get('display.width', 320),
                    height=config.get('display.height', 320),
                    low_bit_ambient=config.get('display.low_bit_ambient', False),
                    is_round=config.get('display.round', True),
                )
                self._main_window.initialize()
                self._logger.info("Application started successfully")
                self._main_window.start()

        except KeyboardInterrupt:
            self._logger.info("Keyboard interrupt received")
        except Exception as e:
            self._logger.critical(f"Fatal error: {e}", exc_info=True)
            raise
        finally:
            self.shutdown()

    def _run_headless(self) -> None:
        """
        Render frames to PNG files instead of a window.
        """
        width = config.get('display.width', 320)
        height = config.get('display.height', 320)
        frames = int(os.environ.get('HEADLESS_FRAMES', 5))
        out_dir = Path(os.environ.get('HEADLESS_OUTPUT', 'frames'))
        out_dir.mkdir(parents=True, exist_ok=True)

        face = self._face
        face.on_create()
        face.on_properties_changed(config.get('display.low_bit_ambient', False))
        face.on_apply_window_insets(config.get('display.round', True))
        face.on_visibility_changed(True)

        written = 0
        while written < frames:
            self._loop.run_pending()
            if self._dirty:
                self._dirty = False
                surface = PilSurface(width, height)
                face.render(surface, Rect(0, 0, width, height))
                path = out_dir / f"frame_{written:04d}.png"
                surface.save(str(path))
                self._logger.info(f"Wrote {path}")
                written += 1
            due = self._loop.next_due_ms()
            wait_ms = 50 if due is None else min(50, max(0, due - self._loop.now_ms()))
            time.sleep(wait_ms / 1000.0)

    def shutdown(self) -> None:
        self._logger.info("Shutting down application")

        if self._main_window and self._main_window.is_running():
            self._main_window.stop()
        elif self._face:
            self._face.on_destroy()
        self._face = None

        self._logger.info("Weather Watch Face stopped")


def main():
    app = Application()
    app.run()


if __name__ == '__main__':
    main()
