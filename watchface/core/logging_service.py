"""
Logging Service - Structured logging for the watch face
Every record carries the face component that emitted it (scheduler,
channel, companion, ...) so a reconnect storm can be read off the log.
"""
import sys
import logging
from typing import Optional


DEFAULT_COMPONENT = 'face'


class _ComponentFilter(logging.Filter):
    """Tags records logged straight through the stdlib logger"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'component'):
            record.component = DEFAULT_COMPONENT
        return True


class LoggingService:
    """
    Thin wrapper around a named stdlib logger with console output.
    Use for_component() to get a view that tags records with a component.
    """

    def __init__(
        self,
        name: str = 'watchface',
        level: str = 'INFO',
        component: str = DEFAULT_COMPONENT,
        configure: bool = True
    ):
        """
        Initialize logging service.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            component: Value of the `component` field on every record
            configure: Set level and handlers (False for component views)
        """
        self._logger = logging.getLogger(name)
        self._component = component
        if configure:
            self._set_level(level)
            self._setup_handlers()

    def _set_level(self, level: str) -> None:
        level_map = {
            'DEBUG': logging.DEBUG,
            'INFO': logging.INFO,
            'WARNING': logging.WARNING,
            'ERROR': logging.ERROR,
            'CRITICAL': logging.CRITICAL
        }
        self._logger.setLevel(level_map.get(str(level).upper(), logging.INFO))

    def _setup_handlers(self) -> None:
        self._logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self._logger.level)
        handler.addFilter(_ComponentFilter())
        handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s/%(component)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        self._logger.addHandler(handler)

    def for_component(self, component: str) -> 'LoggingService':
        """Same logger and handlers, records tagged with `component`"""
        return LoggingService(self._logger.name, component=component, configure=False)

    def _extra(self, kwargs: dict) -> dict:
        extra = {'component': self._component}
        extra.update(kwargs)
        return extra

    def debug(self, message: str, **kwargs) -> None:
        self._logger.debug(message, extra=self._extra(kwargs))

    def info(self, message: str, **kwargs) -> None:
        self._logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self._logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        """
        Log error message.

        Args:
            message: Error message
            exc_info: Include exception traceback
            **kwargs: Additional context
        """
        self._logger.error(message, exc_info=exc_info, extra=self._extra(kwargs))

    def critical(self, message: str, exc_info: bool = False, **kwargs) -> None:
        self._logger.critical(message, exc_info=exc_info, extra=self._extra(kwargs))

    def set_level(self, level: str) -> None:
        """Change logging level at runtime"""
        self._set_level(level)
        for handler in self._logger.handlers:
            handler.setLevel(self._logger.level)

    def log_startup(self, version: str, config: dict) -> None:
        """One line describing the face being started"""
        display = config.get('display', {})
        self.info(
            f"Weather Watch Face v{version}: "
            f"{display.get('width', 0)}x{display.get('height', 0)} "
            f"{'round' if display.get('round') else 'square'}, "
            f"timezone {config.get('timezone') or 'system'}, "
            f"companion {config.get('companion', {}).get('location') or 'off'}"
        )

    @property
    def component(self) -> str:
        return self._component

    @property
    def logger(self) -> logging.Logger:
        """Underlying logger instance"""
        return self._logger


_logging_service: Optional[LoggingService] = None


def get_logger(name: str = 'watchface', level: str = 'INFO') -> LoggingService:
    """
    Get or create the logging service singleton.

    Args:
        name: Logger name
        level: Log level

    Returns:
        LoggingService instance
    """
    global _logging_service
    if _logging_service is None:
        _logging_service = LoggingService(name, level)
    return _logging_service
