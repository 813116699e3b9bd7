"""Component-aware logging for the parser layers.

Every record carries the emitting component and, when known, the id of the
parse call it belongs to, so that interleaved log output from several
parses can be told apart.
"""

import logging
from typing import Any, Dict, Optional, Union

DEFAULT_FORMAT = "%(levelname)s %(name)s [%(component)s] %(message)s"


class ComponentLogger:
    """Logger that tags each record with component and parse id."""

    def __init__(
        self,
        name: str,
        parse_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize component logger.

        Args:
            name: Logger name (typically __name__)
            parse_id: Optional id of the parse call being logged
            component: Component name, defaults to the last part of ``name``
        """
        self.logger = logging.getLogger(name)
        self.parse_id = parse_id
        self.component = component or name.split(".")[-1]

    def _get_extra(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        combined_extra = {
            "component": self.component,
            "parse_id": self.parse_id,
        }
        if extra:
            combined_extra.update(extra)
        return combined_extra

    def is_enabled_for(self, level: int) -> bool:
        """Check whether records at ``level`` would be emitted."""
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log debug message."""
        self.logger.debug(message, extra=self._get_extra(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log info message."""
        self.logger.info(message, extra=self._get_extra(extra))

    def warning(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = False
    ) -> None:
        """Log warning message."""
        self.logger.warning(message, extra=self._get_extra(extra), exc_info=exc_info)

    def error(
        self,
        message: str,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: bool = True
    ) -> None:
        """Log error message, with traceback by default."""
        self.logger.error(message, extra=self._get_extra(extra), exc_info=exc_info)


def get_logger(
    name: str,
    parse_id: Optional[str] = None,
    component: Optional[str] = None
) -> ComponentLogger:
    """Get a component-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        parse_id: Optional id of the parse call being logged
        component: Component name for structured logging

    Returns:
        ComponentLogger instance
    """
    return ComponentLogger(name, parse_id, component)


class _ComponentDefaults(logging.Filter):
    """Fill in ``component`` for records not emitted via ComponentLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        return True


def configure_logging(level: Union[int, str] = logging.WARNING) -> None:
    """Install a stderr handler for the package loggers.

    Args:
        level: Logging level name or number
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=DEFAULT_FORMAT, force=True)
    for handler in logging.getLogger().handlers:
        handler.addFilter(_ComponentDefaults())
