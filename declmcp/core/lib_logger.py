"""Structured logging configuration for declmcp."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import CompilerConfig


_STANDARD_RECORD_FIELDS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info",
    "exc_text", "stack_info", "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def __init__(self, include_fields: Optional[list] = None):
        """Initialize with optional field filtering."""
        super().__init__()
        self.include_fields = include_fields

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        # Add extra fields from the log record
        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS:
                log_entry[key] = value

        # Filter fields if specified
        if self.include_fields:
            log_entry = {k: v for k, v in log_entry.items() if k in self.include_fields}

        return json.dumps(log_entry, default=str)


class DeclMcpLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds compiler-specific context."""

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any]):
        """Initialize with logger and extra context."""
        super().__init__(logger, extra)

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Process log message and add extra context."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **context) -> "DeclMcpLoggerAdapter":
        """Create new adapter with additional context."""
        new_extra = self.extra.copy()
        new_extra.update(context)
        return DeclMcpLoggerAdapter(self.logger, new_extra)


class LoggingManager:
    """Manage logging configuration for declmcp."""

    def __init__(self, config: CompilerConfig):
        """Initialize logging manager with configuration."""
        self.config = config
        self.console = Console(stderr=True)
        self._configured = False

    def setup_logging(self) -> None:
        """Set up logging for the declmcp logger tree.

        Only the ``declmcp`` logger is configured so that embedding
        applications keep control of the root logger.
        """
        if self._configured:
            return

        package_logger = logging.getLogger("declmcp")
        package_logger.setLevel(logging.DEBUG if self.config.debug else self.config.log_level)
        package_logger.propagate = False

        # Remove existing handlers
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        # Set up console handler with Rich formatting
        console_handler = RichHandler(
            console=self.console,
            show_time=True,
            show_path=self.config.debug,
            rich_tracebacks=True,
            tracebacks_show_locals=self.config.debug
        )
        console_handler.setLevel(self.config.log_level)

        if self.config.debug:
            console_format = "%(name)s: %(message)s"
            console_handler.setFormatter(logging.Formatter(console_format))

        package_logger.addHandler(console_handler)

        # Set up file handler with structured logging
        if self.config.log_file:
            self.config.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.config.log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_handler.setFormatter(StructuredFormatter())
            package_logger.addHandler(file_handler)

        self._configured = True

    def get_logger(self, name: str, **context) -> DeclMcpLoggerAdapter:
        """Get a logger with declmcp-specific context."""
        if not self._configured:
            self.setup_logging()

        logger = logging.getLogger(name)
        return DeclMcpLoggerAdapter(logger, context)

    def get_component_logger(self, component: str, **context) -> DeclMcpLoggerAdapter:
        """Get a logger for a specific compiler component."""
        logger_name = f"declmcp.{component}"
        context["component"] = component
        return self.get_logger(logger_name, **context)


# Global logging manager instance
_logging_manager: Optional[LoggingManager] = None


def setup_logging(config: CompilerConfig) -> LoggingManager:
    """Set up global logging configuration."""
    global _logging_manager
    _logging_manager = LoggingManager(config)
    _logging_manager.setup_logging()
    return _logging_manager


def get_component_logger(component: str, **context) -> DeclMcpLoggerAdapter:
    """Get a component-specific logger."""
    if _logging_manager is None:
        from .config import get_config
        setup_logging(get_config())

    return _logging_manager.get_component_logger(component, **context)
