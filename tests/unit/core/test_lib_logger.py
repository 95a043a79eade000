"""Unit tests for structured logging."""

import json
import logging

from declmcp.core.config import CompilerConfig
from declmcp.core.lib_logger import DeclMcpLoggerAdapter, LoggingManager, StructuredFormatter


class TestStructuredFormatter:
    """Test JSON log output."""

    def _record(self, **extra):
        record = logging.LogRecord(
            name="declmcp.compiler",
            level=logging.WARNING,
            pathname=__file__,
            lineno=10,
            msg="duplicate capability %s",
            args=("search",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_formats_json_with_extra_fields(self):
        output = json.loads(StructuredFormatter().format(self._record(source="server.py")))

        assert output["level"] == "WARNING"
        assert output["logger"] == "declmcp.compiler"
        assert output["message"] == "duplicate capability search"
        assert output["source"] == "server.py"

    def test_include_fields(self):
        formatter = StructuredFormatter(include_fields=["level", "message"])
        output = json.loads(formatter.format(self._record(source="server.py")))
        assert set(output) == {"level", "message"}


class TestLoggerAdapter:
    """Test context propagation."""

    def test_with_context_merges(self):
        adapter = DeclMcpLoggerAdapter(logging.getLogger("declmcp.test"), {"component": "linker"})
        scoped = adapter.with_context(source="server.py")

        assert scoped.extra == {"component": "linker", "source": "server.py"}
        assert adapter.extra == {"component": "linker"}

    def test_process_adds_context(self):
        adapter = DeclMcpLoggerAdapter(logging.getLogger("declmcp.test"), {"component": "linker"})
        _, kwargs = adapter.process("message", {"extra": {"declaration": "GetWeatherTool"}})
        assert kwargs["extra"] == {"declaration": "GetWeatherTool", "component": "linker"}


class TestLoggingManager:
    """Test logger tree configuration."""

    def test_configures_package_logger_only(self, temp_dir):
        config = CompilerConfig(_env_file=None, log_level="INFO", log_file=temp_dir / "logs" / "declmcp.log")
        root_handlers = list(logging.getLogger().handlers)

        manager = LoggingManager(config)
        logger = manager.get_component_logger("scanner")

        package_logger = logging.getLogger("declmcp")
        assert package_logger.propagate is False
        assert len(package_logger.handlers) == 2
        assert logging.getLogger().handlers == root_handlers
        assert logger.extra["component"] == "scanner"
        assert logger.logger.name == "declmcp.scanner"
        assert (temp_dir / "logs").exists()

        for handler in package_logger.handlers[:]:
            handler.close()
            package_logger.removeHandler(handler)
