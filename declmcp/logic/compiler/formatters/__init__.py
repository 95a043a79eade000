"""Terminal formatting for compile results."""

from .diagnostics_formatter import DiagnosticsFormatter

__all__ = ["DiagnosticsFormatter"]
