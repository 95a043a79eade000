"""Diagnostics formatter for presenting compile results in the terminal.

Renders diagnostics as a rich table and summarizes the compiled registry.
"""

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.compiler import CompilationResult
from ..models.diagnostics import Diagnostic, DiagnosticSeverity
from ..models.registry import COLLECTIONS, CapabilityRegistry


class DiagnosticsFormatter:
    """Formatter for compile diagnostics and registry summaries."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize diagnostics formatter.

        Args:
            console: Rich console instance (creates new one if None)
        """
        self.console = console or Console()

    def format_diagnostics_table(self, diagnostics: List[Diagnostic], title: str = "Diagnostics") -> Table:
        """Format diagnostics as a table.

        Args:
            diagnostics: Diagnostics in the order they were produced
            title: Table title

        Returns:
            Rich Table with one row per diagnostic
        """
        table = Table(title=title, box=box.SIMPLE)

        table.add_column("Severity", justify="center")
        table.add_column("Kind", style="blue")
        table.add_column("Declaration", style="bold")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Message")

        for diagnostic in diagnostics:
            table.add_row(
                Text(diagnostic.severity.value, style=self._get_severity_color(diagnostic.severity)),
                diagnostic.kind.value,
                diagnostic.declaration_name or "-",
                str(diagnostic.line) if diagnostic.line else "-",
                diagnostic.message,
            )

        return table

    def format_registry_table(self, registry: CapabilityRegistry, title: str = "Capabilities") -> Table:
        """Format registry contents as a table, one row per capability."""
        table = Table(title=title, box=box.SIMPLE)

        table.add_column("Kind", style="blue")
        table.add_column("Name", style="bold")
        table.add_column("Dynamic", justify="center")
        table.add_column("Implementation", style="cyan")

        for entry in registry.entries():
            binding = entry.binding
            implementation = "-"
            if binding is not None:
                implementation = f"{binding.container}.{binding.resolved_name}" if binding.container else binding.resolved_name
            table.add_row(
                entry.kind.value,
                entry.capability_name,
                Text("yes", style="green") if entry.dynamic else Text("no", style="dim"),
                implementation,
            )

        return table

    def format_summary(self, result: CompilationResult) -> str:
        """One-line summary of a compilation."""
        registry = result.registry
        counts = [
            f"{len(registry.list(kind))} {collection}"
            for kind, collection in COLLECTIONS.items()
            if registry.list(kind)
        ]
        summary = f"{result.source_name}: {', '.join(counts) if counts else 'no capabilities'}"
        summary += f" ({len(result.errors)} errors, {len(result.warnings)} warnings)"
        return summary

    def display_result(self, result: CompilationResult, verbose: bool = False) -> None:
        """Display a compilation result using rich formatting.

        Args:
            result: Compilation result to display
            verbose: Whether to include the capability table and info diagnostics
        """
        status_color = "red" if result.has_errors else ("yellow" if result.warnings else "green")
        server = result.registry.server
        panel_title = f"Server: {server.name} {server.version}" if server else "Declarations"

        self.console.print(Panel(self.format_summary(result), title=panel_title, border_style=status_color, box=box.ROUNDED))

        if verbose and len(result.registry):
            self.console.print(self.format_registry_table(result.registry))

        diagnostics = result.diagnostics if verbose else [
            d for d in result.diagnostics if d.severity != DiagnosticSeverity.INFO
        ]
        if diagnostics:
            self.console.print(self.format_diagnostics_table(diagnostics))

    def _get_severity_color(self, severity: DiagnosticSeverity) -> str:
        """Get color for diagnostic severity."""
        color_map = {
            DiagnosticSeverity.ERROR: "red",
            DiagnosticSeverity.WARNING: "yellow",
            DiagnosticSeverity.INFO: "blue",
        }
        return color_map.get(severity, "white")
