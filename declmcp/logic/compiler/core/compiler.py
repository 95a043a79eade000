"""
Declaration compiler

Entry point of the compile pipeline: parse the source text, scan it for
declarations, drop duplicates, link dynamic declarations to their
implementations and assemble the registry. The source module is parsed,
never imported.
"""

import ast
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from declmcp.core.config import CompilerConfig, get_config
from declmcp.core.lib_logger import get_component_logger
from declmcp.lib.exceptions import SourceParseError, StructuralContradictionError

from ..models.diagnostics import Diagnostic, DiagnosticKind, DiagnosticSeverity
from ..models.registry import CapabilityRegistry
from .assembler import RegistryAssembler
from .linker import ImplementationLinker
from .scanner import DeclarationScanner

_LOG_LEVELS = {
    DiagnosticSeverity.ERROR: logging.ERROR,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.INFO: logging.INFO,
}


class CompilationResult(BaseModel):
    """Registry plus every diagnostic produced while compiling one source."""
    model_config = ConfigDict(frozen=True)

    registry: CapabilityRegistry
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    source_name: str = "<source>"

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.WARNING]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def diagnostics_of(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]


class DeclarationCompiler:
    """Compile declaration modules into capability registries."""

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or get_config()
        self.scanner = DeclarationScanner(self.config)
        self.assembler = RegistryAssembler(self.config)
        self.logger = get_component_logger("compiler")

    def parse(self, text: str, source_name: str) -> ast.Module:
        """
        Parse source text.

        Raises:
            SourceParseError: If the text is not valid Python
        """
        try:
            return ast.parse(text, filename=source_name)
        except SyntaxError as e:
            raise SourceParseError.from_syntax_error(e, source_name) from e

    def compile(self, text: str, source_name: str = "<source>") -> CompilationResult:
        """
        Compile one source text.

        Raises:
            SourceParseError: If the text is not valid Python
            StructuralContradictionError: If a declaration contradicts itself;
                no registry is produced
        """
        logger = self.logger.with_context(source=source_name)
        module = self.parse(text, source_name)

        try:
            scan = self.scanner.scan(module, source_name)
        except StructuralContradictionError as e:
            if e.diagnostic is not None:
                logger.log(_LOG_LEVELS[e.diagnostic.severity], str(e.diagnostic))
            logger.error(f"Compilation aborted: {e.message}", extra=dict(e.details))
            raise

        diagnostics = list(scan.diagnostics)

        declarations, duplicates = self.assembler.deduplicate(scan.declarations)
        diagnostics.extend(duplicates)

        linker = ImplementationLinker(scan.container, scan.module)
        link_result = linker.link_all(declarations)
        diagnostics.extend(link_result.diagnostics)

        registry, assembly_diagnostics = self.assembler.assemble(link_result.linked, scan.server)
        diagnostics.extend(assembly_diagnostics)

        if self.config.warn_on_unused_implementations:
            for binding in linker.unused_members(link_result):
                diagnostics.append(Diagnostic.create(
                    DiagnosticKind.UNUSED_IMPLEMENTATION,
                    f"'{binding.name}' on {scan.container.owner} implements no declaration",
                    scan.container.owner,
                    binding.line,
                ))

        for diagnostic in diagnostics:
            logger.log(_LOG_LEVELS[diagnostic.severity], str(diagnostic))

        result = CompilationResult(registry=registry, diagnostics=diagnostics, source_name=source_name)
        logger.info(
            f"Compiled {len(registry)} capabilities from {source_name}",
            extra={
                "capabilities": len(registry),
                "dynamic": len(registry.dynamic_entries()),
                "errors": len(result.errors),
                "warnings": len(result.warnings),
            }
        )
        return result


def compile_source(
    text: str,
    filename: str = "<source>",
    config: Optional[CompilerConfig] = None,
) -> CompilationResult:
    """Compile declaration source text into a registry and diagnostics."""
    return DeclarationCompiler(config).compile(text, filename)


def compile_file(path: Union[str, Path], config: Optional[CompilerConfig] = None) -> CompilationResult:
    """Read a declaration module from disk and compile it."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    return compile_source(text, filename=str(path), config=config)
