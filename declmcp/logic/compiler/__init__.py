"""Declaration compiler: source module in, capability registry and diagnostics out."""

from .core.compiler import CompilationResult, DeclarationCompiler, compile_file, compile_source
from .core.registry_store import load_registry, save_registry
from .models import CapabilityRegistry, ContractKind, Diagnostic, DiagnosticKind, DiagnosticSeverity

__all__ = [
    "compile_source",
    "compile_file",
    "load_registry",
    "save_registry",
    "CompilationResult",
    "DeclarationCompiler",
    "CapabilityRegistry",
    "ContractKind",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticSeverity",
]
