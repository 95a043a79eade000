"""declmcp - compile declarative MCP server modules into capability registries."""

from .core.config import CompilerConfig, get_config, set_config
from .lib.exceptions import (
    DeclMcpError,
    ImplementationNotFoundError,
    ImplementationTypeMismatchError,
    ParamValidationError,
    RegistrySerializationError,
    SourceParseError,
    StructuralContradictionError,
)
from .logic.compiler import (
    CapabilityRegistry,
    CompilationResult,
    ContractKind,
    Diagnostic,
    compile_file,
    compile_source,
    load_registry,
    save_registry,
)

__version__ = "0.1.0"

__all__ = [
    "compile_source",
    "compile_file",
    "load_registry",
    "save_registry",
    "CompilationResult",
    "CapabilityRegistry",
    "ContractKind",
    "Diagnostic",
    "CompilerConfig",
    "get_config",
    "set_config",
    "DeclMcpError",
    "SourceParseError",
    "StructuralContradictionError",
    "ImplementationNotFoundError",
    "ImplementationTypeMismatchError",
    "ParamValidationError",
    "RegistrySerializationError",
]
