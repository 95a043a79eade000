"""Compile-time diagnostics."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DiagnosticSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticKind(str, Enum):
    REJECTED_DECLARATION = "rejected_declaration"
    IMPLEMENTATION_NOT_FOUND = "implementation_not_found"
    IMPLEMENTATION_TYPE_MISMATCH = "implementation_type_mismatch"
    DUPLICATE_CAPABILITY = "duplicate_capability"
    UNRESOLVED_AUTH_REFERENCE = "unresolved_auth_reference"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    ANY_TYPED_FIELD = "any_typed_field"
    STRUCTURAL_CONTRADICTION = "structural_contradiction"
    NAME_NORMALIZED = "name_normalized"
    UNUSED_IMPLEMENTATION = "unused_implementation"


DEFAULT_SEVERITY: dict[DiagnosticKind, DiagnosticSeverity] = {
    DiagnosticKind.REJECTED_DECLARATION: DiagnosticSeverity.WARNING,
    DiagnosticKind.IMPLEMENTATION_NOT_FOUND: DiagnosticSeverity.ERROR,
    DiagnosticKind.IMPLEMENTATION_TYPE_MISMATCH: DiagnosticSeverity.ERROR,
    DiagnosticKind.DUPLICATE_CAPABILITY: DiagnosticSeverity.WARNING,
    DiagnosticKind.UNRESOLVED_AUTH_REFERENCE: DiagnosticSeverity.WARNING,
    DiagnosticKind.UNRESOLVED_REFERENCE: DiagnosticSeverity.WARNING,
    DiagnosticKind.ANY_TYPED_FIELD: DiagnosticSeverity.WARNING,
    DiagnosticKind.STRUCTURAL_CONTRADICTION: DiagnosticSeverity.ERROR,
    DiagnosticKind.NAME_NORMALIZED: DiagnosticSeverity.INFO,
    DiagnosticKind.UNUSED_IMPLEMENTATION: DiagnosticSeverity.INFO,
}


class Diagnostic(BaseModel):
    """One developer-facing compile-time message."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    severity: DiagnosticSeverity
    kind: DiagnosticKind
    declaration_name: Optional[str] = Field(default=None, description="Declaration the message is about")
    message: str
    line: Optional[int] = None

    @classmethod
    def create(
        cls,
        kind: DiagnosticKind,
        message: str,
        declaration_name: Optional[str] = None,
        line: Optional[int] = None,
        severity: Optional[DiagnosticSeverity] = None,
    ) -> "Diagnostic":
        """Create a diagnostic with the default severity for its kind."""
        return cls(
            severity=severity or DEFAULT_SEVERITY[kind],
            kind=kind,
            declaration_name=declaration_name,
            message=message,
            line=line,
        )

    def __str__(self) -> str:
        location = f" (line {self.line})" if self.line else ""
        subject = f"{self.declaration_name}: " if self.declaration_name else ""
        return f"[{self.severity.value}] {self.kind.value}{location}: {subject}{self.message}"
