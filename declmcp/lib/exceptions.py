"""Exception hierarchy for declaration compilation and registry handling."""

from typing import Any, Dict, List, Optional


class DeclMcpError(Exception):
    """Base exception for all declmcp errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize declmcp error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for diagnostics output."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class SourceParseError(DeclMcpError):
    """Raised when the source text is not valid Python."""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        """Initialize source parse error."""
        details = {}
        if filename:
            details["filename"] = filename
        if line is not None:
            details["line"] = line
        if column is not None:
            details["column"] = column

        super().__init__(message, details)

    @classmethod
    def from_syntax_error(cls, error: SyntaxError, filename: str) -> "SourceParseError":
        """Create exception from a SyntaxError raised by the parser."""
        return cls(
            message=f"Cannot parse {filename}: {error.msg}",
            filename=filename,
            line=error.lineno,
            column=error.offset
        )


class StructuralContradictionError(DeclMcpError):
    """Raised when a declaration is self-contradictory and the file must not compile.

    The only current source is a UI declaration that names more than one
    content source.
    """

    def __init__(
        self,
        message: str,
        declaration_name: Optional[str] = None,
        conflicting_fields: Optional[List[str]] = None,
        diagnostic: Optional[Any] = None
    ):
        """Initialize structural contradiction error.

        Args:
            diagnostic: The structural_contradiction Diagnostic reported for
                the aborted file
        """
        details = {}
        if declaration_name:
            details["declaration_name"] = declaration_name
        if conflicting_fields:
            details["conflicting_fields"] = conflicting_fields

        super().__init__(message, details)
        self.declaration_name = declaration_name
        self.conflicting_fields = conflicting_fields or []
        self.diagnostic = diagnostic


class RejectedDeclarationError(DeclMcpError):
    """Raised by an extractor when a declaration cannot be used.

    The scanner converts it into a diagnostic and drops the declaration.
    """

    def __init__(
        self,
        message: str,
        declaration_name: Optional[str] = None,
        missing_field: Optional[str] = None
    ):
        """Initialize rejected declaration error."""
        details = {}
        if declaration_name:
            details["declaration_name"] = declaration_name
        if missing_field:
            details["missing_field"] = missing_field

        super().__init__(message, details)
        self.declaration_name = declaration_name
        self.missing_field = missing_field


class ImplementationError(DeclMcpError):
    """Base class for implementation linking failures."""

    def __init__(
        self,
        message: str,
        declaration_name: Optional[str] = None,
        implementation_name: Optional[str] = None,
        searched: Optional[List[str]] = None
    ):
        """Initialize implementation error."""
        details = {}
        if declaration_name:
            details["declaration_name"] = declaration_name
        if implementation_name:
            details["implementation_name"] = implementation_name
        if searched:
            details["searched"] = searched

        super().__init__(message, details)
        self.declaration_name = declaration_name
        self.implementation_name = implementation_name


class ImplementationNotFoundError(ImplementationError):
    """Raised when no binding exists for a dynamic capability."""


class ImplementationTypeMismatchError(ImplementationError):
    """Raised when the binding for a dynamic capability is not callable."""


class ParamValidationError(DeclMcpError):
    """Raised when a value fails a compiled validator."""

    def __init__(
        self,
        message: str,
        schema_name: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None
    ):
        """Initialize param validation error."""
        details = {}
        if schema_name:
            details["schema_name"] = schema_name
        if field_errors:
            details["field_errors"] = field_errors

        super().__init__(message, details)
        self.field_errors = field_errors or {}


class RegistrySerializationError(DeclMcpError):
    """Raised when a registry cannot be written to or read from its external form."""

    def __init__(self, message: str, path: Optional[str] = None, format: Optional[str] = None):
        """Initialize registry serialization error."""
        details = {}
        if path:
            details["path"] = path
        if format:
            details["format"] = format

        super().__init__(message, details)


def create_actionable_error_message(error: DeclMcpError) -> str:
    """Create a user-facing message with a suggested fix."""
    base_message = error.message

    if isinstance(error, StructuralContradictionError):
        fields = ", ".join(error.conflicting_fields)
        base_message += f"\n\nKeep exactly one of: {fields}."
    elif isinstance(error, ImplementationNotFoundError):
        if error.implementation_name:
            base_message += (
                f"\n\nDefine '{error.implementation_name}' as a method on the server class "
                f"or as a module-level function."
            )
    elif isinstance(error, ImplementationTypeMismatchError):
        base_message += "\n\nThe binding must be a function, method or lambda."
    elif isinstance(error, SourceParseError):
        line = error.details.get("line")
        if line is not None:
            base_message += f"\n\nCheck the syntax near line {line}."

    return base_message


def format_error_for_cli(error: Exception) -> str:
    """Format any exception for terminal display."""
    if isinstance(error, DeclMcpError):
        return create_actionable_error_message(error)
    else:
        return f"Unexpected error: {error}"
