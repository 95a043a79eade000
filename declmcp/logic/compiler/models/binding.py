"""Implementation binding models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BindingKind(str, Enum):
    """How the runtime invokes a binding."""
    CLASS_PROPERTY = "class-property"  # bound member of the container instance
    CONST = "const"  # module-level binding, called directly


class MatchStrategy(str, Enum):
    """Which lookup rule found the binding."""
    NAME = "name"
    CANONICAL = "canonical"
    DECORATOR = "decorator"
    ANNOTATION = "annotation"


class ImplementationBinding(BaseModel):
    """Resolved callable backing a dynamic capability."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    binding_kind: BindingKind = Field(..., description="Invocation style")
    resolved_name: str = Field(..., description="Member or module-level name to call")
    container: Optional[str] = Field(
        default=None,
        description="Implementation class name for class-property bindings"
    )
    is_async: bool = False
    line: Optional[int] = None
    matched_by: MatchStrategy = MatchStrategy.NAME
