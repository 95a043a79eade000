"""Serializable parameter/result shape descriptions."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SchemaKind(str, Enum):
    """Kind of value a ParamSchema accepts."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    NULL = "null"
    ENUM = "enum"
    ARRAY = "array"
    TUPLE = "tuple"
    OBJECT = "object"
    RECORD = "record"
    UNION = "union"
    ANY = "any"


class StringFormat(str, Enum):
    """Format hints understood by the schema compiler."""
    EMAIL = "email"
    URL = "url"
    URI = "uri"
    UUID = "uuid"
    DATE_TIME = "date-time"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


class ParamConstraints(BaseModel):
    """Value constraints attached to a ParamSchema."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    pattern: Optional[str] = None
    format: Optional[StringFormat] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = Field(default=None, alias="exclusiveMinimum")
    exclusive_maximum: Optional[float] = Field(default=None, alias="exclusiveMaximum")
    multiple_of: Optional[float] = Field(default=None, alias="multipleOf")
    min_items: Optional[int] = Field(default=None, alias="minItems")
    max_items: Optional[int] = Field(default=None, alias="maxItems")
    unique_items: Optional[bool] = Field(default=None, alias="uniqueItems")
    integer_only: Optional[bool] = Field(default=None, alias="int")


class ParamSchema(BaseModel):
    """
    Structural description of a parameter or result shape.

    Object properties keep declaration order. ``optional`` marks a property
    that may be absent from its parent object; every other property is
    required.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: SchemaKind
    title: Optional[str] = None
    description: Optional[str] = None
    optional: bool = False
    values: Optional[list[Any]] = None
    properties: Optional[dict[str, "ParamSchema"]] = None
    items: Optional["ParamSchema"] = None
    elements: Optional[list["ParamSchema"]] = None
    options: Optional[list["ParamSchema"]] = None
    constraints: ParamConstraints = Field(default_factory=ParamConstraints)

    @classmethod
    def empty_object(cls, title: Optional[str] = None) -> "ParamSchema":
        """Schema of an object with no properties."""
        return cls(kind=SchemaKind.OBJECT, title=title, properties={})

    def any_paths(self, prefix: str = "") -> list[str]:
        """
        Dotted paths of every position that accepts any value.

        Returns:
            Paths such as ``"filters.extra"`` or ``"items[]"``; ``""`` when
            the schema itself is unconstrained
        """
        if self.kind == SchemaKind.ANY:
            return [prefix]

        paths: list[str] = []
        for name, child in (self.properties or {}).items():
            paths.extend(child.any_paths(f"{prefix}.{name}" if prefix else name))
        if self.items is not None:
            paths.extend(self.items.any_paths(f"{prefix}[]"))
        for index, element in enumerate(self.elements or []):
            paths.extend(element.any_paths(f"{prefix}[{index}]"))
        for option in self.options or []:
            paths.extend(option.any_paths(prefix))
        return paths

    def required_properties(self) -> list[str]:
        return [name for name, child in (self.properties or {}).items() if not child.optional]

    def argument_list(self) -> list[dict[str, Any]]:
        """Describe object properties as prompt arguments."""
        arguments = []
        for name, child in (self.properties or {}).items():
            argument: dict[str, Any] = {"name": name, "required": not child.optional}
            if child.description:
                argument["description"] = child.description
            arguments.append(argument)
        return arguments


ParamSchema.model_rebuild()
