"""Structural type descriptions built from declaration annotations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class TypeTag(str, Enum):
    """Tag of a structural type node."""
    LITERAL = "literal"
    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    TUPLE = "tuple"
    RECORD = "record"
    UNION = "union"
    CALLABLE = "callable"
    REFERENCE = "reference"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldNode:
    """One named member of an object shape."""
    name: str
    type: "TypeNode"
    optional: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class TypeNode:
    """Tagged node of a structural type tree.

    Only the attributes relevant to ``tag`` are populated:

    - LITERAL: ``values`` (one value, or several for a literal union)
    - PRIMITIVE: ``primitive`` (string, integer, number, boolean, date,
      datetime, any)
    - OBJECT: ``fields`` in declaration order, ``name`` of the source class
    - ARRAY and RECORD: ``items``
    - TUPLE: ``elements``
    - UNION: ``options``
    - REFERENCE: ``name`` of a class already being expanded (recursive type)
    - UNKNOWN: ``raw`` source text of the annotation
    """
    tag: TypeTag
    values: tuple = ()
    primitive: Optional[str] = None
    fields: tuple[FieldNode, ...] = ()
    items: Optional["TypeNode"] = None
    elements: tuple["TypeNode", ...] = ()
    options: tuple["TypeNode", ...] = ()
    name: Optional[str] = None
    raw: Optional[str] = None
    constraints: dict[str, Any] = field(default_factory=dict, hash=False, compare=True)
    description: Optional[str] = None
    optional: bool = False

    def get_field(self, name: str) -> Optional[FieldNode]:
        """Look up an object field by name."""
        for member in self.fields:
            if member.name == name:
                return member
        return None


def literal(*values: Any) -> TypeNode:
    return TypeNode(tag=TypeTag.LITERAL, values=tuple(values))


def primitive(name: str) -> TypeNode:
    return TypeNode(tag=TypeTag.PRIMITIVE, primitive=name)


def unknown(raw: Optional[str] = None) -> TypeNode:
    return TypeNode(tag=TypeTag.UNKNOWN, raw=raw)
