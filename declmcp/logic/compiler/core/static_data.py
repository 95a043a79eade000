"""
Static data extraction

Converts a structural literal type into the concrete value it describes.
Extraction is all-or-nothing: a tuple or object with a single non-literal
member is not static, so a runtime never receives half-literal data.
"""

from typing import Any, Callable

from ..models.type_nodes import TypeNode, TypeTag


class _NotStatic:
    """Sentinel for a type that has no single literal value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_STATIC"


NOT_STATIC: Any = _NotStatic()


def is_static(value: Any) -> bool:
    return value is not NOT_STATIC


def _extract_literal(node: TypeNode) -> Any:
    # A literal union such as Literal["a", "b"] has no single value
    if len(node.values) != 1:
        return NOT_STATIC
    return node.values[0]


def _extract_tuple(node: TypeNode) -> Any:
    items = []
    for element in node.elements:
        value = extract_static(element)
        if value is NOT_STATIC:
            return NOT_STATIC
        items.append(value)
    return items


def _extract_object(node: TypeNode) -> Any:
    data = {}
    for member in node.fields:
        value = extract_static(member.type)
        if value is NOT_STATIC:
            return NOT_STATIC
        data[member.name] = value
    return data


_EXTRACTORS: dict[TypeTag, Callable[[TypeNode], Any]] = {
    TypeTag.LITERAL: _extract_literal,
    TypeTag.TUPLE: _extract_tuple,
    TypeTag.OBJECT: _extract_object,
}


def extract_static(node: TypeNode) -> Any:
    """
    Extract the value described by a literal type.

    Args:
        node: Structural type description

    Returns:
        A JSON-compatible value, or NOT_STATIC when the type is not a literal
        shape. Never raises.
    """
    handler = _EXTRACTORS.get(node.tag)
    if handler is None:
        return NOT_STATIC
    return handler(node)
