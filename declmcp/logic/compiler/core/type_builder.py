"""
Structural type builder

Turns annotation expressions of a declaration module into TypeNode trees.
Names are resolved against the module's own classes and type aliases; the
module is never imported, so anything defined elsewhere stays UNKNOWN.
"""

import ast
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from ..models.contract_kind import PARAM_CONTRACT
from ..models.type_nodes import FieldNode, TypeNode, TypeTag, literal, primitive, unknown
from ..utils.naming import to_canonical
from .static_data import NOT_STATIC, extract_static

PRIMITIVE_NAMES = {
    "str": "string",
    "bytes": "string",
    "int": "integer",
    "float": "number",
    "bool": "boolean",
    "date": "date",
    "datetime": "datetime",
    "Any": "any",
    "object": "any",
}

ARRAY_NAMES = {"list", "List", "Sequence", "Iterable", "MutableSequence"}
SET_NAMES = {"set", "Set", "frozenset", "FrozenSet", "AbstractSet"}
TUPLE_NAMES = {"tuple", "Tuple"}
RECORD_NAMES = {"dict", "Dict", "Mapping", "MutableMapping"}
CALLABLE_NAMES = {"Callable", "Awaitable", "Coroutine"}
CONSTRAINT_CALLS = {"Param", "Field"}

# Constraint keyword -> ParamConstraints field
CONSTRAINT_KEYWORDS = {
    "ge": "minimum",
    "min": "minimum",
    "minimum": "minimum",
    "le": "maximum",
    "max": "maximum",
    "maximum": "maximum",
    "gt": "exclusive_minimum",
    "exclusive_minimum": "exclusive_minimum",
    "lt": "exclusive_maximum",
    "exclusive_maximum": "exclusive_maximum",
    "min_length": "min_length",
    "max_length": "max_length",
    "pattern": "pattern",
    "format": "format",
    "multiple_of": "multiple_of",
    "min_items": "min_items",
    "max_items": "max_items",
    "unique_items": "unique_items",
    "int": "int",
}

IPARAM_TYPES = {
    "string": "string",
    "number": "number",
    "integer": "integer",
    "boolean": "boolean",
    "date": "date",
    "datetime": "datetime",
}


def final_name(expr: ast.expr) -> Optional[str]:
    """Last identifier of a Name or dotted Attribute, e.g. ``typing.Literal`` -> ``Literal``."""
    if isinstance(expr, ast.Name):
        return expr.id
    if isinstance(expr, ast.Attribute):
        return expr.attr
    return None


def subscript_args(expr: ast.Subscript) -> list[ast.expr]:
    """Arguments of a subscription: ``X[a, b]`` -> ``[a, b]``."""
    if isinstance(expr.slice, ast.Tuple):
        return list(expr.slice.elts)
    return [expr.slice]


def literal_constant(expr: ast.expr) -> Any:
    """Value of a constant expression (with unary minus), or NOT_STATIC."""
    if isinstance(expr, ast.Constant) and expr.value is not Ellipsis:
        return expr.value
    if (
        isinstance(expr, ast.UnaryOp)
        and isinstance(expr.op, ast.USub)
        and isinstance(expr.operand, ast.Constant)
        and isinstance(expr.operand.value, (int, float))
        and not isinstance(expr.operand.value, bool)
    ):
        return -expr.operand.value
    return NOT_STATIC


def class_docstring(node: ast.ClassDef) -> Optional[str]:
    docstring = ast.get_docstring(node)
    return docstring.strip() if docstring else None


@dataclass
class TypeTable:
    """Classes and type aliases declared at module level."""
    classes: dict[str, ast.ClassDef] = field(default_factory=dict)
    aliases: dict[str, ast.expr] = field(default_factory=dict)

    def is_param_class(self, name: str) -> bool:
        node = self.classes.get(name)
        return node is not None and any(final_name(base) == PARAM_CONTRACT for base in node.bases)


class TypeBuilder:
    """Build TypeNode trees from annotation expressions."""

    def __init__(self, table: Optional[TypeTable] = None):
        self.table = table or TypeTable()
        self._in_progress: set[str] = set()
        self._node_handlers: dict[type, Callable[[Any], TypeNode]] = {
            ast.Constant: self._build_constant,
            ast.Name: self._build_name,
            ast.Attribute: self._build_attribute,
            ast.Subscript: self._build_subscript,
            ast.BinOp: self._build_binop,
            ast.Dict: self._build_dict,
            ast.UnaryOp: self._build_unary,
        }
        self._generic_handlers: dict[str, Callable[[list[ast.expr]], TypeNode]] = {
            "Literal": self._build_literal,
            "Optional": self._build_optional,
            "Union": self._build_union_args,
            "NotRequired": self._build_not_required,
            "Required": self._build_required,
            "Annotated": self._build_annotated,
            "ClassVar": self._build_first,
            "Final": self._build_first,
            "ReadOnly": self._build_first,
        }

    def build(self, expr: Optional[ast.expr]) -> TypeNode:
        """Build the structural type of an annotation expression."""
        if expr is None:
            return unknown()
        handler = self._node_handlers.get(type(expr))
        if handler is None:
            return unknown(ast.unparse(expr))
        return handler(expr)

    # Leaf nodes

    def _build_constant(self, expr: ast.Constant) -> TypeNode:
        if isinstance(expr.value, str):
            # Quoted forward reference
            try:
                parsed = ast.parse(expr.value, mode="eval").body
            except SyntaxError:
                return unknown(expr.value)
            return self.build(parsed)
        if expr.value is Ellipsis:
            return unknown("...")
        return literal(expr.value)

    def _build_unary(self, expr: ast.UnaryOp) -> TypeNode:
        value = literal_constant(expr)
        if value is NOT_STATIC:
            return unknown(ast.unparse(expr))
        return literal(value)

    def _build_name(self, expr: ast.Name) -> TypeNode:
        return self.build_named(expr.id)

    def _build_attribute(self, expr: ast.Attribute) -> TypeNode:
        return self.build_named(expr.attr)

    def build_named(self, name: str) -> TypeNode:
        """Resolve a bare type name."""
        if name == "None":
            return literal(None)
        if name in PRIMITIVE_NAMES:
            return primitive(PRIMITIVE_NAMES[name])
        if name in ARRAY_NAMES or name in SET_NAMES or name in TUPLE_NAMES:
            return TypeNode(tag=TypeTag.ARRAY, items=primitive("any"))
        if name in RECORD_NAMES:
            return TypeNode(tag=TypeTag.RECORD, items=primitive("any"))
        if name in CALLABLE_NAMES:
            return TypeNode(tag=TypeTag.CALLABLE)
        if name in self.table.aliases:
            return self._build_alias(name)
        if name in self.table.classes:
            return self.build_class(name)
        return unknown(name)

    def _build_alias(self, name: str) -> TypeNode:
        key = f"alias:{name}"
        if key in self._in_progress:
            return TypeNode(tag=TypeTag.REFERENCE, name=name)
        self._in_progress.add(key)
        try:
            return self.build(self.table.aliases[name])
        finally:
            self._in_progress.discard(key)

    # Composite nodes

    def _build_binop(self, expr: ast.BinOp) -> TypeNode:
        if not isinstance(expr.op, ast.BitOr):
            return unknown(ast.unparse(expr))
        return self._union([self.build(expr.left), self.build(expr.right)])

    def _build_dict(self, expr: ast.Dict) -> TypeNode:
        fields = []
        for key, value in zip(expr.keys, expr.values):
            if not (isinstance(key, ast.Constant) and isinstance(key.value, str)):
                continue
            member = self.build(value)
            fields.append(FieldNode(name=key.value, type=member, optional=member.optional,
                                    description=member.description))
        return TypeNode(tag=TypeTag.OBJECT, fields=tuple(fields))

    def _build_subscript(self, expr: ast.Subscript) -> TypeNode:
        head = final_name(expr.value)
        args = subscript_args(expr)
        if head is None:
            return unknown(ast.unparse(expr))

        handler = self._generic_handlers.get(head)
        if handler is not None:
            return handler(args)
        if head in TUPLE_NAMES:
            return self._build_tuple(args)
        if head in ARRAY_NAMES:
            return TypeNode(tag=TypeTag.ARRAY, items=self.build(args[0]))
        if head in SET_NAMES:
            return TypeNode(tag=TypeTag.ARRAY, items=self.build(args[0]),
                            constraints={"unique_items": True})
        if head in RECORD_NAMES:
            return TypeNode(tag=TypeTag.RECORD, items=self.build(args[-1]))
        if head in CALLABLE_NAMES:
            return TypeNode(tag=TypeTag.CALLABLE)
        if head in self.table.classes:
            # Generic class defined in the module: use its declared shape
            return self.build_class(head)
        return unknown(ast.unparse(expr))

    def _build_literal(self, args: list[ast.expr]) -> TypeNode:
        values: list[Any] = []
        for arg in args:
            if isinstance(arg, ast.Subscript) and final_name(arg.value) == "Literal":
                values.extend(self._build_literal(subscript_args(arg)).values)
                continue
            value = literal_constant(arg)
            if value is NOT_STATIC:
                return unknown(ast.unparse(arg))
            values.append(value)
        return literal(*values)

    def _build_tuple(self, args: list[ast.expr]) -> TypeNode:
        if len(args) == 2 and isinstance(args[1], ast.Constant) and args[1].value is Ellipsis:
            return TypeNode(tag=TypeTag.ARRAY, items=self.build(args[0]))
        if len(args) == 1 and isinstance(args[0], ast.Tuple) and not args[0].elts:
            return TypeNode(tag=TypeTag.TUPLE)
        return TypeNode(tag=TypeTag.TUPLE, elements=tuple(self.build(arg) for arg in args))

    def _build_optional(self, args: list[ast.expr]) -> TypeNode:
        return self._union([self.build(args[0]), literal(None)])

    def _build_union_args(self, args: list[ast.expr]) -> TypeNode:
        return self._union([self.build(arg) for arg in args])

    def _union(self, options: list[TypeNode]) -> TypeNode:
        flat: list[TypeNode] = []
        for option in options:
            if option.tag == TypeTag.UNION:
                flat.extend(option.options)
            else:
                flat.append(option)
        has_none = any(option.tag == TypeTag.LITERAL and option.values == (None,) for option in flat)
        return TypeNode(tag=TypeTag.UNION, options=tuple(flat), optional=has_none)

    def _build_not_required(self, args: list[ast.expr]) -> TypeNode:
        return _replace(self.build(args[0]), optional=True)

    def _build_required(self, args: list[ast.expr]) -> TypeNode:
        return _replace(self.build(args[0]), optional=False)

    def _build_first(self, args: list[ast.expr]) -> TypeNode:
        return self.build(args[0])

    def _build_annotated(self, args: list[ast.expr]) -> TypeNode:
        base = self.build(args[0])
        for meta in args[1:]:
            base = self._apply_metadata(base, meta)
        return base

    def _apply_metadata(self, node: TypeNode, meta: ast.expr) -> TypeNode:
        if isinstance(meta, ast.Call) and final_name(meta.func) in CONSTRAINT_CALLS:
            return self.apply_constraint_call(node, meta)
        if isinstance(meta, ast.Constant) and isinstance(meta.value, str):
            return _replace(node, description=meta.value)
        name = final_name(meta)
        if name and self.table.is_param_class(name):
            param = self.build_class(name)
            return _replace(
                node,
                constraints={**node.constraints, **param.constraints},
                description=param.description or node.description,
                optional=param.optional or node.optional,
            )
        return node

    def apply_constraint_call(self, node: TypeNode, call: ast.Call) -> TypeNode:
        """Merge ``Param(...)`` / ``Field(...)`` keywords into a node."""
        constraints = dict(node.constraints)
        description = node.description
        optional = node.optional

        for keyword in call.keywords:
            if keyword.arg is None:
                continue
            value = literal_constant(keyword.value)
            if value is NOT_STATIC:
                continue
            key = to_canonical(keyword.arg)
            if key == "description":
                description = value
            elif key == "required":
                optional = not value
            elif key in ("default", "default_factory"):
                optional = True
            elif key in CONSTRAINT_KEYWORDS:
                constraints[CONSTRAINT_KEYWORDS[key]] = value

        # Field("text") style first positional argument is a description for Param
        if call.args and final_name(call.func) == "Param":
            value = literal_constant(call.args[0])
            if isinstance(value, str):
                description = value

        return _replace(node, constraints=constraints, description=description, optional=optional)

    # Classes

    def build_class(self, name: str) -> TypeNode:
        """Build the object shape of a class declared in the module."""
        if name in self._in_progress:
            return TypeNode(tag=TypeTag.REFERENCE, name=name)
        node = self.table.classes[name]
        self._in_progress.add(name)
        try:
            if self.table.is_param_class(name):
                return self._build_param_class(node)
            return self._build_object_class(node)
        finally:
            self._in_progress.discard(name)

    def _build_object_class(self, node: ast.ClassDef) -> TypeNode:
        fields: dict[str, FieldNode] = {}

        # Inherited fields from module-local bases come first
        for base in node.bases:
            base_name = final_name(base.value if isinstance(base, ast.Subscript) else base)
            if base_name in self.table.classes and base_name not in self._in_progress:
                for member in self.build_class(base_name).fields:
                    fields[member.name] = member

        total = True
        for keyword in node.keywords:
            if keyword.arg == "total" and literal_constant(keyword.value) is False:
                total = False

        body = node.body
        for index, stmt in enumerate(body):
            if not (isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name)):
                continue
            if stmt.target.id.startswith("_") or _is_classvar(stmt.annotation):
                continue

            member = self.build(stmt.annotation)
            if isinstance(stmt.value, ast.Call) and final_name(stmt.value.func) in CONSTRAINT_CALLS:
                member = self.apply_constraint_call(member, stmt.value)
            elif stmt.value is not None:
                # A plain default value makes the field optional
                member = _replace(member, optional=True)

            description = member.description or _attribute_docstring(body, index)
            fields[stmt.target.id] = FieldNode(
                name=stmt.target.id,
                type=member,
                optional=member.optional or not total,
                description=description,
            )

        return TypeNode(
            tag=TypeTag.OBJECT,
            fields=tuple(fields.values()),
            name=node.name,
            description=class_docstring(node),
        )

    def _build_param_class(self, node: ast.ClassDef) -> TypeNode:
        members: dict[str, ast.expr] = {}
        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                members[to_canonical(stmt.target.id)] = stmt.annotation

        def value_of(key: str) -> Any:
            if key not in members:
                return NOT_STATIC
            return extract_static(self.build(members[key]))

        param_type = value_of("type")
        kind = param_type if isinstance(param_type, str) else "string"
        constraints: dict[str, Any] = {}

        enum_values: tuple = ()
        if "enum" in members:
            enum_node = self.build(members["enum"])
            if enum_node.tag == TypeTag.LITERAL:
                enum_values = enum_node.values
            else:
                extracted = extract_static(enum_node)
                if isinstance(extracted, list):
                    enum_values = tuple(extracted)

        if enum_values:
            base = literal(*enum_values)
        elif kind == "array":
            items = self.build(members["items"]) if "items" in members else primitive("any")
            base = TypeNode(tag=TypeTag.ARRAY, items=items)
        elif kind == "object":
            base = TypeNode(tag=TypeTag.RECORD, items=primitive("any"))
        else:
            base = primitive(IPARAM_TYPES.get(kind, "any"))

        numeric = kind in ("number", "integer")
        for key in ("min", "max"):
            value = value_of(key)
            if value is NOT_STATIC:
                continue
            if numeric:
                constraints["minimum" if key == "min" else "maximum"] = value
            elif kind == "array":
                constraints["min_items" if key == "min" else "max_items"] = value
            else:
                constraints["min_length" if key == "min" else "max_length"] = value

        for key in ("min_length", "max_length", "pattern", "format", "multiple_of",
                    "min_items", "max_items", "unique_items", "int",
                    "exclusive_minimum", "exclusive_maximum"):
            value = value_of(key)
            if value is not NOT_STATIC:
                constraints[key] = value

        description = value_of("description")
        required = value_of("required")
        return _replace(
            base,
            constraints=constraints,
            description=description if isinstance(description, str) else class_docstring(node),
            optional=required is False,
            name=node.name,
        )


def _replace(node: TypeNode, **changes: Any) -> TypeNode:
    return replace(node, **changes)


def _is_classvar(annotation: ast.expr) -> bool:
    target = annotation.value if isinstance(annotation, ast.Subscript) else annotation
    return final_name(target) == "ClassVar"


def _attribute_docstring(body: list[ast.stmt], index: int) -> Optional[str]:
    """String literal directly following an annotated attribute."""
    if index + 1 >= len(body):
        return None
    following = body[index + 1]
    if (
        isinstance(following, ast.Expr)
        and isinstance(following.value, ast.Constant)
        and isinstance(following.value.value, str)
    ):
        return following.value.value.strip()
    return None
