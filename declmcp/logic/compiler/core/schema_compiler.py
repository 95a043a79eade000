"""
Schema compiler

Two steps: ``build_param_schema`` turns a structural TypeNode into a
serializable ParamSchema, and ``compile_schema`` turns a ParamSchema into a
CompiledValidator backed by a pydantic TypeAdapter. Both are total: shapes
that cannot be expressed become ``any`` instead of failing.
"""

import ipaddress
import re
import uuid
from datetime import date, datetime
from typing import Any, Callable, Literal, Optional, Union

from pydantic import AfterValidator, AnyUrl, EmailStr, Field, TypeAdapter, ValidationError
from typing_extensions import Annotated, NotRequired, TypedDict

from declmcp.core.lib_logger import get_component_logger
from declmcp.lib.exceptions import ParamValidationError

from ..models.param_schema import ParamConstraints, ParamSchema, SchemaKind, StringFormat
from ..models.type_nodes import TypeNode, TypeTag

_PRIMITIVE_KINDS = {
    "string": SchemaKind.STRING,
    "integer": SchemaKind.INTEGER,
    "number": SchemaKind.NUMBER,
    "boolean": SchemaKind.BOOLEAN,
    "date": SchemaKind.DATE,
    "datetime": SchemaKind.DATETIME,
    "any": SchemaKind.ANY,
}

_KNOWN_FORMATS = {fmt.value for fmt in StringFormat}

_URL_ADAPTER = TypeAdapter(AnyUrl)

# RFC 3339 date-time: a full date, a "T" or space separator, then a time
_DATETIME_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}")


# ---------------------------------------------------------------------------
# TypeNode -> ParamSchema
# ---------------------------------------------------------------------------


def _constraints_for(node: TypeNode, kind: SchemaKind) -> ParamConstraints:
    values = {key: value for key, value in node.constraints.items() if value is not None}

    fmt = values.get("format")
    if fmt is not None and fmt not in _KNOWN_FORMATS:
        values.pop("format")

    if kind == SchemaKind.ARRAY:
        # min_length/max_length on a list constrain its item count
        if "min_length" in values:
            values.setdefault("min_items", values.pop("min_length"))
        if "max_length" in values:
            values.setdefault("max_items", values.pop("max_length"))

    allowed = set(ParamConstraints.model_fields) | {"int"}
    return ParamConstraints(**{k: v for k, v in values.items() if k in allowed})


def _literal_schema(node: TypeNode) -> dict[str, Any]:
    if node.values == (None,):
        return {"kind": SchemaKind.NULL}
    return {"kind": SchemaKind.ENUM, "values": list(node.values)}


def _primitive_schema(node: TypeNode) -> dict[str, Any]:
    return {"kind": _PRIMITIVE_KINDS.get(node.primitive or "any", SchemaKind.ANY)}


def _object_schema(node: TypeNode) -> dict[str, Any]:
    properties = {}
    for member in node.fields:
        child = build_param_schema(member.type)
        updates: dict[str, Any] = {"optional": member.optional or member.type.optional}
        if member.description and not child.description:
            updates["description"] = member.description
        properties[member.name] = child.model_copy(update=updates)
    return {"kind": SchemaKind.OBJECT, "title": node.name, "properties": properties}


def _array_schema(node: TypeNode) -> dict[str, Any]:
    items = build_param_schema(node.items) if node.items is not None else ParamSchema(kind=SchemaKind.ANY)
    return {"kind": SchemaKind.ARRAY, "items": items}


def _record_schema(node: TypeNode) -> dict[str, Any]:
    items = build_param_schema(node.items) if node.items is not None else ParamSchema(kind=SchemaKind.ANY)
    return {"kind": SchemaKind.RECORD, "items": items}


def _tuple_schema(node: TypeNode) -> dict[str, Any]:
    return {"kind": SchemaKind.TUPLE, "elements": [build_param_schema(e) for e in node.elements]}


def _union_schema(node: TypeNode) -> dict[str, Any]:
    # A union made only of literals is a single enum
    if node.options and all(option.tag == TypeTag.LITERAL for option in node.options):
        values: list[Any] = []
        for option in node.options:
            values.extend(v for v in option.values if v not in values)
        return {"kind": SchemaKind.ENUM, "values": values}

    options = [build_param_schema(option) for option in node.options]
    if len(options) == 1:
        return options[0].model_dump(exclude={"optional", "description"})
    return {"kind": SchemaKind.UNION, "options": options}


def _any_schema(node: TypeNode) -> dict[str, Any]:
    return {"kind": SchemaKind.ANY}


_SCHEMA_BUILDERS: dict[TypeTag, Callable[[TypeNode], dict[str, Any]]] = {
    TypeTag.LITERAL: _literal_schema,
    TypeTag.PRIMITIVE: _primitive_schema,
    TypeTag.OBJECT: _object_schema,
    TypeTag.ARRAY: _array_schema,
    TypeTag.RECORD: _record_schema,
    TypeTag.TUPLE: _tuple_schema,
    TypeTag.UNION: _union_schema,
    TypeTag.CALLABLE: _any_schema,
    TypeTag.REFERENCE: _any_schema,
    TypeTag.UNKNOWN: _any_schema,
}


def build_param_schema(node: TypeNode) -> ParamSchema:
    """Convert a structural type into a ParamSchema."""
    fields = _SCHEMA_BUILDERS[node.tag](node)
    kind = fields["kind"]
    if node.constraints:
        fields["constraints"] = _constraints_for(node, kind)
    if node.description:
        fields["description"] = node.description
    fields["optional"] = node.optional
    return ParamSchema(**fields)


# ---------------------------------------------------------------------------
# ParamSchema -> CompiledValidator
# ---------------------------------------------------------------------------


def _check_url(value: str) -> str:
    _URL_ADAPTER.validate_python(value)
    return value


def _check_uuid(value: str) -> str:
    uuid.UUID(value)
    return value


def _check_datetime(value: str) -> str:
    if not _DATETIME_SHAPE.match(value):
        raise ValueError("expected a date and a time")
    datetime.fromisoformat(value.replace("Z", "+00:00").replace("z", "+00:00"))
    return value


def _check_ipv4(value: str) -> str:
    ipaddress.IPv4Address(value)
    return value


def _check_ipv6(value: str) -> str:
    ipaddress.IPv6Address(value)
    return value


def _check_unique(value: list) -> list:
    seen: list = []
    for item in value:
        if item in seen:
            raise ValueError(f"duplicate item {item!r}")
        seen.append(item)
    return value


_FORMAT_CHECKS: dict[StringFormat, tuple[Callable[[str], str], str]] = {
    StringFormat.URL: (_check_url, "uri"),
    StringFormat.URI: (_check_url, "uri"),
    StringFormat.UUID: (_check_uuid, "uuid"),
    StringFormat.DATE_TIME: (_check_datetime, "date-time"),
    StringFormat.IPV4: (_check_ipv4, "ipv4"),
    StringFormat.IPV6: (_check_ipv6, "ipv6"),
}


def _identifier(title: Optional[str], fallback: str) -> str:
    cleaned = re.sub(r"\W", "_", title or fallback)
    return cleaned if cleaned and not cleaned[0].isdigit() else f"_{cleaned}"


class CompiledValidator:
    """
    Executable validator bound to one ParamSchema.

    Objects validate into plain dicts. Instances hold no per-call state and
    can be shared across requests.
    """

    def __init__(self, schema: ParamSchema, name: str = "params"):
        self.schema = schema
        self.name = name
        self.any_paths = schema.any_paths()
        self._adapter = TypeAdapter(_SchemaTranslator(name).annotation(schema))
        self._json_schema: Optional[dict[str, Any]] = None

    def validate(self, value: Any) -> Any:
        """
        Validate a value and return its normalized form.

        Raises:
            ParamValidationError: If the value does not match the schema
        """
        try:
            return self._adapter.validate_python(value)
        except ValidationError as e:
            field_errors = {error["path"]: error["message"] for error in _simplify(e)}
            raise ParamValidationError(
                f"Invalid {self.name}: {e.error_count()} validation error(s)",
                schema_name=self.name,
                field_errors=field_errors
            ) from e

    def is_valid(self, value: Any) -> bool:
        try:
            self._adapter.validate_python(value)
        except ValidationError:
            return False
        return True

    def errors(self, value: Any) -> list[dict[str, str]]:
        """List validation errors for a value; empty when valid."""
        try:
            self._adapter.validate_python(value)
        except ValidationError as e:
            return _simplify(e)
        return []

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema of the accepted values."""
        if self._json_schema is None:
            self._json_schema = self._adapter.json_schema()
        return self._json_schema

    def __repr__(self) -> str:
        return f"CompiledValidator(name={self.name!r}, kind={self.schema.kind.value!r})"


def _simplify(error: ValidationError) -> list[dict[str, str]]:
    return [
        {
            "path": ".".join(str(part) for part in item["loc"]) or "$",
            "message": item["msg"],
            "type": item["type"],
        }
        for item in error.errors()
    ]


class _SchemaTranslator:
    """Build a pydantic-compatible annotation from a ParamSchema tree."""

    def __init__(self, name: str):
        self.name = name
        self._object_count = 0
        self._handlers: dict[SchemaKind, Callable[[ParamSchema], Any]] = {
            SchemaKind.STRING: self._string,
            SchemaKind.INTEGER: self._integer,
            SchemaKind.NUMBER: self._number,
            SchemaKind.BOOLEAN: self._boolean,
            SchemaKind.DATE: lambda schema: date,
            SchemaKind.DATETIME: lambda schema: datetime,
            SchemaKind.NULL: lambda schema: None,
            SchemaKind.ENUM: self._enum,
            SchemaKind.ARRAY: self._array,
            SchemaKind.TUPLE: self._tuple,
            SchemaKind.OBJECT: self._object,
            SchemaKind.RECORD: self._record,
            SchemaKind.UNION: self._union,
            SchemaKind.ANY: lambda schema: Any,
        }

    def annotation(self, schema: ParamSchema) -> Any:
        annotation = self._handlers[schema.kind](schema)
        if schema.description:
            annotation = Annotated[annotation, Field(description=schema.description)]
        return annotation

    def _string(self, schema: ParamSchema) -> Any:
        c = schema.constraints
        base: Any = str
        metadata: list[Any] = [
            Field(strict=True, min_length=c.min_length, max_length=c.max_length, pattern=c.pattern)
        ]
        if c.format == StringFormat.EMAIL:
            base = EmailStr
            metadata = [Field(min_length=c.min_length, max_length=c.max_length, pattern=c.pattern)]
        elif c.format in _FORMAT_CHECKS:
            check, json_format = _FORMAT_CHECKS[c.format]
            metadata.append(AfterValidator(check))
            metadata.append(Field(json_schema_extra={"format": json_format}))
        return Annotated[(base, *metadata)]

    def _numeric_field(self, c: ParamConstraints) -> Any:
        return Field(
            strict=True,
            ge=c.minimum,
            le=c.maximum,
            gt=c.exclusive_minimum,
            lt=c.exclusive_maximum,
            multiple_of=c.multiple_of
        )

    def _integer(self, schema: ParamSchema) -> Any:
        return Annotated[int, self._numeric_field(schema.constraints)]

    def _number(self, schema: ParamSchema) -> Any:
        base = int if schema.constraints.integer_only else float
        return Annotated[base, self._numeric_field(schema.constraints)]

    def _boolean(self, schema: ParamSchema) -> Any:
        return Annotated[bool, Field(strict=True)]

    def _enum(self, schema: ParamSchema) -> Any:
        values = tuple(schema.values or ())
        if not values:
            return Any
        return Literal[values]

    def _array(self, schema: ParamSchema) -> Any:
        c = schema.constraints
        item = self.annotation(schema.items) if schema.items is not None else Any
        metadata: list[Any] = [Field(min_length=c.min_items, max_length=c.max_items)]
        if c.unique_items:
            metadata.append(AfterValidator(_check_unique))
        return Annotated[(list[item], *metadata)]

    def _tuple(self, schema: ParamSchema) -> Any:
        elements = tuple(self.annotation(element) for element in schema.elements or [])
        if not elements:
            return tuple[()]
        return tuple[elements]

    def _object(self, schema: ParamSchema) -> Any:
        fields = {}
        for key, child in (schema.properties or {}).items():
            annotation = self.annotation(child)
            fields[key] = NotRequired[annotation] if child.optional else annotation
        self._object_count += 1
        fallback = self.name if self._object_count == 1 else f"{self.name}_{self._object_count}"
        return TypedDict(_identifier(schema.title, fallback), fields)

    def _record(self, schema: ParamSchema) -> Any:
        value = self.annotation(schema.items) if schema.items is not None else Any
        return dict[str, value]

    def _union(self, schema: ParamSchema) -> Any:
        options = tuple(self.annotation(option) for option in schema.options or [])
        if not options:
            return Any
        if len(options) == 1:
            return options[0]
        return Union[options]


def compile_schema(schema: ParamSchema, name: str = "params") -> CompiledValidator:
    """Compile a ParamSchema into a reusable validator."""
    logger = get_component_logger("compiler.schema")
    validator = CompiledValidator(schema, name=name)
    logger.debug(
        f"Compiled {name} validator",
        extra={"schema_kind": schema.kind.value, "any_paths": validator.any_paths}
    )
    return validator
