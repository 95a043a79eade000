"""Shared machinery for per-kind declaration extractors."""

import ast
from dataclasses import dataclass, field
from typing import Any, Optional

from declmcp.core.config import CompilerConfig
from declmcp.lib.exceptions import RejectedDeclarationError

from ..core.schema_compiler import build_param_schema
from ..core.static_data import NOT_STATIC, extract_static
from ..core.type_builder import TypeBuilder, class_docstring, final_name, subscript_args
from ..models.contract_kind import ContractKind
from ..models.diagnostics import Diagnostic, DiagnosticKind
from ..models.param_schema import ParamSchema
from ..models.type_nodes import TypeNode
from ..utils.naming import to_canonical, to_implementation_name

REFERENCE_CONTAINERS = {"tuple", "Tuple", "list", "List", "set", "Set", "frozenset", "Sequence"}


@dataclass
class Member:
    """One annotated member of a declaration class."""
    name: str
    key: str
    annotation: ast.expr
    value: Optional[ast.expr]
    line: int


@dataclass
class ExtractionContext:
    """Everything an extractor may read about one declaration."""
    node: ast.ClassDef
    contract_name: str
    kind: ContractKind
    types: TypeBuilder
    config: CompilerConfig
    generic_args: list[ast.expr] = field(default_factory=list)
    members: dict[str, Member] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        node: ast.ClassDef,
        contract_name: str,
        kind: ContractKind,
        types: TypeBuilder,
        config: CompilerConfig,
        generic_args: Optional[list[ast.expr]] = None,
    ) -> "ExtractionContext":
        """Index the class body. Member names are canonicalized, first one wins."""
        members: dict[str, Member] = {}
        for stmt in node.body:
            if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                key = to_canonical(stmt.target.id)
                members.setdefault(key, Member(
                    name=stmt.target.id,
                    key=key,
                    annotation=stmt.annotation,
                    value=stmt.value,
                    line=stmt.lineno,
                ))
        return cls(
            node=node,
            contract_name=contract_name,
            kind=kind,
            types=types,
            config=config,
            generic_args=list(generic_args or []),
            members=members,
        )

    @property
    def declared_name(self) -> str:
        return self.node.name

    @property
    def line(self) -> int:
        return self.node.lineno

    @property
    def docstring(self) -> Optional[str]:
        return class_docstring(self.node)

    def has(self, key: str) -> bool:
        return key in self.members

    def type_of(self, key: str) -> Optional[TypeNode]:
        member = self.members.get(key)
        if member is None:
            return None
        return self.types.build(member.annotation)

    def static(self, key: str) -> Any:
        """Literal value of a member, or NOT_STATIC when absent or not literal."""
        node = self.type_of(key)
        if node is None:
            return NOT_STATIC
        return extract_static(node)

    def string(self, key: str, required: bool = False) -> Optional[str]:
        value = self.static(key)
        if isinstance(value, str):
            return value
        if required:
            self.reject(f"'{key}' must be declared as a string literal", key)
        return None

    def boolean(self, key: str) -> Optional[bool]:
        value = self.static(key)
        return value if isinstance(value, bool) else None

    def integer(self, key: str) -> Optional[int]:
        value = self.static(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    def mapping(self, key: str) -> Optional[dict[str, Any]]:
        value = self.static(key)
        return value if isinstance(value, dict) else None

    def description(self, required: bool = False) -> Optional[str]:
        """Declared description, falling back to the class docstring."""
        value = self.string("description") or self.docstring
        if value is None and required:
            self.reject("'description' must be declared or given as the class docstring", "description")
        return value

    def explicit_dynamic(self) -> Optional[bool]:
        return self.boolean("dynamic")

    def resolve_dynamic(self, extracted: Any) -> bool:
        """An explicit ``dynamic: True`` always wins; otherwise dynamic when nothing was extracted."""
        return self.explicit_dynamic() is True or extracted is NOT_STATIC

    def schema(self, key: str, generic_index: Optional[int] = None) -> Optional[ParamSchema]:
        """Schema of a member, or of the contract's generic argument when the member is absent."""
        member = self.members.get(key)
        if member is not None:
            expr = member.annotation
        elif generic_index is not None and generic_index < len(self.generic_args):
            expr = self.generic_args[generic_index]
        else:
            return None
        return build_param_schema(self.types.build(expr))

    def references(self, key: str) -> Optional[list[str]]:
        """Names listed by a member: ``tuple[SomeTool, Literal["other_tool"]]``."""
        member = self.members.get(key)
        if member is None:
            return None
        return reference_names(member.annotation)

    def reject(self, message: str, missing_field: Optional[str] = None) -> None:
        raise RejectedDeclarationError(
            f"{self.declared_name}: {message}",
            declaration_name=self.declared_name,
            missing_field=missing_field,
        )

    def note(self, kind: DiagnosticKind, message: str) -> None:
        self.diagnostics.append(Diagnostic.create(kind, message, self.declared_name, self.line))


def reference_names(expr: ast.expr) -> list[str]:
    """Flatten a reference list annotation into names and literal strings."""
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        return [expr.value]
    if isinstance(expr, (ast.Name, ast.Attribute)):
        return [final_name(expr)]
    if isinstance(expr, (ast.Tuple, ast.List, ast.Set)):
        names: list[str] = []
        for element in expr.elts:
            names.extend(reference_names(element))
        return names
    if isinstance(expr, ast.Subscript):
        head = final_name(expr.value)
        args = subscript_args(expr)
        if head == "Literal":
            return [arg.value for arg in args if isinstance(arg, ast.Constant) and isinstance(arg.value, str)]
        if head in REFERENCE_CONTAINERS:
            names = []
            for arg in args:
                if isinstance(arg, ast.Constant) and arg.value is Ellipsis:
                    continue
                names.extend(reference_names(arg))
            return names
        if head == "type":
            return reference_names(args[0])
    return []


class DeclarationExtractor:
    """
    Base extractor.

    Subclasses set ``kind`` and implement ``extract``. Missing required
    fields call ``ctx.reject`` which drops the declaration with a diagnostic.
    """

    kind: ContractKind

    def extract(self, ctx: ExtractionContext) -> Any:
        raise NotImplementedError

    def common_fields(
        self,
        ctx: ExtractionContext,
        capability_name: str,
        dynamic: bool,
        implementation_name: Optional[str] = None,
        description: Optional[str] = None,
        schemas: Optional[dict[str, Optional[ParamSchema]]] = None,
    ) -> dict[str, Any]:
        """Fields shared by every declaration model."""
        return {
            "declared_name": ctx.declared_name,
            "capability_name": capability_name,
            "description": description if description is not None else ctx.description(),
            "dynamic": dynamic,
            "implementation_name": implementation_name,
            "line": ctx.line,
            "schemas": {role: schema for role, schema in (schemas or {}).items() if schema is not None},
        }

    @staticmethod
    def method_name(capability_name: str) -> str:
        return to_implementation_name(capability_name)
