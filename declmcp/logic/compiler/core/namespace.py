"""Implementation namespaces: container class members and bare module bindings."""

import ast
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from ..models.binding import BindingKind, MatchStrategy
from .type_builder import final_name

IMPLEMENTS_DECORATOR = "implements"

# Displays that can never evaluate to a callable; any other expression may
LITERAL_VALUES = (
    ast.Constant, ast.JoinedStr, ast.List, ast.Tuple, ast.Set, ast.Dict,
    ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp,
)


@dataclass
class Binding:
    """One named value a declaration may be bound to."""
    name: str
    value_kind: str
    callable: bool
    line: int
    is_async: bool = False
    implements_key: Optional[str] = None
    annotation_names: tuple[str, ...] = ()
    reference: Optional[str] = None


@dataclass
class Namespace:
    """Ordered bindings of one lookup scope."""
    binding_kind: BindingKind
    owner: Optional[str] = None
    bindings: dict[str, Binding] = field(default_factory=dict)

    def add(self, binding: Binding) -> None:
        # Later definitions shadow earlier ones, as at runtime
        self.bindings[binding.name] = binding

    def by_key(self, key: str) -> Optional[tuple[Binding, MatchStrategy]]:
        for binding in self.bindings.values():
            if binding.implements_key == key:
                return binding, MatchStrategy.DECORATOR
        binding = self.bindings.get(key)
        if binding is not None:
            return binding, MatchStrategy.NAME
        return None

    def by_annotation(self, declared_name: str) -> Optional[Binding]:
        for binding in self.bindings.values():
            if declared_name in binding.annotation_names:
                return binding
        return None

    def describe(self) -> str:
        if self.binding_kind == BindingKind.CLASS_PROPERTY:
            return f"members of {self.owner}"
        return "module-level bindings"

    def __len__(self) -> int:
        return len(self.bindings)

    def __iter__(self):
        return iter(self.bindings.values())


def _implements_key(decorators: Iterable[ast.expr]) -> Optional[str]:
    for decorator in decorators:
        if (
            isinstance(decorator, ast.Call)
            and final_name(decorator.func) == IMPLEMENTS_DECORATOR
            and decorator.args
            and isinstance(decorator.args[0], ast.Constant)
            and isinstance(decorator.args[0].value, str)
        ):
            return decorator.args[0].value
    return None


def _annotation_names(annotation: Optional[ast.expr]) -> tuple[str, ...]:
    if annotation is None:
        return ()
    names = []
    for node in ast.walk(annotation):
        if isinstance(node, ast.Name):
            names.append(node.id)
        elif isinstance(node, ast.Attribute):
            names.append(node.attr)
        elif isinstance(node, ast.Constant) and isinstance(node.value, str) and node.value.isidentifier():
            names.append(node.value)
    return tuple(names)


def binding_from_function(node: Union[ast.FunctionDef, ast.AsyncFunctionDef]) -> Binding:
    return Binding(
        name=node.name,
        value_kind="async_function" if isinstance(node, ast.AsyncFunctionDef) else "function",
        callable=True,
        line=node.lineno,
        is_async=isinstance(node, ast.AsyncFunctionDef),
        implements_key=_implements_key(node.decorator_list),
    )


def _is_literal(value: ast.expr) -> bool:
    if isinstance(value, ast.UnaryOp):
        return isinstance(value.operand, ast.Constant)
    return isinstance(value, LITERAL_VALUES)


def binding_from_class(node: ast.ClassDef) -> Binding:
    """Classes are callable: calling one constructs an instance."""
    return Binding(
        name=node.name,
        value_kind="class",
        callable=True,
        line=node.lineno,
        implements_key=_implements_key(node.decorator_list),
    )


def binding_from_value(
    name: str,
    value: Optional[ast.expr],
    line: int,
    annotation: Optional[ast.expr] = None,
) -> Binding:
    """Classify an assigned value. ``value`` is None for annotation-only class members."""
    if value is None:
        return Binding(name, "declared", True, line, annotation_names=_annotation_names(annotation))

    annotation_names = _annotation_names(annotation)
    if isinstance(value, ast.Lambda):
        return Binding(name, "lambda", True, line, annotation_names=annotation_names)
    if isinstance(value, ast.Name):
        return Binding(name, "reference", True, line, annotation_names=annotation_names, reference=value.id)
    if _is_literal(value):
        return Binding(name, "literal", False, line, annotation_names=annotation_names)

    # implements("uri")(func) written as a call
    implements_key = None
    if isinstance(value, ast.Call) and isinstance(value.func, ast.Call):
        implements_key = _implements_key([value.func])
    return Binding(name, "call" if isinstance(value, ast.Call) else "expression", True, line,
                   implements_key=implements_key, annotation_names=annotation_names)


def collect_bindings(body: list[ast.stmt], namespace: Namespace, include_declared: bool = False) -> Namespace:
    """Add the functions and assignments of a statement list to a namespace."""
    for stmt in body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            namespace.add(binding_from_function(stmt))
        elif isinstance(stmt, ast.ClassDef):
            namespace.add(binding_from_class(stmt))
        elif isinstance(stmt, ast.Assign):
            for target in stmt.targets:
                if isinstance(target, ast.Name):
                    namespace.add(binding_from_value(target.id, stmt.value, stmt.lineno))
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            if stmt.value is None and not include_declared:
                continue
            namespace.add(binding_from_value(stmt.target.id, stmt.value, stmt.lineno, stmt.annotation))
    return namespace


def resolve_references(namespace: Namespace, module: Namespace) -> None:
    """Name-valued bindings are callable unless they point at a known non-callable binding."""
    for binding in namespace:
        if binding.value_kind != "reference" or binding.reference is None:
            continue
        target = module.bindings.get(binding.reference)
        if target is not None and target is not binding:
            binding.callable = target.callable
            binding.is_async = target.is_async
