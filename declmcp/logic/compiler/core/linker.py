"""
Implementation linker

Matches every dynamic declaration to the callable that implements it. The
container class is searched before bare module bindings; the first
namespace that knows the name decides the outcome.
"""

from dataclasses import dataclass, field
from typing import Optional

from declmcp.core.lib_logger import get_component_logger
from declmcp.lib.exceptions import (
    ImplementationError,
    ImplementationNotFoundError,
    ImplementationTypeMismatchError,
)

from ..models.binding import ImplementationBinding, MatchStrategy
from ..models.contract_kind import URI_KINDS
from ..models.declarations import Declaration
from ..models.diagnostics import Diagnostic, DiagnosticKind
from .namespace import Binding, Namespace

IMPLEMENTATION_VALUE_KINDS = {"function", "async_function", "lambda"}


@dataclass
class LinkedDeclaration:
    """A declaration that survived linking, with its binding when dynamic."""
    declaration: Declaration
    binding: Optional[ImplementationBinding] = None


@dataclass
class LinkResult:
    linked: list[LinkedDeclaration] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    used: set[str] = field(default_factory=set)


def lookup_keys(declaration: Declaration) -> list[str]:
    """Names to try, in order: the implementation name, then the snake_case name."""
    keys = [declaration.implementation_name]
    if declaration.kind not in URI_KINDS and declaration.capability_name not in keys:
        keys.append(declaration.capability_name)
    return keys


class ImplementationLinker:
    """Resolve implementation bindings for dynamic declarations."""

    def __init__(self, container: Optional[Namespace], module: Namespace):
        self.container = container
        self.module = module
        self.logger = get_component_logger("compiler.linker")

    @property
    def namespaces(self) -> list[Namespace]:
        return [namespace for namespace in (self.container, self.module) if namespace is not None]

    def link(self, declaration: Declaration) -> ImplementationBinding:
        """
        Find the binding for one dynamic declaration.

        Raises:
            ImplementationNotFoundError: If no namespace defines the name
            ImplementationTypeMismatchError: If the name is bound to a value
                that is not callable
        """
        keys = lookup_keys(declaration)
        for namespace in self.namespaces:
            match = self._find(namespace, declaration, keys)
            if match is None:
                continue

            binding, strategy = match
            if not binding.callable:
                raise ImplementationTypeMismatchError(
                    f"'{binding.name}' implementing {declaration.kind.value} "
                    f"'{declaration.capability_name}' is a {binding.value_kind} value, not a callable",
                    declaration_name=declaration.declared_name,
                    implementation_name=binding.name,
                    searched=[namespace.describe()],
                )

            return ImplementationBinding(
                binding_kind=namespace.binding_kind,
                resolved_name=binding.name,
                container=namespace.owner,
                is_async=binding.is_async,
                line=binding.line,
                matched_by=strategy,
            )

        raise ImplementationNotFoundError(
            f"No implementation '{declaration.implementation_name}' found for "
            f"{declaration.kind.value} '{declaration.capability_name}'",
            declaration_name=declaration.declared_name,
            implementation_name=declaration.implementation_name,
            searched=[namespace.describe() for namespace in self.namespaces],
        )

    def _find(
        self,
        namespace: Namespace,
        declaration: Declaration,
        keys: list[str],
    ) -> Optional[tuple[Binding, MatchStrategy]]:
        for index, key in enumerate(keys):
            match = namespace.by_key(key)
            if match is not None:
                binding, strategy = match
                if index > 0 and strategy == MatchStrategy.NAME:
                    strategy = MatchStrategy.CANONICAL
                return binding, strategy

        binding = namespace.by_annotation(declaration.declared_name)
        if binding is not None:
            return binding, MatchStrategy.ANNOTATION
        return None

    def link_all(self, declarations: list[Declaration]) -> LinkResult:
        """Link every declaration; failures become diagnostics and drop the declaration."""
        result = LinkResult()
        for declaration in declarations:
            if not declaration.needs_binding:
                result.linked.append(LinkedDeclaration(declaration))
                continue

            try:
                binding = self.link(declaration)
            except ImplementationError as e:
                kind = (
                    DiagnosticKind.IMPLEMENTATION_TYPE_MISMATCH
                    if isinstance(e, ImplementationTypeMismatchError)
                    else DiagnosticKind.IMPLEMENTATION_NOT_FOUND
                )
                result.diagnostics.append(
                    Diagnostic.create(kind, e.message, declaration.declared_name, declaration.line)
                )
                continue

            self.logger.debug(
                f"Linked {declaration.capability_name} to {binding.resolved_name}",
                extra={"binding_kind": binding.binding_kind.value, "matched_by": binding.matched_by.value}
            )
            result.used.add(self._usage_key(binding))
            result.linked.append(LinkedDeclaration(declaration, binding))
        return result

    def unused_members(self, result: LinkResult) -> list[Binding]:
        """Public callable container members no declaration was linked to."""
        if self.container is None:
            return []
        return [
            binding for binding in self.container
            if binding.value_kind in IMPLEMENTATION_VALUE_KINDS
            and not binding.name.startswith("_")
            and self._usage_key_for(self.container, binding) not in result.used
        ]

    @staticmethod
    def _usage_key(binding: ImplementationBinding) -> str:
        return f"{binding.container or ''}:{binding.resolved_name}"

    @staticmethod
    def _usage_key_for(namespace: Namespace, binding: Binding) -> str:
        return f"{namespace.owner or ''}:{binding.name}"
