"""
Declaration scanner

Phase 1 walks the module's top-level statements: it builds the type table,
runs the per-kind extractors, fills the auth side-table and collects the
implementation namespaces. Phase 2 resolves cross references (server auth,
router tools, UI tools, skill components, subscription URIs) against the
complete tables, so declaration order in the file does not matter.
"""

import ast
from dataclasses import dataclass, field
from typing import Optional

from declmcp.core.config import CompilerConfig
from declmcp.core.lib_logger import get_component_logger
from declmcp.lib.exceptions import RejectedDeclarationError

from ..extractors import EXTRACTORS, ExtractionContext
from ..models.binding import BindingKind
from ..models.contract_kind import ContractKind, resolve_contract
from ..models.declarations import (
    AuthConfig,
    Declaration,
    PromptDeclaration,
    ResourceDeclaration,
    RouterDeclaration,
    ServerDeclaration,
    SkillDeclaration,
    SubscriptionDeclaration,
    ToolDeclaration,
    UIDeclaration,
)
from ..models.diagnostics import Diagnostic, DiagnosticKind
from .namespace import Namespace, collect_bindings, resolve_references
from .type_builder import TypeBuilder, TypeTable, final_name, subscript_args

TYPE_ALIAS_NAMES = {"TypeAlias"}

# ``type X = ...`` statements exist from Python 3.12 on
TYPE_ALIAS_STATEMENTS = tuple(node for node in (getattr(ast, "TypeAlias", None),) if node is not None)


@dataclass
class PendingDeclaration:
    """A class recognized as a declaration, waiting for extraction."""
    node: ast.ClassDef
    contract_name: str
    kind: ContractKind
    generic_args: list[ast.expr]


@dataclass
class ScanState:
    """Accumulator threaded through one scan."""
    types: TypeTable = field(default_factory=TypeTable)
    pending: list[PendingDeclaration] = field(default_factory=list)
    declarations: list[Declaration] = field(default_factory=list)
    server: Optional[ServerDeclaration] = None
    auth_table: dict[str, AuthConfig] = field(default_factory=dict)
    classes: list[ast.ClassDef] = field(default_factory=list)
    module: Namespace = field(default_factory=lambda: Namespace(BindingKind.CONST))
    primary_export: Optional[str] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def diagnose(
        self,
        kind: DiagnosticKind,
        message: str,
        declaration_name: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        self.diagnostics.append(Diagnostic.create(kind, message, declaration_name, line))


@dataclass
class ScanResult:
    """Everything the linker and assembler need from one source module."""
    declarations: list[Declaration]
    server: Optional[ServerDeclaration]
    auth_table: dict[str, AuthConfig]
    container: Optional[Namespace]
    module: Namespace
    diagnostics: list[Diagnostic]

    def declarations_of(self, kind: ContractKind) -> list[Declaration]:
        return [declaration for declaration in self.declarations if declaration.kind == kind]


def contract_of(node: ast.ClassDef) -> Optional[tuple[str, ContractKind, list[ast.expr]]]:
    """First direct base naming a recognized contract, with its generic arguments."""
    for base in node.bases:
        target = base.value if isinstance(base, ast.Subscript) else base
        name = final_name(target)
        kind = resolve_contract(name) if name else None
        if kind is not None:
            args = subscript_args(base) if isinstance(base, ast.Subscript) else []
            return name, kind, args
    return None


class DeclarationScanner:
    """Discover declarations and implementation namespaces in a parsed module."""

    def __init__(self, config: CompilerConfig):
        self.config = config
        self.extractors = EXTRACTORS
        self.logger = get_component_logger("compiler.scanner")

    def scan(self, module: ast.Module, source_name: str = "<source>") -> ScanResult:
        """
        Scan one module.

        Raises:
            StructuralContradictionError: If a UI declaration names more than
                one content source
        """
        logger = self.logger.with_context(source=source_name)
        state = ScanState()

        self._collect(module, state)
        self._extract(state)
        self._resolve_references(state)
        container = self._select_container(state)

        logger.debug(
            f"Scanned {len(state.declarations)} declarations",
            extra={
                "declarations": len(state.declarations),
                "auth_declarations": len(state.auth_table),
                "container": container.owner if container else None,
            }
        )

        return ScanResult(
            declarations=state.declarations,
            server=state.server,
            auth_table=state.auth_table,
            container=container,
            module=state.module,
            diagnostics=state.diagnostics,
        )

    # Phase 1

    def _collect(self, module: ast.Module, state: ScanState) -> None:
        for stmt in module.body:
            if isinstance(stmt, ast.ClassDef):
                contract = contract_of(stmt)
                if contract is not None:
                    name, kind, args = contract
                    state.pending.append(PendingDeclaration(stmt, name, kind, args))
                else:
                    state.types.classes[stmt.name] = stmt
                    state.classes.append(stmt)
                    collect_bindings([stmt], state.module)
            elif isinstance(stmt, TYPE_ALIAS_STATEMENTS):
                # type Name = <annotation>
                state.types.aliases[stmt.name.id] = stmt.value
            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
                if final_name(stmt.annotation) in TYPE_ALIAS_NAMES and stmt.value is not None:
                    state.types.aliases[stmt.target.id] = stmt.value
                elif stmt.target.id == self.config.primary_export_name:
                    self._mark_primary_export(stmt.value, state)
                elif not _is_dunder(stmt.target.id):
                    collect_bindings([stmt], state.module)
            elif isinstance(stmt, ast.Assign):
                self._collect_assign(stmt, state)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                collect_bindings([stmt], state.module)

        resolve_references(state.module, state.module)

    def _collect_assign(self, stmt: ast.Assign, state: ScanState) -> None:
        names = [target.id for target in stmt.targets if isinstance(target, ast.Name)]
        if self.config.primary_export_name in names:
            self._mark_primary_export(stmt.value, state)
            return
        if any(not _is_dunder(name) for name in names):
            collect_bindings([stmt], state.module)

    @staticmethod
    def _mark_primary_export(value: Optional[ast.expr], state: ScanState) -> None:
        exported = final_name(value) if value is not None else None
        if exported:
            state.primary_export = exported

    def _extract(self, state: ScanState) -> None:
        types = TypeBuilder(state.types)
        for pending in state.pending:
            ctx = ExtractionContext.create(
                pending.node,
                pending.contract_name,
                pending.kind,
                types,
                self.config,
                pending.generic_args,
            )
            try:
                result = self.extractors[pending.kind].extract(ctx)
            except RejectedDeclarationError as e:
                state.diagnose(
                    DiagnosticKind.REJECTED_DECLARATION,
                    e.message,
                    pending.node.name,
                    pending.node.lineno,
                )
                continue
            finally:
                state.diagnostics.extend(ctx.diagnostics)

            self._record(pending, result, state)

    def _record(self, pending: PendingDeclaration, result, state: ScanState) -> None:
        name = pending.node.name
        if pending.kind == ContractKind.AUTH:
            state.auth_table[name] = result
        elif pending.kind == ContractKind.SERVER:
            if state.server is None:
                state.server = result
            else:
                state.diagnose(
                    DiagnosticKind.DUPLICATE_CAPABILITY,
                    f"only one server declaration is allowed; '{state.server.declared_name}' is kept",
                    name,
                    pending.node.lineno,
                )
        else:
            state.declarations.append(result)

    # Phase 2

    def _resolve_references(self, state: ScanState) -> None:
        if state.server is not None:
            state.server = self._resolve_server_auth(state.server, state)

        tools = [d for d in state.declarations if isinstance(d, ToolDeclaration)]
        prompts = [d for d in state.declarations if isinstance(d, PromptDeclaration)]
        uri_owners = [d for d in state.declarations if isinstance(d, (ResourceDeclaration, UIDeclaration))]

        resolved: list[Declaration] = []
        for declaration in state.declarations:
            if isinstance(declaration, RouterDeclaration):
                declaration = declaration.model_copy(
                    update={"tools": self._resolve_names(declaration, declaration.tools, tools, state)}
                )
            elif isinstance(declaration, UIDeclaration) and declaration.tools:
                declaration = declaration.model_copy(
                    update={"tools": self._resolve_names(declaration, declaration.tools, tools, state)}
                )
            elif isinstance(declaration, SkillDeclaration) and declaration.components:
                declaration = declaration.model_copy(
                    update={"components": self._resolve_components(declaration, tools, prompts, uri_owners, state)}
                )
            elif isinstance(declaration, SubscriptionDeclaration):
                if not any(owner.uri == declaration.uri for owner in uri_owners):
                    state.diagnose(
                        DiagnosticKind.UNRESOLVED_REFERENCE,
                        f"subscription URI '{declaration.uri}' matches no resource or UI declaration",
                        declaration.declared_name,
                        declaration.line,
                    )
            resolved.append(declaration)
        state.declarations = resolved

    def _resolve_server_auth(self, server: ServerDeclaration, state: ScanState) -> ServerDeclaration:
        if server.auth_ref is None:
            return server
        auth = state.auth_table.get(server.auth_ref)
        if auth is None:
            state.diagnose(
                DiagnosticKind.UNRESOLVED_AUTH_REFERENCE,
                f"auth reference '{server.auth_ref}' does not name an auth declaration",
                server.declared_name,
                server.line,
            )
            return server
        return server.model_copy(update={"auth": auth})

    def _resolve_names(
        self,
        owner: Declaration,
        references: list[str],
        candidates: list[Declaration],
        state: ScanState,
    ) -> list[str]:
        """Map declared class names or capability names onto capability names."""
        lookup: dict[str, str] = {}
        for candidate in candidates:
            lookup.setdefault(candidate.declared_name, candidate.capability_name)
            lookup.setdefault(candidate.capability_name, candidate.capability_name)
            name = getattr(candidate, "name", None)
            if name:
                lookup.setdefault(name, candidate.capability_name)
            uri = getattr(candidate, "uri", None)
            if uri:
                lookup.setdefault(uri, candidate.capability_name)

        names = []
        for reference in references:
            if reference in lookup:
                if lookup[reference] not in names:
                    names.append(lookup[reference])
            else:
                state.diagnose(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"'{reference}' does not name a declared {candidates[0].kind.value if candidates else 'capability'}",
                    owner.declared_name,
                    owner.line,
                )
        return names

    def _resolve_components(
        self,
        skill: SkillDeclaration,
        tools: list[Declaration],
        prompts: list[Declaration],
        uri_owners: list[Declaration],
        state: ScanState,
    ) -> dict[str, list[str]]:
        candidates = {"tools": tools, "prompts": prompts, "resources": uri_owners}
        return {
            key: self._resolve_names(skill, references, candidates[key], state)
            for key, references in skill.components.items()
        }

    # Container selection

    def _select_container(self, state: ScanState) -> Optional[Namespace]:
        """
        Pick exactly one implementation container.

        Priority: the primary export marker, then a class extending the
        server declaration, then the first class whose name ends in a
        recognized suffix.
        """
        by_name = {node.name: node for node in state.classes}
        chosen: Optional[ast.ClassDef] = None

        if state.primary_export and state.primary_export in by_name:
            chosen = by_name[state.primary_export]
        elif state.primary_export:
            self.logger.debug(f"Primary export '{state.primary_export}' is not a class in this module")

        if chosen is None and state.server is not None:
            server_name = state.server.declared_name
            chosen = next(
                (node for node in state.classes
                 if any(final_name(base) == server_name for base in node.bases)),
                None,
            )

        if chosen is None:
            suffixes = tuple(self.config.container_suffixes)
            chosen = next((node for node in state.classes if node.name.endswith(suffixes)), None)

        if chosen is None:
            return None

        namespace = collect_bindings(
            chosen.body,
            Namespace(BindingKind.CLASS_PROPERTY, owner=chosen.name),
            include_declared=True,
        )
        resolve_references(namespace, state.module)
        return namespace


def _is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")
