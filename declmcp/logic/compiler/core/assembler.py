"""
Registry assembler

Enforces registry-wide rules and builds the final CapabilityRegistry:
capability names are unique per kind (the first declaration keeps the name),
every schema role gets a compiled validator, and fields that compile to an
unconstrained validator are reported.
"""

from typing import Optional

from declmcp.core.config import CompilerConfig
from declmcp.core.lib_logger import get_component_logger

from ..models.declarations import Declaration, ServerDeclaration
from ..models.diagnostics import Diagnostic, DiagnosticKind
from ..models.registry import CapabilityRegistry, RegistryEntry, compile_validators
from .linker import LinkedDeclaration


class RegistryAssembler:
    """Merge extracted, linked and compiled parts into one registry."""

    def __init__(self, config: CompilerConfig):
        self.config = config
        self.logger = get_component_logger("compiler.assembler")

    def deduplicate(self, declarations: list[Declaration]) -> tuple[list[Declaration], list[Diagnostic]]:
        """Keep the first declaration of every (kind, capability name) pair."""
        seen: dict[tuple[str, str], Declaration] = {}
        unique: list[Declaration] = []
        diagnostics: list[Diagnostic] = []

        for declaration in declarations:
            key = (declaration.kind.value, declaration.capability_name)
            first = seen.get(key)
            if first is not None:
                diagnostics.append(Diagnostic.create(
                    DiagnosticKind.DUPLICATE_CAPABILITY,
                    f"{declaration.kind.value} '{declaration.capability_name}' is already declared by "
                    f"{first.declared_name}; this declaration is ignored",
                    declaration.declared_name,
                    declaration.line,
                ))
                continue
            seen[key] = declaration
            unique.append(declaration)

        return unique, diagnostics

    def assemble(
        self,
        linked: list[LinkedDeclaration],
        server: Optional[ServerDeclaration] = None,
    ) -> tuple[CapabilityRegistry, list[Diagnostic]]:
        """Compile validators and build the registry."""
        diagnostics: list[Diagnostic] = []
        entries: list[RegistryEntry] = []

        for item in linked:
            declaration = item.declaration
            validators = compile_validators(declaration)
            if self.config.warn_on_any_fields:
                diagnostics.extend(self._any_field_diagnostics(declaration, validators))
            entries.append(RegistryEntry(
                declaration=declaration,
                binding=item.binding,
                validators=validators,
            ))

        registry = CapabilityRegistry.from_entries(entries, server=server)
        self.logger.debug(
            f"Assembled registry with {len(registry)} capabilities",
            extra={"dynamic": len(registry.dynamic_entries())}
        )
        return registry, diagnostics

    def _any_field_diagnostics(self, declaration: Declaration, validators: dict) -> list[Diagnostic]:
        diagnostics = []
        for role, validator in validators.items():
            for path in validator.any_paths:
                location = f"field '{path}' of {role}" if path else role
                diagnostics.append(Diagnostic.create(
                    DiagnosticKind.ANY_TYPED_FIELD,
                    f"{location} accepts any value; declare a more precise type",
                    declaration.declared_name,
                    declaration.line,
                ))
        return diagnostics
