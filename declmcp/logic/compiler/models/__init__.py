"""Compiler data models."""

from .binding import BindingKind, ImplementationBinding, MatchStrategy
from .contract_kind import ContractKind
from .declarations import (
    AnyDeclaration,
    AuthConfig,
    CompletionDeclaration,
    Declaration,
    ElicitDeclaration,
    PromptDeclaration,
    ResourceDeclaration,
    RootsDeclaration,
    RouterDeclaration,
    SamplingDeclaration,
    ServerDeclaration,
    SkillDeclaration,
    SubscriptionDeclaration,
    ToolDeclaration,
    UIDeclaration,
)
from .diagnostics import Diagnostic, DiagnosticKind, DiagnosticSeverity
from .param_schema import ParamConstraints, ParamSchema, SchemaKind, StringFormat
from .registry import CapabilityRegistry, RegistryEntry
from .type_nodes import FieldNode, TypeNode, TypeTag

__all__ = [
    "BindingKind",
    "ImplementationBinding",
    "MatchStrategy",
    "ContractKind",
    "AnyDeclaration",
    "AuthConfig",
    "Declaration",
    "ToolDeclaration",
    "PromptDeclaration",
    "ResourceDeclaration",
    "SamplingDeclaration",
    "ElicitDeclaration",
    "RootsDeclaration",
    "SubscriptionDeclaration",
    "CompletionDeclaration",
    "UIDeclaration",
    "ServerDeclaration",
    "RouterDeclaration",
    "SkillDeclaration",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticSeverity",
    "ParamConstraints",
    "ParamSchema",
    "SchemaKind",
    "StringFormat",
    "CapabilityRegistry",
    "RegistryEntry",
    "FieldNode",
    "TypeNode",
    "TypeTag",
]
