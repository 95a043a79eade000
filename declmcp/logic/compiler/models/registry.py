"""
Capability registry

The immutable output of compilation. Entries hold the declaration, the
binding of dynamic capabilities and the compiled validators. The external
form is JSON-compatible; validators are rebuilt from the stored schemas when
a registry is read back.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from declmcp.lib.exceptions import RegistrySerializationError
from declmcp.lib.yaml_utils import dump_yaml, parse_yaml

from ..core.schema_compiler import CompiledValidator, compile_schema
from .binding import ImplementationBinding
from .contract_kind import REGISTRY_KINDS, ContractKind
from .declarations import AnyDeclaration, ServerDeclaration

FORMAT_VERSION = 1

# Registry collection holding each kind
COLLECTIONS: dict[ContractKind, str] = {
    ContractKind.TOOL: "tools",
    ContractKind.PROMPT: "prompts",
    ContractKind.RESOURCE: "resources",
    ContractKind.SAMPLING: "samplings",
    ContractKind.ELICIT: "elicitations",
    ContractKind.ROOTS: "roots",
    ContractKind.SUBSCRIPTION: "subscriptions",
    ContractKind.COMPLETION: "completions",
    ContractKind.UI: "uis",
    ContractKind.ROUTER: "routers",
    ContractKind.SKILL: "skills",
}


def compile_validators(declaration: Any) -> dict[str, CompiledValidator]:
    """Compile one validator per schema role of a declaration."""
    return {
        role: compile_schema(schema, name=f"{declaration.capability_name}.{role}")
        for role, schema in declaration.schemas.items()
    }


class RegistryEntry(BaseModel):
    """One resolved capability."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    declaration: AnyDeclaration
    binding: Optional[ImplementationBinding] = None
    validators: dict[str, CompiledValidator] = Field(default_factory=dict, exclude=True)

    @property
    def kind(self) -> ContractKind:
        return self.declaration.kind

    @property
    def capability_name(self) -> str:
        return self.declaration.capability_name

    @property
    def dynamic(self) -> bool:
        return self.declaration.dynamic

    def validator(self, role: str) -> Optional[CompiledValidator]:
        return self.validators.get(role)

    def descriptor(self) -> dict[str, Any]:
        """Protocol listing entry (``tools/list`` style) for this capability."""
        declaration = self.declaration
        if self.kind == ContractKind.TOOL:
            params = self.validators.get("params")
            descriptor = {
                "name": declaration.capability_name,
                "description": declaration.description,
                "inputSchema": params.json_schema() if params else {"type": "object", "properties": {}},
            }
            if declaration.annotations:
                descriptor["annotations"] = declaration.annotations
            return descriptor
        if self.kind == ContractKind.PROMPT:
            return {
                "name": declaration.capability_name,
                "description": declaration.description,
                "arguments": [argument.model_dump(exclude_none=True) for argument in declaration.arguments],
            }
        if self.kind in (ContractKind.RESOURCE, ContractKind.UI):
            return {
                "uri": declaration.uri,
                "name": declaration.name,
                "description": declaration.description,
                "mimeType": declaration.mime_type,
            }
        return {"name": declaration.capability_name, "description": declaration.description}

    def to_external(self) -> dict[str, Any]:
        data = {
            "declaration": self.declaration.model_dump(mode="json", by_alias=True, exclude_none=True),
            "binding": self.binding.model_dump(mode="json", by_alias=True) if self.binding else None,
        }
        if self.validators:
            data["jsonSchemas"] = {role: v.json_schema() for role, v in self.validators.items()}
        return data

    @classmethod
    def from_external(cls, data: dict[str, Any]) -> "RegistryEntry":
        entry = cls.model_validate({"declaration": data["declaration"], "binding": data.get("binding")})
        return entry.model_copy(update={"validators": compile_validators(entry.declaration)})


class CapabilityRegistry(BaseModel):
    """Ordered, immutable collections of compiled capabilities."""
    model_config = ConfigDict(frozen=True)

    server: Optional[ServerDeclaration] = None
    tools: tuple[RegistryEntry, ...] = ()
    prompts: tuple[RegistryEntry, ...] = ()
    resources: tuple[RegistryEntry, ...] = ()
    samplings: tuple[RegistryEntry, ...] = ()
    elicitations: tuple[RegistryEntry, ...] = ()
    roots: tuple[RegistryEntry, ...] = ()
    subscriptions: tuple[RegistryEntry, ...] = ()
    completions: tuple[RegistryEntry, ...] = ()
    uis: tuple[RegistryEntry, ...] = ()
    routers: tuple[RegistryEntry, ...] = ()
    skills: tuple[RegistryEntry, ...] = ()

    @classmethod
    def from_entries(
        cls,
        entries: list[RegistryEntry],
        server: Optional[ServerDeclaration] = None,
    ) -> "CapabilityRegistry":
        """Group entries into their collections, keeping order."""
        grouped: dict[str, list[RegistryEntry]] = {collection: [] for collection in COLLECTIONS.values()}
        for entry in entries:
            grouped[COLLECTIONS[entry.kind]].append(entry)
        return cls(server=server, **{key: tuple(value) for key, value in grouped.items()})

    def get(self, kind: ContractKind, name: str) -> Optional[RegistryEntry]:
        """Entry by capability name (the URI for resources, UIs and subscriptions)."""
        for entry in self.list(kind):
            if entry.capability_name == name:
                return entry
        return None

    def names(self, kind: ContractKind) -> list[str]:
        return [entry.capability_name for entry in self.list(kind)]

    def entries(self) -> list[RegistryEntry]:
        return [entry for kind in REGISTRY_KINDS for entry in self.list(kind)]

    def dynamic_entries(self) -> list[RegistryEntry]:
        """Entries the runtime must invoke an implementation for."""
        return [entry for entry in self.entries() if entry.binding is not None]

    def __len__(self) -> int:
        return len(self.entries())

    # External form

    def to_external(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "formatVersion": FORMAT_VERSION,
            "server": self.server.model_dump(mode="json", by_alias=True, exclude_none=True) if self.server else None,
        }
        for kind in REGISTRY_KINDS:
            data[COLLECTIONS[kind]] = [entry.to_external() for entry in self.list(kind)]
        return data

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_external(), indent=indent, ensure_ascii=False)

    def to_yaml(self) -> str:
        return dump_yaml(self.to_external())

    @classmethod
    def from_external(cls, data: dict[str, Any]) -> "CapabilityRegistry":
        """
        Rebuild a registry from its external form.

        Raises:
            RegistrySerializationError: If the data does not describe a registry
        """
        version = data.get("formatVersion", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise RegistrySerializationError(f"Unsupported registry format version: {version}")

        try:
            server = ServerDeclaration.model_validate(data["server"]) if data.get("server") else None
            collections = {
                COLLECTIONS[kind]: tuple(
                    RegistryEntry.from_external(item) for item in data.get(COLLECTIONS[kind]) or []
                )
                for kind in REGISTRY_KINDS
            }
        except (ValidationError, KeyError, TypeError) as e:
            raise RegistrySerializationError(f"Invalid registry data: {e}") from e

        return cls(server=server, **collections)

    @classmethod
    def from_json(cls, text: str) -> "CapabilityRegistry":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RegistrySerializationError(f"Invalid JSON: {e}", format="json") from e
        if not isinstance(data, dict):
            raise RegistrySerializationError("Registry JSON must be an object", format="json")
        return cls.from_external(data)

    @classmethod
    def from_yaml(cls, text: str) -> "CapabilityRegistry":
        return cls.from_external(parse_yaml(text))

    # Defined last: the name shadows the builtin for annotations in the class body
    def list(self, kind: ContractKind) -> tuple[RegistryEntry, ...]:
        """Entries of one kind in source order."""
        return getattr(self, COLLECTIONS[ContractKind(kind)])
