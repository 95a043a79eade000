"""Server, router and skill extractors."""

import ast
from typing import Any, Optional

from declmcp.lib.exceptions import RejectedDeclarationError

from ..core.static_data import NOT_STATIC
from ..core.type_builder import final_name
from ..models.contract_kind import ContractKind
from ..models.declarations import (
    AuthConfig,
    RouterDeclaration,
    ServerDeclaration,
    SkillDeclaration,
    Transport,
)
from ..models.diagnostics import DiagnosticKind
from ..utils.naming import to_canonical, to_kebab_case
from .auth import parse_auth
from .base import DeclarationExtractor, ExtractionContext, reference_names

SKILL_COMPONENTS = ("tools", "resources", "prompts")


def infer_transport(
    explicit: Optional[str],
    port: Optional[int],
    stateful: Optional[bool],
    websocket: Optional[dict[str, Any]],
) -> Transport:
    """Explicit transport wins; otherwise websocket, then http when port/stateful is set, else stdio."""
    if explicit:
        try:
            return Transport(explicit.lower())
        except ValueError:
            pass
    if websocket is not None:
        return Transport.WEBSOCKET
    if port is not None or stateful is not None:
        return Transport.HTTP
    return Transport.STDIO


class ServerExtractor(DeclarationExtractor):
    """Server metadata. Never bound to an implementation."""

    kind = ContractKind.SERVER

    def extract(self, ctx: ExtractionContext) -> ServerDeclaration:
        name = ctx.string("name", required=True)
        description = ctx.description(required=True)

        capability_name = to_kebab_case(name)
        if capability_name != name:
            ctx.note(
                DiagnosticKind.NAME_NORMALIZED,
                f"server name '{name}' normalized to '{capability_name}'",
            )

        websocket = ctx.static("websocket")
        if websocket is True:
            websocket = {}
        elif not isinstance(websocket, dict):
            websocket = None

        port = ctx.integer("port")
        stateful = ctx.boolean("stateful")
        auth_ref, auth = self._auth(ctx)

        return ServerDeclaration(
            name=capability_name,
            version=ctx.string("version") or ctx.config.default_server_version,
            transport=infer_transport(ctx.string("transport"), port, stateful, websocket),
            port=port,
            stateful=stateful,
            websocket=websocket,
            auth_ref=auth_ref,
            auth=auth,
            flatten_routers=ctx.boolean("flatten_routers") or False,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=False,
                description=description,
            ),
        )

    def _auth(self, ctx: ExtractionContext) -> tuple[Optional[str], Optional[AuthConfig]]:
        """An auth member is either a reference to an auth declaration or an inline object."""
        member = ctx.members.get("auth")
        if member is None:
            return None, None

        annotation = member.annotation
        if isinstance(annotation, (ast.Name, ast.Attribute)):
            return final_name(annotation), None

        value = ctx.static("auth")
        if isinstance(value, str):
            return value, None
        if isinstance(value, dict):
            try:
                return None, parse_auth(value, description=None)
            except RejectedDeclarationError as e:
                # The server is kept without auth
                ctx.note(DiagnosticKind.UNRESOLVED_AUTH_REFERENCE, e.message)
                return None, None

        # Forward reference written as a string constant
        if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
            return annotation.value, None

        ctx.note(
            DiagnosticKind.UNRESOLVED_AUTH_REFERENCE,
            "'auth' must reference an auth declaration or be a literal object",
        )
        return None, None


class RouterExtractor(DeclarationExtractor):
    """Tool routers group tools; tool references are resolved after scanning."""

    kind = ContractKind.ROUTER

    def extract(self, ctx: ExtractionContext) -> RouterDeclaration:
        description = ctx.description(required=True)
        tools = ctx.references("tools")
        if not tools:
            ctx.reject("'tools' must list at least one tool", "tools")

        name = ctx.string("name") or to_canonical(ctx.declared_name)
        return RouterDeclaration(
            name=name,
            tools=tools,
            metadata=ctx.mapping("metadata"),
            **self.common_fields(
                ctx,
                to_canonical(name),
                dynamic=False,
                description=description,
            ),
        )


class SkillExtractor(DeclarationExtractor):
    """Skills document a set of capabilities with a manual."""

    kind = ContractKind.SKILL

    def extract(self, ctx: ExtractionContext) -> SkillDeclaration:
        name = ctx.string("name", required=True)
        description = ctx.description(required=True)
        capability_name = to_canonical(name)

        components = self._components(ctx)
        manual = ctx.static("manual")
        if not isinstance(manual, str):
            manual = NOT_STATIC

        # Components alone make a complete static skill
        if ctx.has("manual"):
            dynamic = ctx.resolve_dynamic(manual)
        else:
            dynamic = ctx.explicit_dynamic() is True or not components

        return SkillDeclaration(
            name=name,
            manual=None if manual is NOT_STATIC else manual,
            components=components,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=dynamic,
                implementation_name=self.method_name(capability_name),
                description=description,
            ),
        )

    def _components(self, ctx: ExtractionContext) -> dict[str, list[str]]:
        components: dict[str, list[str]] = {}
        member = ctx.members.get("components")
        if member is not None and isinstance(member.annotation, ast.Dict):
            for key, value in zip(member.annotation.keys, member.annotation.values):
                if isinstance(key, ast.Constant) and key.value in SKILL_COMPONENTS:
                    components[key.value] = reference_names(value)

        # Top-level tools/resources/prompts members are accepted too
        for key in SKILL_COMPONENTS:
            references = ctx.references(key)
            if references:
                components.setdefault(key, references)
        return components
