"""Resource and subscription extractors. Both are addressed by URI."""

from ..core.static_data import NOT_STATIC
from ..models.contract_kind import ContractKind
from ..models.declarations import ResourceDeclaration, SubscriptionDeclaration
from .base import DeclarationExtractor, ExtractionContext

DATA_MEMBERS = ("data", "value")
SCHEMA_MEMBERS = ("data", "value", "returns")


class ResourceExtractor(DeclarationExtractor):
    """A literal ``data`` (or ``value``) makes a resource static."""

    kind = ContractKind.RESOURCE

    def extract(self, ctx: ExtractionContext) -> ResourceDeclaration:
        uri = ctx.string("uri", required=True)

        data = NOT_STATIC
        for key in DATA_MEMBERS:
            if ctx.has(key):
                data = ctx.static(key)
                break

        dynamic = ctx.resolve_dynamic(data)
        schemas = {}
        if dynamic:
            schema_member = next((key for key in SCHEMA_MEMBERS if ctx.has(key)), None)
            schemas["data"] = ctx.schema(schema_member or "data", generic_index=0)

        mime_type = ctx.string("mime_type")
        if mime_type is None:
            structured = data is NOT_STATIC or isinstance(data, (dict, list))
            mime_type = "application/json" if structured else "text/plain"

        return ResourceDeclaration(
            uri=uri,
            name=ctx.string("name") or uri,
            mime_type=mime_type,
            data=None if data is NOT_STATIC else data,
            **self.common_fields(
                ctx,
                uri,
                dynamic=dynamic,
                implementation_name=uri,
                schemas=schemas,
            ),
        )


class SubscriptionExtractor(DeclarationExtractor):
    """Subscriptions need code only when they declare a ``handler``."""

    kind = ContractKind.SUBSCRIPTION

    def extract(self, ctx: ExtractionContext) -> SubscriptionDeclaration:
        uri = ctx.string("uri", required=True)
        has_handler = ctx.has("handler")

        return SubscriptionDeclaration(
            uri=uri,
            has_handler=has_handler,
            **self.common_fields(
                ctx,
                uri,
                dynamic=has_handler or ctx.explicit_dynamic() is True,
                implementation_name=uri,
            ),
        )
