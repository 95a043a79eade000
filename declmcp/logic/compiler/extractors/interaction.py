"""Extractors for client interaction kinds: sampling, elicitation, roots and completion."""

from ..core.static_data import NOT_STATIC
from ..models.contract_kind import ContractKind
from ..models.declarations import (
    CompletionDeclaration,
    ElicitDeclaration,
    RootsDeclaration,
    SamplingDeclaration,
)
from ..models.param_schema import ParamSchema
from ..utils.naming import to_canonical
from .base import DeclarationExtractor, ExtractionContext


def _optional_name(ctx: ExtractionContext) -> str:
    return ctx.string("name") or to_canonical(ctx.declared_name)


class SamplingExtractor(DeclarationExtractor):
    """Literal ``messages`` make a sampling request static."""

    kind = ContractKind.SAMPLING

    def extract(self, ctx: ExtractionContext) -> SamplingDeclaration:
        name = _optional_name(ctx)
        capability_name = to_canonical(name)
        messages = ctx.static("messages")

        return SamplingDeclaration(
            name=name,
            messages=None if messages is NOT_STATIC else messages,
            options=ctx.mapping("options"),
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=ctx.resolve_dynamic(messages),
                implementation_name=self.method_name(capability_name),
            ),
        )


class ElicitExtractor(DeclarationExtractor):
    """A literal ``prompt`` makes an elicitation static."""

    kind = ContractKind.ELICIT

    def extract(self, ctx: ExtractionContext) -> ElicitDeclaration:
        name = _optional_name(ctx)
        capability_name = to_canonical(name)
        prompt = ctx.static("prompt")

        return ElicitDeclaration(
            name=name,
            prompt=None if prompt is NOT_STATIC else prompt,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=ctx.resolve_dynamic(prompt),
                implementation_name=self.method_name(capability_name),
                schemas={
                    "args": ctx.schema("args", generic_index=0) or ParamSchema.empty_object(),
                    "result": ctx.schema("result"),
                },
            ),
        )


class RootsExtractor(DeclarationExtractor):
    """A literal ``roots`` list makes the declaration static."""

    kind = ContractKind.ROOTS

    def extract(self, ctx: ExtractionContext) -> RootsDeclaration:
        name = ctx.string("name", required=True)
        description = ctx.description(required=True)
        capability_name = to_canonical(name)

        roots = ctx.static("roots")
        if not isinstance(roots, list):
            roots = NOT_STATIC

        return RootsDeclaration(
            name=name,
            roots=None if roots is NOT_STATIC else roots,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=ctx.resolve_dynamic(roots),
                implementation_name=self.method_name(capability_name),
                description=description,
            ),
        )


class CompletionExtractor(DeclarationExtractor):
    """Completion for a prompt or resource argument. Literal ``suggestions`` make it static."""

    kind = ContractKind.COMPLETION

    def extract(self, ctx: ExtractionContext) -> CompletionDeclaration:
        name = ctx.string("name", required=True)
        ref = ctx.mapping("ref")
        if ref is None:
            ctx.reject("'ref' must be declared as a literal object", "ref")
        capability_name = to_canonical(name)

        suggestions = ctx.static("suggestions")
        if not isinstance(suggestions, list):
            suggestions = NOT_STATIC

        return CompletionDeclaration(
            name=name,
            ref=ref,
            suggestions=None if suggestions is NOT_STATIC else suggestions,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=ctx.resolve_dynamic(suggestions),
                implementation_name=self.method_name(capability_name),
            ),
        )
