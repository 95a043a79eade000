"""Tool and prompt extractors."""

from ..core.static_data import NOT_STATIC
from ..models.contract_kind import ContractKind
from ..models.declarations import PromptArgument, PromptDeclaration, ToolDeclaration
from ..models.param_schema import ParamSchema
from ..utils.naming import to_canonical
from .base import DeclarationExtractor, ExtractionContext


class ToolExtractor(DeclarationExtractor):
    """Tools always run code, so every tool is dynamic."""

    kind = ContractKind.TOOL

    def extract(self, ctx: ExtractionContext) -> ToolDeclaration:
        name = ctx.string("name", required=True)
        description = ctx.description(required=True)
        capability_name = to_canonical(name)

        params = ctx.schema("params", generic_index=0) or ParamSchema.empty_object()
        result = ctx.schema("result", generic_index=1)

        return ToolDeclaration(
            name=name,
            annotations=ctx.mapping("annotations"),
            hidden=ctx.boolean("hidden") or False,
            skill=ctx.string("skill"),
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=True,
                implementation_name=self.method_name(capability_name),
                description=description,
                schemas={"params": params, "result": result},
            ),
        )


class PromptExtractor(DeclarationExtractor):
    """A literal ``template`` makes a prompt static."""

    kind = ContractKind.PROMPT

    def extract(self, ctx: ExtractionContext) -> PromptDeclaration:
        name = ctx.string("name", required=True)
        description = ctx.description(required=True)
        capability_name = to_canonical(name)

        template = ctx.static("template")
        if not isinstance(template, str):
            template = NOT_STATIC

        args = ctx.schema("args", generic_index=0) or ParamSchema.empty_object()
        arguments = [PromptArgument(**argument) for argument in args.argument_list()]

        return PromptDeclaration(
            name=name,
            template=template if template is not NOT_STATIC else None,
            arguments=arguments,
            **self.common_fields(
                ctx,
                capability_name,
                dynamic=ctx.resolve_dynamic(template),
                implementation_name=self.method_name(capability_name),
                description=description,
                schemas={"args": args},
            ),
        )
