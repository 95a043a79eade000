"""UI extractor with content-source detection and the single-source rule."""

import json
from typing import Optional

from declmcp.lib.exceptions import StructuralContradictionError

from ..core.static_data import NOT_STATIC
from ..models.contract_kind import ContractKind
from ..models.declarations import UIContentSource, UIDeclaration
from ..models.diagnostics import Diagnostic, DiagnosticKind
from .base import DeclarationExtractor, ExtractionContext

URI_LIST_MIME_TYPE = "text/uri-list"
REMOTE_DOM_MIME_TYPE = "application/vnd.mcp-ui.remote-dom+javascript"

COMPONENT_EXTENSIONS = (".tsx", ".jsx")

OPTION_MEMBERS = (
    "stylesheets",
    "scripts",
    "dependencies",
    "theme",
    "bundle",
    "minify",
    "cdn",
    "performance",
)


def detect_source(source: str) -> UIContentSource:
    """Classify a ``source`` value into one of the content sources."""
    stripped = source.strip()
    lowered = stripped.lower()
    if lowered.startswith(("http://", "https://")):
        return UIContentSource.EXTERNAL_URL
    if stripped.startswith("<") or "<!doctype" in lowered:
        return UIContentSource.HTML
    if stripped.startswith("{") and _is_remote_dom(stripped):
        return UIContentSource.REMOTE_DOM
    if lowered.endswith(COMPONENT_EXTENSIONS):
        return UIContentSource.COMPONENT
    return UIContentSource.FILE


def _is_remote_dom(text: str) -> bool:
    try:
        parsed = json.loads(text)
    except ValueError:
        return False
    return isinstance(parsed, dict) and "type" in parsed


def mime_type_for(content_source: Optional[UIContentSource]) -> Optional[str]:
    if content_source == UIContentSource.EXTERNAL_URL:
        return URI_LIST_MIME_TYPE
    if content_source == UIContentSource.REMOTE_DOM:
        return REMOTE_DOM_MIME_TYPE
    return None


class UIExtractor(DeclarationExtractor):
    """
    UI resources name at most one content source.

    Declaring two of html, file, component, external_url and remote_dom
    (``source`` counts as the one it is detected as) is a structural
    contradiction and aborts compilation of the whole file.
    """

    kind = ContractKind.UI

    def extract(self, ctx: ExtractionContext) -> UIDeclaration:
        uri = ctx.string("uri", required=True)
        name = ctx.string("name", required=True)

        declared = [source for source in UIContentSource if ctx.has(source.value)]
        content: dict[str, object] = {
            source.value: ctx.static(source.value) for source in declared
        }

        if ctx.has("source"):
            value = ctx.static("source")
            if isinstance(value, str):
                detected = detect_source(value)
                declared.append(detected)
                content[detected.value] = value
            else:
                # Not literal, so it cannot be classified; still one source
                declared.append(UIContentSource.HTML)
                content.setdefault(UIContentSource.HTML.value, NOT_STATIC)

        if len(declared) > 1:
            fields = [source.value for source in declared]
            message = (
                f"UI declaration '{ctx.declared_name}' declares more than one content source: "
                f"{', '.join(fields)}"
            )
            raise StructuralContradictionError(
                message,
                declaration_name=ctx.declared_name,
                conflicting_fields=fields,
                diagnostic=Diagnostic.create(
                    DiagnosticKind.STRUCTURAL_CONTRADICTION,
                    f"content sources are mutually exclusive: {', '.join(fields)}",
                    ctx.declared_name,
                    ctx.line,
                ),
            )

        content_source = declared[0] if declared else None
        value = content.get(content_source.value, NOT_STATIC) if content_source else NOT_STATIC
        if not isinstance(value, str):
            value = NOT_STATIC
        dynamic = ctx.resolve_dynamic(value)

        options = {}
        for key in OPTION_MEMBERS:
            option = ctx.static(key)
            if option is not NOT_STATIC:
                options[key] = option

        subscribable = ctx.boolean("subscribable")
        if subscribable is None:
            subscribable = content_source in (UIContentSource.FILE, UIContentSource.COMPONENT) or bool(
                options.get("scripts") or options.get("stylesheets")
            )

        source_fields = {}
        if content_source is not None and value is not NOT_STATIC:
            source_fields[content_source.value] = value

        return UIDeclaration(
            uri=uri,
            name=name,
            content_source=content_source,
            mime_type=ctx.string("mime_type") or mime_type_for(content_source) or ctx.config.default_ui_mime_type,
            css=ctx.string("css"),
            tools=ctx.references("tools") or [],
            size=ctx.mapping("size"),
            subscribable=subscribable,
            options=options,
            **source_fields,
            **self.common_fields(
                ctx,
                uri,
                dynamic=dynamic,
                implementation_name=uri,
            ),
        )
