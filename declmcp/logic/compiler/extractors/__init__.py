"""Per-kind declaration extractors, dispatched through ``EXTRACTORS``."""

from ..models.contract_kind import ContractKind
from .auth import AuthExtractor, parse_auth
from .base import DeclarationExtractor, ExtractionContext, Member, reference_names
from .interaction import CompletionExtractor, ElicitExtractor, RootsExtractor, SamplingExtractor
from .resource import ResourceExtractor, SubscriptionExtractor
from .server import RouterExtractor, ServerExtractor, SkillExtractor, infer_transport
from .tool import PromptExtractor, ToolExtractor
from .ui import UIExtractor, detect_source

EXTRACTORS: dict[ContractKind, DeclarationExtractor] = {
    extractor.kind: extractor
    for extractor in (
        ToolExtractor(),
        PromptExtractor(),
        ResourceExtractor(),
        SamplingExtractor(),
        ElicitExtractor(),
        RootsExtractor(),
        SubscriptionExtractor(),
        CompletionExtractor(),
        UIExtractor(),
        ServerExtractor(),
        AuthExtractor(),
        RouterExtractor(),
        SkillExtractor(),
    )
}

__all__ = [
    "EXTRACTORS",
    "DeclarationExtractor",
    "ExtractionContext",
    "Member",
    "reference_names",
    "parse_auth",
    "detect_source",
    "infer_transport",
]
