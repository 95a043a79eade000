"""Contract kinds and the base-class names that select them."""

from enum import Enum
from typing import Optional


class ContractKind(str, Enum):
    """Capability kind a declaration belongs to."""
    TOOL = "tool"
    PROMPT = "prompt"
    RESOURCE = "resource"
    SAMPLING = "sampling"
    ELICIT = "elicit"
    ROOTS = "roots"
    SUBSCRIPTION = "subscription"
    COMPLETION = "completion"
    UI = "ui"
    SERVER = "server"
    AUTH = "auth"
    ROUTER = "router"
    SKILL = "skill"


CONTRACT_NAMES: dict[str, ContractKind] = {
    "ITool": ContractKind.TOOL,
    "IPrompt": ContractKind.PROMPT,
    "IResource": ContractKind.RESOURCE,
    "ISampling": ContractKind.SAMPLING,
    "IElicit": ContractKind.ELICIT,
    "IRoots": ContractKind.ROOTS,
    "ISubscription": ContractKind.SUBSCRIPTION,
    "ICompletion": ContractKind.COMPLETION,
    "IUI": ContractKind.UI,
    "IServer": ContractKind.SERVER,
    "IAuth": ContractKind.AUTH,
    "IApiKeyAuth": ContractKind.AUTH,
    "IOAuthAuth": ContractKind.AUTH,
    "IDatabaseAuth": ContractKind.AUTH,
    "IToolRouter": ContractKind.ROUTER,
    "ISkill": ContractKind.SKILL,
}

# Auth type implied by a specialized auth contract
AUTH_TYPE_BY_CONTRACT: dict[str, str] = {
    "IApiKeyAuth": "apiKey",
    "IOAuthAuth": "oauth2",
    "IDatabaseAuth": "database",
}

PARAM_CONTRACT = "IParam"

# Kinds addressed by URI; their implementation name is the URI itself
URI_KINDS = frozenset({ContractKind.RESOURCE, ContractKind.UI, ContractKind.SUBSCRIPTION})

# Kinds that end up as registry collections
REGISTRY_KINDS = (
    ContractKind.TOOL,
    ContractKind.PROMPT,
    ContractKind.RESOURCE,
    ContractKind.SAMPLING,
    ContractKind.ELICIT,
    ContractKind.ROOTS,
    ContractKind.SUBSCRIPTION,
    ContractKind.COMPLETION,
    ContractKind.UI,
    ContractKind.ROUTER,
    ContractKind.SKILL,
)


def resolve_contract(base_name: str) -> Optional[ContractKind]:
    """Map a base-class name to its contract kind, or None when unrecognized."""
    return CONTRACT_NAMES.get(base_name)
