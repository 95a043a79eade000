"""
Declaration models

One immutable record per extracted declaration. Field aliases follow the
protocol's camelCase naming so the external form reads like an MCP
capability listing.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .contract_kind import ContractKind
from .param_schema import ParamSchema


class Transport(str, Enum):
    """Server transport."""
    STDIO = "stdio"
    HTTP = "http"
    WEBSOCKET = "websocket"


class AuthType(str, Enum):
    """Authentication scheme."""
    API_KEY = "apiKey"
    OAUTH2 = "oauth2"
    DATABASE = "database"
    CUSTOM = "custom"


class UIContentSource(str, Enum):
    """Mutually exclusive UI content sources."""
    HTML = "html"
    FILE = "file"
    COMPONENT = "component"
    EXTERNAL_URL = "external_url"
    REMOTE_DOM = "remote_dom"


class DeclarationModel(BaseModel):
    """Shared model configuration."""
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore"
    )


class ApiKeyEntry(DeclarationModel):
    """One accepted API key."""
    key: str
    name: Optional[str] = None
    scopes: list[str] = Field(default_factory=list)


class OAuthClient(DeclarationModel):
    """Registered OAuth client."""
    client_id: str
    client_secret: Optional[str] = None
    redirect_uris: list[str] = Field(default_factory=list)
    scopes: list[str] = Field(default_factory=list)
    name: Optional[str] = None


class AuthConfig(DeclarationModel):
    """Authentication policy resolved from an auth declaration or inline object."""
    declared_name: Optional[str] = None
    type: AuthType
    header_name: Optional[str] = None
    keys: list[ApiKeyEntry] = Field(default_factory=list)
    allow_anonymous: bool = False
    issuer_url: Optional[str] = None
    clients: list[OAuthClient] = Field(default_factory=list)
    token_expiration: Optional[int] = None
    refresh_token_expiration: Optional[int] = None
    authorization_code_expiration: Optional[int] = None
    description: Optional[str] = None


class Declaration(DeclarationModel):
    """Fields common to every capability declaration."""
    kind: ContractKind
    declared_name: str
    capability_name: str
    description: Optional[str] = None
    dynamic: bool = False
    implementation_name: Optional[str] = None
    line: Optional[int] = None
    schemas: dict[str, ParamSchema] = Field(default_factory=dict)

    @property
    def needs_binding(self) -> bool:
        """Whether the runtime must call an implementation for this capability."""
        return self.dynamic and self.implementation_name is not None


class ToolDeclaration(Declaration):
    kind: Literal[ContractKind.TOOL] = ContractKind.TOOL
    name: str
    annotations: Optional[dict[str, Any]] = None
    hidden: bool = False
    skill: Optional[str] = None


class PromptArgument(DeclarationModel):
    name: str
    description: Optional[str] = None
    required: bool = True


class PromptDeclaration(Declaration):
    kind: Literal[ContractKind.PROMPT] = ContractKind.PROMPT
    name: str
    template: Optional[str] = None
    arguments: list[PromptArgument] = Field(default_factory=list)


class ResourceDeclaration(Declaration):
    kind: Literal[ContractKind.RESOURCE] = ContractKind.RESOURCE
    uri: str
    name: str
    mime_type: str = "application/json"
    data: Any = None


class SamplingDeclaration(Declaration):
    kind: Literal[ContractKind.SAMPLING] = ContractKind.SAMPLING
    name: str
    messages: Optional[Any] = None
    options: Optional[dict[str, Any]] = None


class ElicitDeclaration(Declaration):
    kind: Literal[ContractKind.ELICIT] = ContractKind.ELICIT
    name: str
    prompt: Optional[Any] = None


class RootsDeclaration(Declaration):
    kind: Literal[ContractKind.ROOTS] = ContractKind.ROOTS
    name: str
    roots: Optional[list[Any]] = None


class SubscriptionDeclaration(Declaration):
    kind: Literal[ContractKind.SUBSCRIPTION] = ContractKind.SUBSCRIPTION
    uri: str
    has_handler: bool = False


class CompletionDeclaration(Declaration):
    kind: Literal[ContractKind.COMPLETION] = ContractKind.COMPLETION
    name: str
    ref: dict[str, Any]
    suggestions: Optional[list[Any]] = None


class UIDeclaration(Declaration):
    kind: Literal[ContractKind.UI] = ContractKind.UI
    uri: str
    name: str
    content_source: Optional[UIContentSource] = None
    html: Optional[str] = None
    file: Optional[str] = None
    component: Optional[str] = None
    external_url: Optional[str] = None
    remote_dom: Optional[str] = None
    mime_type: str = "text/html"
    css: Optional[str] = None
    tools: list[str] = Field(default_factory=list)
    size: Optional[dict[str, Any]] = None
    subscribable: bool = False
    options: dict[str, Any] = Field(default_factory=dict)


class ServerDeclaration(Declaration):
    kind: Literal[ContractKind.SERVER] = ContractKind.SERVER
    name: str
    version: str = "1.0.0"
    transport: Transport = Transport.STDIO
    port: Optional[int] = None
    stateful: Optional[bool] = None
    websocket: Optional[dict[str, Any]] = None
    auth_ref: Optional[str] = None
    auth: Optional[AuthConfig] = None
    flatten_routers: bool = False


class RouterDeclaration(Declaration):
    kind: Literal[ContractKind.ROUTER] = ContractKind.ROUTER
    name: str
    tools: list[str] = Field(default_factory=list)
    metadata: Optional[dict[str, Any]] = None


class SkillDeclaration(Declaration):
    kind: Literal[ContractKind.SKILL] = ContractKind.SKILL
    name: str
    manual: Optional[str] = None
    components: dict[str, list[str]] = Field(default_factory=dict)


AnyDeclaration = Annotated[
    Union[
        ToolDeclaration,
        PromptDeclaration,
        ResourceDeclaration,
        SamplingDeclaration,
        ElicitDeclaration,
        RootsDeclaration,
        SubscriptionDeclaration,
        CompletionDeclaration,
        UIDeclaration,
        ServerDeclaration,
        RouterDeclaration,
        SkillDeclaration,
    ],
    Field(discriminator="kind"),
]
