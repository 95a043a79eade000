"""
Declaration contracts

Base classes a declaration module extends so the compiler can discover its
capabilities. The classes carry no behavior: the compiler reads the module
text and never imports it, while the runtime only needs the names to exist.

Example:

    from typing import Literal
    from declmcp.contracts import ITool, IServer

    class GetWeatherTool(ITool[WeatherParams, WeatherResult]):
        name: Literal["get_weather"]
        description: Literal["Current weather for a city"]
"""

from typing import Any, Callable, Generic, Optional, TypeVar

TParams = TypeVar("TParams")
TResult = TypeVar("TResult")
TDecl = TypeVar("TDecl")

IMPLEMENTS_ATTRIBUTE = "__declmcp_implements__"


class ITool(Generic[TParams, TResult]):
    """Callable operation exposed by the server."""


class IPrompt(Generic[TParams]):
    """Templated prompt. A literal ``template`` makes it static."""


class IResource(Generic[TResult]):
    """URI-addressed readable resource. A literal ``data`` makes it static."""


class ISampling:
    """LLM sampling request definition."""


class IElicit(Generic[TParams]):
    """User input request definition."""


class IRoots:
    """Filesystem roots exposed to the client."""


class ISubscription:
    """Subscription to updates of a resource URI."""


class ICompletion:
    """Argument completion provider for a prompt or resource template."""


class IUI:
    """Interactive UI resource with exactly one content source."""


class IServer:
    """Server metadata: name, version, transport and auth."""


class IAuth:
    """Authentication policy referenced by a server."""


class IApiKeyAuth(IAuth):
    """API key authentication."""


class IOAuthAuth(IAuth):
    """OAuth2 authorization server configuration."""


class IDatabaseAuth(IAuth):
    """Database-backed authentication."""


class IToolRouter:
    """Groups tools behind a single router capability."""


class ISkill:
    """Documented bundle of tools, resources and prompts."""


class IParam:
    """Named parameter constraint set used in params shapes."""


class ParamInfo:
    """Constraint marker carried inside ``Annotated`` metadata."""

    def __init__(self, **constraints: Any):
        self.constraints = constraints

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.constraints.items())
        return f"Param({args})"


def Param(
    description: Optional[str] = None,
    **constraints: Any
) -> ParamInfo:
    """Attach constraints to a parameter: ``Annotated[str, Param(min_length=1)]``."""
    if description is not None:
        constraints["description"] = description
    return ParamInfo(**constraints)


def implements(key: str) -> Callable[[Callable], Callable]:
    """Bind a function to the capability addressed by ``key`` (usually a URI)."""
    def decorator(func: Callable) -> Callable:
        setattr(func, IMPLEMENTS_ATTRIBUTE, key)
        return func
    return decorator


class ToolHelper(Generic[TDecl]):
    """Annotation for an implementation of the given tool declaration."""


class PromptHelper(Generic[TDecl]):
    """Annotation for an implementation of the given prompt declaration."""


class ResourceHelper(Generic[TDecl]):
    """Annotation for an implementation of the given resource declaration."""
