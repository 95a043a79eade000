"""Auth extractor. Auth declarations feed a side-table used to resolve server references."""

from typing import Any, Optional

from pydantic import ValidationError

from declmcp.lib.exceptions import RejectedDeclarationError

from ..core.static_data import NOT_STATIC
from ..models.contract_kind import AUTH_TYPE_BY_CONTRACT, ContractKind
from ..models.declarations import AuthConfig, AuthType
from ..utils.naming import to_canonical
from .base import DeclarationExtractor, ExtractionContext

AUTH_TYPE_ALIASES = {
    "apikey": AuthType.API_KEY,
    "api_key": AuthType.API_KEY,
    "api-key": AuthType.API_KEY,
    "oauth": AuthType.OAUTH2,
    "oauth2": AuthType.OAUTH2,
    "database": AuthType.DATABASE,
    "custom": AuthType.CUSTOM,
}

AUTH_MEMBERS = (
    "header_name",
    "keys",
    "allow_anonymous",
    "issuer_url",
    "clients",
    "token_expiration",
    "refresh_token_expiration",
    "authorization_code_expiration",
)


def normalize_auth_type(value: Any) -> Optional[AuthType]:
    if not isinstance(value, str):
        return None
    return AUTH_TYPE_ALIASES.get(value.strip().lower())


def parse_auth(
    data: dict[str, Any],
    declared_name: Optional[str] = None,
    description: Optional[str] = None,
) -> AuthConfig:
    """
    Build an AuthConfig from literal data.

    Keys may be snake_case or camelCase.

    Raises:
        RejectedDeclarationError: If the type is missing or unknown, or a
            field has the wrong shape
    """
    normalized = {to_canonical(key): value for key, value in data.items()}
    auth_type = normalize_auth_type(normalized.pop("type", None))
    if auth_type is None:
        raise RejectedDeclarationError(
            f"{declared_name or 'auth'}: 'type' must be one of apiKey, oauth2, database, custom",
            declaration_name=declared_name,
            missing_field="type",
        )

    try:
        return AuthConfig(
            declared_name=declared_name,
            type=auth_type,
            description=description,
            **{key: value for key, value in normalized.items() if key in AUTH_MEMBERS},
        )
    except ValidationError as e:
        raise RejectedDeclarationError(
            f"{declared_name or 'auth'}: invalid auth configuration: {e.error_count()} error(s)",
            declaration_name=declared_name,
        ) from e


class AuthExtractor(DeclarationExtractor):
    kind = ContractKind.AUTH

    def extract(self, ctx: ExtractionContext) -> AuthConfig:
        data: dict[str, Any] = {}
        implied_type = AUTH_TYPE_BY_CONTRACT.get(ctx.contract_name)
        if implied_type:
            data["type"] = implied_type

        declared_type = ctx.static("type")
        if declared_type is not NOT_STATIC:
            data["type"] = declared_type

        for key in AUTH_MEMBERS:
            value = ctx.static(key)
            if value is not NOT_STATIC:
                data[key] = value

        return parse_auth(data, declared_name=ctx.declared_name, description=ctx.description())
