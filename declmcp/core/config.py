"""Unified configuration management for declmcp."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompilerConfig(BaseSettings):
    """Compiler configuration with environment variable support."""

    # Application settings
    debug: bool = Field(default=False)

    # Logging configuration
    log_level: str = Field(default="WARNING")
    log_file: Optional[Path] = Field(default=None)

    # Container discovery
    primary_export_name: str = Field(
        default="__default__",
        description="Module-level name that marks the primary implementation container"
    )
    container_suffixes: list[str] = Field(
        default_factory=lambda: ["Server", "Service", "Impl", "Handler", "Provider", "Manager"],
        description="Class name suffixes recognized as implementation containers"
    )

    # Defaults applied by extractors
    default_server_version: str = Field(default="1.0.0")
    default_ui_mime_type: str = Field(default="text/html")

    # Diagnostics
    warn_on_any_fields: bool = Field(
        default=True,
        description="Emit a warning for every field compiled to an unconstrained validator"
    )
    warn_on_unused_implementations: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="DECLMCP_",
        validate_assignment=True,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v.upper()

    @field_validator("container_suffixes")
    @classmethod
    def validate_container_suffixes(cls, v: list[str]) -> list[str]:
        """Drop blank suffixes."""
        return [suffix for suffix in v if suffix.strip()]


# Global configuration instance
_config: Optional[CompilerConfig] = None


def get_config() -> CompilerConfig:
    """Get global configuration instance."""
    global _config
    if _config is None:
        _config = CompilerConfig()
    return _config


def set_config(config: CompilerConfig) -> None:
    """Set global configuration instance."""
    global _config
    _config = config
