"""Configuration management for the AWS MCP Server.

Supports a YAML configuration file and environment variable overrides.
Environment variables take precedence over the file, which takes
precedence over defaults. Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class FileBackedSettings(BaseSettings):
    """Settings whose constructor values rank below the environment."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, dotenv_settings, init_settings, file_secret_settings


class AWSSettings(FileBackedSettings):
    """AWS provider configuration."""
    region: str = Field(default="us-west-2", description="AWS region to operate in")
    profile: Optional[str] = Field(default=None, description="Named profile from the shared credentials file")
    health_check: bool = Field(default=True, description="Verify connectivity at startup")

    model_config = SettingsConfigDict(
        env_prefix="AIOPS_AWS_",
        env_file=".env",
        extra="ignore"
    )


class MCPSettings(FileBackedSettings):
    """MCP protocol configuration."""
    server_name: str = Field(default="aws-mcp-server")
    version: str = Field(default="1.0.0")
    protocol_version: str = Field(default="2024-11-05")

    model_config = SettingsConfigDict(
        env_prefix="AIOPS_MCP_",
        env_file=".env",
        extra="ignore"
    )


class Settings(FileBackedSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    log_format: Literal["text", "json"] = Field(default="text")

    aws: AWSSettings = Field(default_factory=AWSSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)

    model_config = SettingsConfigDict(
        env_prefix="AIOPS_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, falling back to defaults."""
        data = load_yaml_config(path)
        # Nested sections are built here so their own env prefixes apply.
        data["aws"] = AWSSettings(**(data.get("aws") or {}))
        data["mcp"] = MCPSettings(**(data.get("mcp") or {}))
        return cls(**data)


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("AIOPS_CONFIG_PATH", "config/config.yaml")
    return Settings.from_yaml(config_path)
