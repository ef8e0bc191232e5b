"""Shared models, errors, configuration and logging for the AWS MCP Server."""

from shared.models import (
    InfraResource,
    InvocationResult,
    ParameterSpec,
    Request,
    Resource,
    ResourceTemplate,
    Response,
    ToolDefinition,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "InfraResource",
    "InvocationResult",
    "ParameterSpec",
    "Request",
    "Resource",
    "ResourceTemplate",
    "Response",
    "ToolDefinition",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
