"""Base classes for domain adapters.

All adapters must:
- Translate MCP resource reads and tool calls to collaborator operations
- Normalize and filter responses for AI consumption
- Receive their collaborator explicitly rather than capturing server state
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from infra.client import InfraClient
from shared.logging import get_logger
from shared.models import InvocationResult, ResourceContents
from mcp_server.registry import ToolRegistry
from mcp_server.resources import ResourceRegistry

logger = get_logger(__name__)


class BaseAdapter(ABC):
    """
    Base class for domain adapters.

    Each adapter:
    - Handles one domain only
    - Registers its resources and tools at startup
    - Is stateless apart from the injected collaborator
    """

    domain: str = "base"

    def __init__(self, client: InfraClient) -> None:
        self.client = client

    @abstractmethod
    def register(self, resources: ResourceRegistry, tools: ToolRegistry) -> None:
        """Register every resource and tool of this domain."""

    def _success(self, message: str, data: Optional[dict[str, Any]] = None) -> InvocationResult:
        """Create a success result."""
        return InvocationResult.ok(message, data)

    def _failure(self, message: str) -> InvocationResult:
        """Create a failure result."""
        logger.warning("Tool action failed", domain=self.domain, error=message)
        return InvocationResult.fail(message)

    def _json_contents(
        self,
        uri: str,
        payload: Any,
        mime_type: str = "application/json"
    ) -> list[ResourceContents]:
        """Wrap a JSON payload as the single content item of a resource read."""
        text = json.dumps(payload, separators=(",", ":"), default=str)
        return [ResourceContents(uri=uri, mime_type=mime_type, text=text)]
