"""Server assembly.

Builds the registries, registers every domain against the injected
infrastructure client and wires the dispatcher to a transport.
"""

import asyncio
from typing import Optional, TextIO

from infra.client import InfraClient
from shared.config import MCPSettings
from shared.logging import get_logger
from mcp_server.dispatcher import RequestDispatcher
from mcp_server.registry import ToolRegistry
from mcp_server.resources import ResourceRegistry
from mcp_server.transport import LineReader, StdioTransport

logger = get_logger(__name__)


class MCPServer:
    """
    One server instance: read-only registries plus a dispatcher.

    Several transports may share one instance; they have no mutable state
    in common.
    """

    def __init__(
        self,
        resources: ResourceRegistry,
        tools: ToolRegistry,
        settings: Optional[MCPSettings] = None
    ) -> None:
        self.settings = settings or MCPSettings()
        self.resources = resources
        self.tools = tools
        self.dispatcher = RequestDispatcher(resources, tools, self.settings)

    @classmethod
    def create(cls, client: InfraClient, settings: Optional[MCPSettings] = None) -> "MCPServer":
        """
        Build a server with every domain registered.

        Raises:
            RegistrationError: If a resource or tool registration is rejected
        """
        from domains import load_all_domains

        resources = ResourceRegistry()
        tools = ToolRegistry()
        load_all_domains(resources, tools, client)

        server = cls(resources, tools, settings)
        logger.info(
            "MCP server assembled",
            name=server.settings.server_name,
            version=server.settings.version,
            resources=len(resources.list_resources()),
            templates=len(resources.list_templates()),
            tools=len(tools.list_tools())
        )
        return server

    def transport(
        self,
        reader: LineReader,
        writer: TextIO,
        stop_event: Optional[asyncio.Event] = None
    ) -> StdioTransport:
        """Create a read loop bound to this server's dispatcher."""
        return StdioTransport(self.dispatcher, reader, writer, stop_event)
