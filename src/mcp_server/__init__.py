"""MCP Server - resource and tool registries, dispatch and stdio transport.

The server accepts newline-delimited JSON-RPC messages, resolves each one
to a resource (literal or URI template) or a tool, and writes a correlated
response for every request.
"""

from mcp_server.resources import ResourceRegistry
from mcp_server.registry import ToolRegistry
from mcp_server.dispatcher import RequestDispatcher
from mcp_server.transport import StdioTransport
from mcp_server.server import MCPServer

__all__ = [
    "ResourceRegistry",
    "ToolRegistry",
    "RequestDispatcher",
    "StdioTransport",
    "MCPServer",
]
