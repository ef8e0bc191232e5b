"""Request Dispatcher for the MCP Server.

Decodes a single protocol message, routes it to the resource or tool
registry, invokes the resolved handler and normalizes the outcome into a
response envelope correlated with the request id.

Resource failures surface as protocol errors. Tool failures are domain
outcomes and are returned inside a successful envelope.
"""

import json
from typing import Any, Awaitable, Callable, Optional, Union

from shared.config import MCPSettings
from shared.errors import ProtocolError
from shared.logging import bind_context, get_logger, unbind_context
from shared.models import Request, Response, ResourceContents
from mcp_server.registry import ToolRegistry, invoke_handler
from mcp_server.resources import ResourceRegistry

logger = get_logger(__name__)


MethodHandler = Callable[[dict[str, Any]], Awaitable[Any]]


def decode_request(message: Any) -> Request:
    """
    Validate a parsed JSON value as a request envelope.

    Raises:
        ProtocolError: If the value is not a well-formed request
    """
    if not isinstance(message, dict):
        raise ProtocolError.invalid_request("message must be a JSON object")

    method = message.get("method")
    if not isinstance(method, str) or not method:
        raise ProtocolError.invalid_request("method must be a non-empty string")

    params = message.get("params")
    if params is None:
        params = {}
    elif not isinstance(params, dict):
        raise ProtocolError.invalid_params("params must be an object")

    request_id = message.get("id")
    if request_id is not None and not isinstance(request_id, (str, int)):
        raise ProtocolError.invalid_request("id must be a string or number")

    return Request(
        id=request_id,
        method=method,
        params=params,
        is_notification="id" not in message,
    )


class RequestDispatcher:
    """
    Routes decoded requests to the registries.

    Each request is handled independently; the only state shared between
    requests is the read-only registries.
    """

    def __init__(
        self,
        resources: ResourceRegistry,
        tools: ToolRegistry,
        server_info: Optional[MCPSettings] = None
    ) -> None:
        self.resources = resources
        self.tools = tools
        self.server_info = server_info or MCPSettings()
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "notifications/initialized": self._acknowledge,
            "ping": self._acknowledge,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "resources/read": self._read_resource,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def handle_line(self, line: Union[str, bytes]) -> Optional[Response]:
        """
        Handle one raw message line.

        Bytes are decoded as UTF-8; text that is not valid UTF-8 or not valid
        JSON yields a parse error response.

        Returns:
            The response to write, or None for notifications
        """
        try:
            message = json.loads(line)
        except ValueError as e:
            logger.warning("Malformed message", error=str(e))
            error = ProtocolError.parse_error(str(e))
            return Response.failure(None, error.message, code=error.code)

        try:
            request = decode_request(message)
        except ProtocolError as e:
            logger.warning("Invalid request", error=e.message)
            request_id = message.get("id") if isinstance(message, dict) else None
            if not isinstance(request_id, (str, int)):
                request_id = None
            return Response.failure(request_id, e.message, code=e.code, data=e.data)

        return await self.handle(request)

    async def handle(self, request: Request) -> Optional[Response]:
        """Route a decoded request and build its response."""
        bind_context(request_id=request.id, method=request.method)
        try:
            response = await self._route(request)
        finally:
            unbind_context("request_id", "method")

        if request.is_notification:
            return None
        return response

    async def _route(self, request: Request) -> Response:
        handler = self._methods.get(request.method)
        try:
            if handler is None:
                raise ProtocolError.method_not_found(request.method)
            result = await handler(request.params)
        except ProtocolError as e:
            logger.info("Request failed", code=e.code, error=e.message)
            return Response.failure(request.id, e.message, code=e.code, data=e.data)
        except Exception as e:
            logger.error("Unhandled error during dispatch", error=str(e), exc_info=True)
            error = ProtocolError.internal(f"internal error: {e}")
            return Response.failure(request.id, error.message, code=error.code)

        return Response.success(request.id, result)

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        logger.info(
            "Client initializing",
            client=params.get("clientInfo"),
            protocol_version=params.get("protocolVersion")
        )
        return {
            "protocolVersion": self.server_info.protocol_version,
            "capabilities": {
                "resources": {"subscribe": False, "listChanged": False},
                "tools": {"listChanged": False},
            },
            "serverInfo": {
                "name": self.server_info.server_name,
                "version": self.server_info.version,
            },
        }

    async def _acknowledge(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [r.to_wire() for r in self.resources.list_resources()]}

    async def _list_resource_templates(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "resourceTemplates": [t.to_wire() for t in self.resources.list_templates()]
        }

    async def _read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise ProtocolError.invalid_params("uri is required")

        match = self.resources.resolve(uri)
        if match is None:
            raise ProtocolError.resource_not_found(uri)

        logger.info("Reading resource", uri=uri, placeholders=match.placeholders)
        contents: list[ResourceContents] = await invoke_handler(
            match.handler, uri, match.placeholders
        )
        return {"contents": [c.to_wire() for c in contents]}

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [t.to_wire() for t in self.tools.list_tools()]}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise ProtocolError.invalid_params("name is required")

        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}

        result = await self.tools.dispatch(name, arguments)
        return {"content": [{"type": "text", "text": result.to_text()}]}
