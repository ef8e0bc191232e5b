"""Tool Registry for the MCP Server.

Manages registration and lookup of tools, decodes call arguments into a
typed arguments model and invokes the tool handler. Every outcome is an
`InvocationResult`: unknown tools, missing arguments and handler failures
are domain failures, never protocol errors.
"""

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import BaseModel

from shared.errors import DuplicateTool, RegistrationError
from shared.logging import get_logger
from shared.models import InvocationResult, ToolDefinition
from shared.schema import check_tool_schema

logger = get_logger(__name__)


ToolHandler = Callable[[Any], Union[InvocationResult, Awaitable[InvocationResult]]]


@dataclass(frozen=True)
class RegisteredTool:
    definition: ToolDefinition
    handler: ToolHandler
    arguments_model: Optional[type[BaseModel]] = None


async def invoke_handler(handler: Callable[..., Any], *args: Any) -> Any:
    """Run a handler; synchronous handlers run in a worker thread with the caller's context."""
    if inspect.iscoroutinefunction(handler):
        return await handler(*args)

    return await asyncio.to_thread(handler, *args)


def decode_arguments(
    tool: ToolDefinition,
    arguments: dict[str, Any],
    model: Optional[type[BaseModel]] = None
) -> Union[BaseModel, dict[str, str], InvocationResult]:
    """
    Decode raw call arguments for a tool.

    A required parameter that is absent, not a string, or empty fails with
    "<name> is required" (first failure in declaration order). Optional
    parameters that are not strings are coerced to the empty string.

    Returns:
        The typed arguments model (or a plain mapping when the tool has no
        model), or a failure result
    """
    values: dict[str, str] = {}

    for param in tool.parameters:
        value = arguments.get(param.name)
        if param.required:
            if not isinstance(value, str) or value == "":
                return InvocationResult.fail(f"{param.name} is required")
            values[param.name] = value
        else:
            values[param.name] = value if isinstance(value, str) else ""

    if model is None:
        return values
    return model.model_validate(values)


class ToolRegistry:
    """
    Central registry for all MCP tools.

    Responsibilities:
    - Register tools with their handlers
    - Lookup tools by name
    - Validate arguments and invoke handlers
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(
        self,
        tool: ToolDefinition,
        handler: ToolHandler,
        arguments_model: Optional[type[BaseModel]] = None
    ) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: Tool definition to register
            handler: Callable receiving the decoded arguments
            arguments_model: Typed arguments model, keyed by parameter name

        Raises:
            DuplicateTool: If the tool name is already registered
            RegistrationError: If the generated input schema is invalid
        """
        if tool.name in self._tools:
            raise DuplicateTool(tool.name)

        errors = check_tool_schema(tool.input_schema)
        if errors:
            raise RegistrationError(
                f"tool '{tool.name}' has an invalid input schema: {'; '.join(errors)}"
            )

        self._tools[tool.name] = RegisteredTool(
            definition=tool,
            handler=handler,
            arguments_model=arguments_model,
        )

        logger.info(
            "Tool registered",
            tool=tool.name,
            required=tool.required_parameters
        )

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        """
        Get a tool by name.

        Returns:
            ToolDefinition if found, None otherwise
        """
        registered = self._tools.get(tool_name)
        return registered.definition if registered else None

    def list_tools(self) -> list[ToolDefinition]:
        """List all registered tools in registration order."""
        return [registered.definition for registered in self._tools.values()]

    async def dispatch(self, tool_name: str, arguments: dict[str, Any]) -> InvocationResult:
        """
        Invoke a tool by name.

        Args:
            tool_name: Registered tool name
            arguments: Raw argument mapping from the request

        Returns:
            Invocation result; failures are returned, not raised
        """
        registered = self._tools.get(tool_name)
        if registered is None:
            logger.warning("Unknown tool requested", tool=tool_name)
            return InvocationResult.fail(f"unknown tool: {tool_name}")

        logger.info("Calling tool", tool=tool_name, arguments=sorted(arguments))
        start_time = time.time()

        try:
            decoded = decode_arguments(
                registered.definition, arguments, registered.arguments_model
            )
            if isinstance(decoded, InvocationResult):
                result = decoded
            else:
                result = await invoke_handler(registered.handler, decoded)
        except Exception as e:
            logger.error(
                "Tool execution failed",
                tool=tool_name,
                error=str(e),
                exc_info=True
            )
            result = InvocationResult.fail(f"failed to execute {tool_name}: {e}")

        logger.info(
            "Tool executed",
            tool=tool_name,
            status=result.status.value,
            execution_time_ms=round((time.time() - start_time) * 1000, 2)
        )
        return result
