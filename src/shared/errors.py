"""Error taxonomy for the AWS MCP Server.

Registration errors are raised while the server is assembled and abort
startup. Protocol errors are raised during dispatch and converted into
JSON-RPC error envelopes. Transport faults and shutdown requests end the
read loop.
"""

from typing import Any, Optional


# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# MCP-specific error codes
RESOURCE_NOT_FOUND = -32002


class RegistrationError(Exception):
    """Base class for errors raised while registering resources or tools."""


class DuplicateResource(RegistrationError):
    """A literal resource with the same URI is already registered."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"resource '{uri}' is already registered")
        self.uri = uri


class AmbiguousTemplate(RegistrationError):
    """A template would claim URIs already claimed by another registration."""

    def __init__(self, pattern: str, conflicting: str) -> None:
        super().__init__(
            f"resource template '{pattern}' is ambiguous with '{conflicting}'"
        )
        self.pattern = pattern
        self.conflicting = conflicting


class DuplicateTool(RegistrationError):
    """A tool with the same name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"tool '{name}' is already registered")
        self.name = name


class ProtocolError(Exception):
    """
    A per-message protocol failure.

    Encoded as the `error` member of a response envelope; the stream
    continues after it is written.
    """

    def __init__(self, code: int, message: str, data: Optional[Any] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    @classmethod
    def parse_error(cls, detail: str) -> "ProtocolError":
        return cls(PARSE_ERROR, f"parse error: {detail}")

    @classmethod
    def invalid_request(cls, detail: str) -> "ProtocolError":
        return cls(INVALID_REQUEST, f"invalid request: {detail}")

    @classmethod
    def method_not_found(cls, method: str) -> "ProtocolError":
        return cls(METHOD_NOT_FOUND, "method not found", data={"method": method})

    @classmethod
    def invalid_params(cls, detail: str) -> "ProtocolError":
        return cls(INVALID_PARAMS, f"invalid params: {detail}")

    @classmethod
    def resource_not_found(cls, uri: str, detail: Optional[str] = None) -> "ProtocolError":
        message = detail or f"resource not found: {uri}"
        return cls(RESOURCE_NOT_FOUND, message, data={"uri": uri})

    @classmethod
    def internal(cls, detail: str) -> "ProtocolError":
        return cls(INTERNAL_ERROR, detail)


class TransportFault(Exception):
    """Reading from the input stream failed. Fatal for the read loop."""


class ShutdownRequested(Exception):
    """The cancellation signal was observed between messages."""
