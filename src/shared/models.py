"""Core data models for the AWS MCP Server.

This module defines the descriptors held by the registries, the JSON-RPC
envelopes exchanged on the wire, the normalized outcome every tool returns,
and the infrastructure record produced by the collaborator.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.schema import create_tool_schema


JSONRPC_VERSION = "2.0"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

RequestId = Union[str, int, None]


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


class Resource(BaseModel):
    """A literal, exact-URI resource descriptor."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str
    name: str
    description: str = ""
    mime_type: str = Field(default="application/json", alias="mimeType")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ResourceTemplate(BaseModel):
    """
    A pattern-based resource descriptor.

    The pattern holds one or more `{placeholder}` path segments which are
    bound to concrete segment text when a URI is resolved.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str = Field(..., alias="uriTemplate")
    name: str
    description: str = ""
    mime_type: str = Field(default="application/json", alias="mimeType")

    @model_validator(mode="after")
    def _require_placeholder(self) -> "ResourceTemplate":
        if not self.placeholders:
            raise ValueError(
                f"template '{self.pattern}' must contain at least one {{placeholder}} segment"
            )
        if len(set(self.placeholders)) != len(self.placeholders):
            raise ValueError(f"template '{self.pattern}' repeats a placeholder name")
        return self

    @property
    def placeholders(self) -> list[str]:
        """Placeholder names in segment order."""
        return [
            segment[1:-1]
            for segment in self.pattern.split("/")
            if is_placeholder(segment)
        ]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def is_placeholder(segment: str) -> bool:
    """Return True if a path segment is a `{name}` placeholder."""
    return len(segment) > 2 and segment.startswith("{") and segment.endswith("}")


class ParameterSpec(BaseModel):
    """Definition of a single tool parameter."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    required: bool = False
    type: str = "string"


class ToolDefinition(BaseModel):
    """
    Complete definition of an MCP tool.

    Identity is the tool name, unique across the registry. Parameters are
    kept in declaration order; validation reports the first failure in
    that order.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tool name, e.g. start-ec2-instance")
    description: str = Field(default="", description="Clear description for LLM usage")
    parameters: tuple[ParameterSpec, ...] = Field(default_factory=tuple)

    @property
    def required_parameters(self) -> list[str]:
        return [p.name for p in self.parameters if p.required]

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema describing the tool arguments."""
        return create_tool_schema(
            [p.model_dump() for p in self.parameters],
            required=self.required_parameters,
        )

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ErrorObject(BaseModel):
    """The `error` member of a response envelope."""
    code: Optional[int] = None
    message: str
    data: Optional[Any] = None


class Request(BaseModel):
    """
    A decoded JSON-RPC request.

    `id` is an opaque correlation token. A message without an `id` member
    is a notification and receives no response.
    """
    id: RequestId = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)
    is_notification: bool = Field(default=False, exclude=True)


class Response(BaseModel):
    """
    A JSON-RPC response envelope.

    Exactly one of `result` and `error` is present.
    """
    id: RequestId = None
    result: Optional[Any] = None
    error: Optional[ErrorObject] = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> "Response":
        if (self.result is None) == (self.error is None):
            raise ValueError("response must carry exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> "Response":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId,
        message: str,
        code: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "Response":
        return cls(id=request_id, error=ErrorObject(code=code, message=message, data=data))

    def to_wire(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            envelope["error"] = self.error.model_dump(exclude_none=True)
        else:
            envelope["result"] = self.result
        return envelope

    def encode(self) -> str:
        """Serialize as a single line, without the trailing newline."""
        return json.dumps(self.to_wire(), separators=(",", ":"), default=str)

    @classmethod
    def decode(cls, line: str) -> "Response":
        envelope = json.loads(line)
        envelope.pop("jsonrpc", None)
        return cls.model_validate(envelope)


class ResourceContents(BaseModel):
    """A single text item returned by `resources/read`."""
    model_config = ConfigDict(populate_by_name=True)

    uri: str
    mime_type: str = Field(default="application/json", alias="mimeType")
    text: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class InvocationStatus(str, Enum):
    """Outcome of a tool invocation."""
    SUCCESS = "success"
    FAILURE = "failure"


class InvocationResult(BaseModel):
    """
    Normalized outcome of a tool invocation.

    Failures are domain outcomes: they are returned to the caller as
    structured data inside a successful envelope.
    """
    status: InvocationStatus
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def ok(cls, message: str, data: Optional[dict[str, Any]] = None) -> "InvocationResult":
        return cls(status=InvocationStatus.SUCCESS, message=message, data=data or {})

    @classmethod
    def fail(cls, message: str) -> "InvocationResult":
        return cls(status=InvocationStatus.FAILURE, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status == InvocationStatus.SUCCESS

    def to_payload(self) -> dict[str, Any]:
        """Flatten into the JSON object handed to the calling agent."""
        timestamp = self.timestamp.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
        if not self.succeeded:
            return {"success": False, "error": self.message, "timestamp": timestamp}

        payload: dict[str, Any] = {
            "success": True,
            "message": self.message,
            "timestamp": timestamp,
        }
        payload.update(self.data)
        return payload

    def to_text(self) -> str:
        return json.dumps(self.to_payload(), indent=2, default=str)


class InfraResource(BaseModel):
    """A normalized infrastructure object as returned by the collaborator."""
    id: str
    type: str
    region: str
    state: str
    tags: dict[str, str] = Field(default_factory=dict)
    details: dict[str, Any] = Field(default_factory=dict)
    observed_at: datetime = Field(default_factory=utc_now)


class CreateInstanceParams(BaseModel):
    """Launch parameters passed to the collaborator's create operation."""
    image_id: str
    instance_type: str
    key_name: str = ""
    security_group_id: str = ""
    subnet_id: str = ""
    name: str = ""
