"""EC2 Domain - Instance inventory and lifecycle tools.

Resources:
- aws://ec2/instances                 summary of every instance in the region
- aws://ec2/instances/{instanceId}    details of a single instance

Tools:
- create-ec2-instance, start-ec2-instance, stop-ec2-instance,
  terminate-ec2-instance
"""

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from infra.client import InfraClient, InfraError, InstanceNotFound
from shared.errors import ProtocolError
from shared.logging import get_logger
from shared.models import (
    CreateInstanceParams,
    InfraResource,
    InvocationResult,
    ParameterSpec,
    Resource,
    ResourceContents,
    ResourceTemplate,
    ToolDefinition,
)
from domains.base import BaseAdapter
from mcp_server.registry import ToolRegistry
from mcp_server.resources import ResourceRegistry

logger = get_logger(__name__)


INSTANCES_URI = "aws://ec2/instances"
INSTANCE_TEMPLATE = "aws://ec2/instances/{instanceId}"


class CreateInstanceArguments(BaseModel):
    """Decoded arguments of create-ec2-instance."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    image_id: str = Field(..., alias="imageId")
    instance_type: str = Field(..., alias="instanceType")
    key_name: str = Field(default="", alias="keyName")
    security_group_id: str = Field(default="", alias="securityGroupId")
    subnet_id: str = Field(default="", alias="subnetId")
    name: str = Field(default="", alias="name")

    def to_params(self) -> CreateInstanceParams:
        return CreateInstanceParams(**self.model_dump())


class InstanceIdArguments(BaseModel):
    """Decoded arguments of the start, stop and terminate tools."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    instance_id: str = Field(..., alias="instanceId")


def _instance_id_tool(name: str, description: str, verb: str) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=description,
        parameters=(
            ParameterSpec(
                name="instanceId",
                description=f"EC2 instance ID to {verb}",
                required=True,
            ),
        ),
    )


CREATE_INSTANCE_TOOL = ToolDefinition(
    name="create-ec2-instance",
    description="Create a new EC2 instance",
    parameters=(
        ParameterSpec(name="imageId", description="AMI ID to use for the instance", required=True),
        ParameterSpec(
            name="instanceType",
            description="EC2 instance type (e.g., t2.micro, t3.small)",
            required=True,
        ),
        ParameterSpec(name="keyName", description="Name of the key pair to use for SSH access"),
        ParameterSpec(name="securityGroupId", description="Security group ID to assign to the instance"),
        ParameterSpec(name="subnetId", description="Subnet ID where the instance should be launched"),
        ParameterSpec(name="name", description="Name tag for the instance"),
    ),
)
START_INSTANCE_TOOL = _instance_id_tool(
    "start-ec2-instance", "Start a stopped EC2 instance", "start"
)
STOP_INSTANCE_TOOL = _instance_id_tool(
    "stop-ec2-instance", "Stop a running EC2 instance", "stop"
)
TERMINATE_INSTANCE_TOOL = _instance_id_tool(
    "terminate-ec2-instance", "Terminate an EC2 instance (permanent deletion)", "terminate"
)


def format_instances(instances: list[InfraResource]) -> dict[str, Any]:
    """Summarize a list of instances for AI consumption."""
    formatted_instances = []
    state_count: dict[str, int] = {}
    type_count: dict[str, int] = {}

    for instance in instances:
        instance_type = instance.details.get("instanceType")
        formatted: dict[str, Any] = {
            "id": instance.id,
            "state": instance.state,
            "type": instance_type,
            "region": instance.region,
        }

        if "Name" in instance.tags:
            formatted["name"] = instance.tags["Name"]
        if instance.details.get("publicIpAddress") is not None:
            formatted["public_ip"] = instance.details["publicIpAddress"]
        if instance.details.get("privateIpAddress") is not None:
            formatted["private_ip"] = instance.details["privateIpAddress"]

        formatted_instances.append(formatted)

        state_count[instance.state] = state_count.get(instance.state, 0) + 1
        if isinstance(instance_type, str):
            type_count[instance_type] = type_count.get(instance_type, 0) + 1

    return {
        "total_instances": len(instances),
        "instances": formatted_instances,
        "summary_by_state": state_count,
        "summary_by_type": type_count,
    }


def format_instance(instance: InfraResource) -> dict[str, Any]:
    """Format a single instance with its full details."""
    formatted: dict[str, Any] = {
        "id": instance.id,
        "type": instance.type,
        "state": instance.state,
        "region": instance.region,
        "tags": instance.tags,
        "details": instance.details,
        "last_seen": instance.observed_at.isoformat(),
        "name": instance.tags.get("Name", instance.id),
    }

    if instance.tags.get("Environment"):
        formatted["environment"] = instance.tags["Environment"]

    return formatted


class EC2Adapter(BaseAdapter):
    """
    EC2 Domain Adapter.

    Resource reads raise protocol errors on failure. Tool handlers never
    raise: collaborator errors are returned as failure results carrying the
    provider's message.
    """

    domain = "ec2"

    def register(self, resources: ResourceRegistry, tools: ToolRegistry) -> None:
        resources.register_literal(
            Resource(
                uri=INSTANCES_URI,
                name="EC2 Instances",
                description="List all EC2 instances in the region",
                mime_type="application/json",
            ),
            self.read_instances,
        )
        resources.register_template(
            ResourceTemplate(
                pattern=INSTANCE_TEMPLATE,
                name="EC2 Instance Details",
                description="Detailed information about a specific EC2 instance",
                mime_type="application/json",
            ),
            self.read_instance,
        )

        tools.register(CREATE_INSTANCE_TOOL, self.create_instance, CreateInstanceArguments)
        tools.register(START_INSTANCE_TOOL, self.start_instance, InstanceIdArguments)
        tools.register(STOP_INSTANCE_TOOL, self.stop_instance, InstanceIdArguments)
        tools.register(TERMINATE_INSTANCE_TOOL, self.terminate_instance, InstanceIdArguments)

    # Resources

    def read_instances(self, uri: str, placeholders: dict[str, str]) -> list[ResourceContents]:
        try:
            instances = self.client.list_instances()
        except InfraError as e:
            logger.error("Failed to read EC2 instances resource", error=str(e))
            raise ProtocolError.internal(f"failed to list EC2 instances: {e}") from e

        return self._json_contents(INSTANCES_URI, format_instances(instances))

    def read_instance(self, uri: str, placeholders: dict[str, str]) -> list[ResourceContents]:
        instance_id = placeholders["instanceId"]
        try:
            instance = self.client.get_instance(instance_id)
        except InstanceNotFound as e:
            logger.info("EC2 instance not found", instance_id=instance_id)
            raise ProtocolError.resource_not_found(uri, f"failed to get EC2 instance: {e}") from e
        except InfraError as e:
            logger.error("Failed to read resource", uri=uri, error=str(e))
            raise ProtocolError.internal(f"failed to get EC2 instance: {e}") from e

        return self._json_contents(uri, format_instance(instance))

    # Tools

    def create_instance(self, arguments: CreateInstanceArguments) -> InvocationResult:
        try:
            resource = self.client.create_instance(arguments.to_params())
        except InfraError as e:
            return self._failure(f"failed to create EC2 instance: {e}")

        return self._success(
            "EC2 instance created successfully",
            {
                "instanceId": resource.id,
                "state": resource.state,
                "instanceType": resource.details.get("instanceType"),
            },
        )

    def start_instance(self, arguments: InstanceIdArguments) -> InvocationResult:
        return self._change_state(arguments, "start", "start", self.client.start_instance)

    def stop_instance(self, arguments: InstanceIdArguments) -> InvocationResult:
        return self._change_state(arguments, "stop", "stop", self.client.stop_instance)

    def terminate_instance(self, arguments: InstanceIdArguments) -> InvocationResult:
        return self._change_state(
            arguments, "terminate", "termination", self.client.terminate_instance
        )

    def _change_state(
        self,
        arguments: InstanceIdArguments,
        action: str,
        noun: str,
        operation: Callable[[str], None]
    ) -> InvocationResult:
        try:
            operation(arguments.instance_id)
        except InfraError as e:
            return self._failure(f"failed to {action} EC2 instance: {e}")

        return self._success(
            f"EC2 instance {noun} initiated successfully",
            {"instanceId": arguments.instance_id, "action": action},
        )


def register_ec2_domain(
    resources: ResourceRegistry,
    tools: ToolRegistry,
    client: InfraClient
) -> EC2Adapter:
    """Create the EC2 adapter and register its resources and tools."""
    adapter = EC2Adapter(client)
    adapter.register(resources, tools)
    logger.info("Domain registered", domain=adapter.domain)
    return adapter


__all__ = [
    "EC2Adapter",
    "CreateInstanceArguments",
    "InstanceIdArguments",
    "INSTANCES_URI",
    "INSTANCE_TEMPLATE",
    "format_instance",
    "format_instances",
    "register_ec2_domain",
]
