"""Tests for the EC2 domain adapter."""

import json
from unittest.mock import Mock

import pytest

from conftest import make_instance
from infra.client import EC2Client, InfraError, InstanceNotFound
from shared.errors import INTERNAL_ERROR, RESOURCE_NOT_FOUND, ProtocolError
from shared.models import InvocationStatus


class TestFormatting:
    """Tests for the AI-facing payload formatting."""

    def test_format_instances_summary(self):
        """Test counts by state and type."""
        from domains.ec2 import format_instances

        instances = [
            make_instance("i-1", "running", "t3.micro", tags={"Name": "web"},
                          publicIpAddress="54.1.2.3", privateIpAddress="10.0.0.1"),
            make_instance("i-2", "stopped", "t3.micro"),
            make_instance("i-3", "running", "m5.large"),
        ]

        summary = format_instances(instances)

        assert summary["total_instances"] == 3
        assert summary["summary_by_state"] == {"running": 2, "stopped": 1}
        assert summary["summary_by_type"] == {"t3.micro": 2, "m5.large": 1}
        assert summary["instances"][0] == {
            "id": "i-1",
            "state": "running",
            "type": "t3.micro",
            "region": "us-west-2",
            "name": "web",
            "public_ip": "54.1.2.3",
            "private_ip": "10.0.0.1",
        }
        assert "name" not in summary["instances"][1]
        assert "public_ip" not in summary["instances"][1]

    def test_format_instance_name_falls_back_to_id(self):
        """Test that an untagged instance is named by its id."""
        from domains.ec2 import format_instance

        formatted = format_instance(make_instance("i-abc"))

        assert formatted["name"] == "i-abc"
        assert formatted["type"] == "ec2-instance"
        assert formatted["last_seen"] == "2026-01-15T10:30:00+00:00"
        assert "environment" not in formatted

    def test_format_instance_environment(self):
        """Test environment classification from tags."""
        from domains.ec2 import format_instance

        formatted = format_instance(
            make_instance("i-abc", tags={"Name": "api", "Environment": "production"})
        )

        assert formatted["name"] == "api"
        assert formatted["environment"] == "production"
        assert formatted["tags"] == {"Name": "api", "Environment": "production"}


class TestEC2Resources:
    """Tests for EC2 resource handlers."""

    def setup_method(self):
        """Set up test fixtures."""
        from domains.ec2 import EC2Adapter

        self.client = Mock(spec=EC2Client)
        self.adapter = EC2Adapter(self.client)

    def test_read_instances(self):
        """Test the list resource payload."""
        self.client.list_instances.return_value = [make_instance("i-1")]

        contents = self.adapter.read_instances("aws://ec2/instances", {})

        assert len(contents) == 1
        assert contents[0].uri == "aws://ec2/instances"
        assert contents[0].mime_type == "application/json"
        assert json.loads(contents[0].text)["total_instances"] == 1

    def test_read_instance_not_found(self):
        """Test that a missing instance raises a resource-not-found error."""
        self.client.get_instance.side_effect = InstanceNotFound("i-404")

        with pytest.raises(ProtocolError) as exc_info:
            self.adapter.read_instance("aws://ec2/instances/i-404", {"instanceId": "i-404"})

        assert exc_info.value.code == RESOURCE_NOT_FOUND
        assert exc_info.value.message == "failed to get EC2 instance: instance i-404 not found"

    def test_read_instance_provider_failure(self):
        """Test that other provider errors are internal errors."""
        self.client.get_instance.side_effect = InfraError("access denied")

        with pytest.raises(ProtocolError) as exc_info:
            self.adapter.read_instance("aws://ec2/instances/i-1", {"instanceId": "i-1"})

        assert exc_info.value.code == INTERNAL_ERROR


class TestEC2Tools:
    """Tests for EC2 tool handlers."""

    def setup_method(self):
        """Set up test fixtures."""
        from domains.ec2 import EC2Adapter

        self.client = Mock(spec=EC2Client)
        self.adapter = EC2Adapter(self.client)

    def test_create_instance(self):
        """Test creating an instance with optional parameters."""
        from domains.ec2 import CreateInstanceArguments

        self.client.create_instance.return_value = make_instance(
            "i-new", "pending", "t2.micro"
        )
        arguments = CreateInstanceArguments(
            imageId="ami-12345678", instanceType="t2.micro", name="builder"
        )

        result = self.adapter.create_instance(arguments)

        params = self.client.create_instance.call_args.args[0]
        assert params.image_id == "ami-12345678"
        assert params.instance_type == "t2.micro"
        assert params.name == "builder"
        assert params.key_name == ""
        assert result.status == InvocationStatus.SUCCESS
        assert result.message == "EC2 instance created successfully"
        assert result.data == {
            "instanceId": "i-new",
            "state": "pending",
            "instanceType": "t2.micro",
        }

    def test_create_instance_provider_failure(self):
        """Test that the provider error text is embedded verbatim."""
        from domains.ec2 import CreateInstanceArguments

        self.client.create_instance.side_effect = InfraError("InvalidAMIID.NotFound")

        result = self.adapter.create_instance(
            CreateInstanceArguments(imageId="ami-0", instanceType="t2.micro")
        )

        assert result.status == InvocationStatus.FAILURE
        assert result.message == "failed to create EC2 instance: InvalidAMIID.NotFound"

    @pytest.mark.parametrize("method,action,noun", [
        ("start_instance", "start", "start"),
        ("stop_instance", "stop", "stop"),
        ("terminate_instance", "terminate", "termination"),
    ])
    def test_state_change(self, method, action, noun):
        """Test start, stop and terminate success results."""
        from domains.ec2 import InstanceIdArguments

        result = getattr(self.adapter, method)(InstanceIdArguments(instanceId="i-1"))

        getattr(self.client, method).assert_called_once_with("i-1")
        assert result.message == f"EC2 instance {noun} initiated successfully"
        assert result.data == {"instanceId": "i-1", "action": action}

    @pytest.mark.parametrize("method,action", [
        ("start_instance", "start"),
        ("stop_instance", "stop"),
        ("terminate_instance", "terminate"),
    ])
    def test_state_change_failure(self, method, action):
        """Test that state-change failures carry the action and provider error."""
        from domains.ec2 import InstanceIdArguments

        getattr(self.client, method).side_effect = InfraError("IncorrectInstanceState")

        result = getattr(self.adapter, method)(InstanceIdArguments(instanceId="i-1"))

        assert result.status == InvocationStatus.FAILURE
        assert result.message == f"failed to {action} EC2 instance: IncorrectInstanceState"


REQUIRED_ARGUMENTS = {
    "create-ec2-instance": {"imageId": "ami-12345678", "instanceType": "t3.micro"},
    "start-ec2-instance": {"instanceId": "i-12345678"},
    "stop-ec2-instance": {"instanceId": "i-12345678"},
    "terminate-ec2-instance": {"instanceId": "i-12345678"},
}


def _missing_argument_cases():
    for tool, arguments in REQUIRED_ARGUMENTS.items():
        for param in arguments:
            yield tool, param


class TestArgumentValidation:
    """Validation across every registered EC2 tool."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool,param", list(_missing_argument_cases()))
    async def test_missing_required_argument(self, server, infra_client, tool, param):
        """Test that each required argument is enforced before the collaborator."""
        arguments = {k: v for k, v in REQUIRED_ARGUMENTS[tool].items() if k != param}

        result = await server.tools.dispatch(tool, arguments)

        assert result.status == InvocationStatus.FAILURE
        assert result.message == f"{param} is required"
        assert infra_client.method_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool", list(REQUIRED_ARGUMENTS))
    async def test_valid_arguments_pass_validation(self, server, infra_client, tool):
        """Test that valid arguments reach the collaborator."""
        infra_client.create_instance.return_value = make_instance("i-new", "pending")

        result = await server.tools.dispatch(tool, dict(REQUIRED_ARGUMENTS[tool]))

        assert result.status == InvocationStatus.SUCCESS
        assert len(infra_client.method_calls) == 1

    @pytest.mark.asyncio
    async def test_optional_non_string_arguments_are_ignored(self, server, infra_client):
        """Known permissiveness: non-string optional values are treated as absent."""
        infra_client.create_instance.return_value = make_instance("i-new", "pending")

        result = await server.tools.dispatch(
            "create-ec2-instance",
            {"imageId": "ami-1", "instanceType": "t3.micro", "keyName": 5, "subnetId": None},
        )

        assert result.status == InvocationStatus.SUCCESS
        params = infra_client.create_instance.call_args.args[0]
        assert params.key_name == ""
        assert params.subnet_id == ""
