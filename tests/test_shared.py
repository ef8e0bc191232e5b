"""Tests for shared models, schema helpers and configuration."""

import json
from datetime import datetime, timezone

import pytest

from shared.models import (
    InvocationResult,
    ParameterSpec,
    Response,
    ToolDefinition,
)


class TestResponse:
    """Tests for the response envelope."""

    def test_result_round_trip(self):
        response = Response.success(1, {"contents": [{"uri": "aws://ec2/instances", "text": "{}"}]})

        assert Response.decode(response.encode()) == response

    def test_error_round_trip(self):
        response = Response.failure("req-1", "method not found", code=-32601, data={"method": "x"})

        assert Response.decode(response.encode()) == response

    def test_encode_is_single_line(self):
        response = Response.success(2, {"content": [{"type": "text", "text": "a\nb"}]})

        line = response.encode()

        assert "\n" not in line
        assert json.loads(line) == {
            "jsonrpc": "2.0",
            "id": 2,
            "result": {"content": [{"type": "text", "text": "a\nb"}]},
        }

    def test_error_envelope_omits_result(self):
        envelope = json.loads(Response.failure(3, "boom").encode())

        assert envelope == {"jsonrpc": "2.0", "id": 3, "error": {"message": "boom"}}

    def test_exactly_one_outcome(self):
        with pytest.raises(ValueError):
            Response(id=1)


class TestInvocationResult:
    """Tests for the normalized tool outcome."""

    def test_success_payload_merges_data(self):
        result = InvocationResult.ok(
            "EC2 instance start initiated successfully",
            {"instanceId": "i-1", "action": "start"},
        )
        result.timestamp = datetime(2026, 3, 1, 12, 0, 5, tzinfo=timezone.utc)

        assert result.to_payload() == {
            "success": True,
            "message": "EC2 instance start initiated successfully",
            "timestamp": "2026-03-01T12:00:05Z",
            "instanceId": "i-1",
            "action": "start",
        }

    def test_failure_payload(self):
        result = InvocationResult.fail("instanceId is required")

        payload = json.loads(result.to_text())

        assert payload["success"] is False
        assert payload["error"] == "instanceId is required"
        assert "message" not in payload
        assert payload["timestamp"].endswith("Z")

    def test_text_is_indented(self):
        assert '"success": false' in InvocationResult.fail("x").to_text()


class TestSchema:
    """Tests for JSON Schema helpers."""

    def test_create_tool_schema(self):
        from shared.schema import create_tool_schema

        schema = create_tool_schema([
            {"name": "count", "type": "int", "description": "How many"},
            {"name": "label", "required": True},
        ])

        assert schema["properties"]["count"]["type"] == "integer"
        assert schema["properties"]["label"]["type"] == "string"
        assert schema["required"] == ["label"]

    def test_check_tool_schema(self):
        from shared.schema import check_tool_schema

        tool = ToolDefinition(
            name="start-ec2-instance",
            parameters=(ParameterSpec(name="instanceId", required=True),),
        )

        assert check_tool_schema(tool.input_schema) == []
        assert check_tool_schema({"type": "object", "properties": {}, "required": ["x"]}) == [
            "required parameter 'x' is not declared"
        ]
        assert check_tool_schema({"type": 12}) != []


class TestSettings:
    """Tests for configuration loading."""

    def test_defaults(self, tmp_path):
        from shared.config import Settings

        settings = Settings.from_yaml(tmp_path / "missing.yaml")

        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.aws.region == "us-west-2"
        assert settings.mcp.server_name == "aws-mcp-server"

    def test_from_yaml(self, tmp_path):
        from shared.config import Settings

        path = tmp_path / "config.yaml"
        path.write_text(
            "log_level: DEBUG\n"
            "aws:\n"
            "  region: eu-central-1\n"
            "  health_check: false\n"
            "mcp:\n"
            "  version: 2.0.0\n"
        )

        settings = Settings.from_yaml(path)

        assert settings.log_level == "DEBUG"
        assert settings.aws.region == "eu-central-1"
        assert settings.aws.health_check is False
        assert settings.mcp.version == "2.0.0"

    def test_environment_override(self, monkeypatch, tmp_path):
        from shared.config import AWSSettings, Settings

        monkeypatch.setenv("AIOPS_LOG_FORMAT", "json")
        monkeypatch.setenv("AIOPS_AWS_REGION", "ap-northeast-2")

        assert Settings.from_yaml(tmp_path / "missing.yaml").log_format == "json"
        assert AWSSettings().region == "ap-northeast-2"

    def test_environment_overrides_yaml(self, monkeypatch, tmp_path):
        from shared.config import Settings

        path = tmp_path / "config.yaml"
        path.write_text(
            "log_format: text\n"
            "log_level: WARNING\n"
            "aws:\n"
            "  region: us-west-2\n"
            "  health_check: false\n"
            "mcp:\n"
            "  version: 2.0.0\n"
        )
        monkeypatch.setenv("AIOPS_LOG_FORMAT", "json")
        monkeypatch.setenv("AIOPS_AWS_REGION", "eu-central-1")
        monkeypatch.setenv("AIOPS_MCP_VERSION", "3.1.0")

        settings = Settings.from_yaml(path)

        assert settings.log_format == "json"
        assert settings.log_level == "WARNING"
        assert settings.aws.region == "eu-central-1"
        assert settings.aws.health_check is False
        assert settings.mcp.version == "3.1.0"

    def test_get_settings_reads_config_path(self, monkeypatch, tmp_path):
        from shared.config import get_settings

        path = tmp_path / "settings.yaml"
        path.write_text("environment: production\n")
        monkeypatch.setenv("AIOPS_CONFIG_PATH", str(path))
        get_settings.cache_clear()

        try:
            assert get_settings().environment == "production"
        finally:
            get_settings.cache_clear()
