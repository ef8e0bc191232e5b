"""Shared fixtures for the AWS MCP Server tests."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from infra.client import EC2Client
from shared.models import InfraResource


def make_instance(
    instance_id: str = "i-0123456789abcdef0",
    state: str = "running",
    instance_type: str = "t3.micro",
    tags: dict | None = None,
    **details
) -> InfraResource:
    """Build a normalized EC2 instance record."""
    return InfraResource(
        id=instance_id,
        type="ec2-instance",
        region="us-west-2",
        state=state,
        tags=tags or {},
        details={"instanceType": instance_type, **details},
        observed_at=datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc),
    )


@pytest.fixture
def infra_client():
    """Collaborator double with no instances."""
    client = Mock(spec=EC2Client)
    client.list_instances.return_value = []
    return client


@pytest.fixture
def server(infra_client):
    from mcp_server.server import MCPServer

    return MCPServer.create(infra_client)


@pytest.fixture
def dispatcher(server):
    return server.dispatcher


def stream_of(*lines: str) -> asyncio.StreamReader:
    """An asyncio stream reader preloaded with lines and closed."""
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode("utf-8") + b"\n")
    reader.feed_eof()
    return reader
