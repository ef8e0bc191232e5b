"""Application Domains.

Each domain contains:
- Resource and tool definitions
- Handlers backed by an injected infrastructure client

Domains are isolated: no cross-domain calls or shared state.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infra.client import InfraClient
    from mcp_server.registry import ToolRegistry
    from mcp_server.resources import ResourceRegistry


def load_all_domains(
    resources: "ResourceRegistry",
    tools: "ToolRegistry",
    client: "InfraClient"
) -> None:
    """
    Load and register all application domains.

    This is called at server startup; any registration error aborts it.
    """
    from domains.ec2 import register_ec2_domain

    register_ec2_domain(resources, tools, client)


__all__ = ["load_all_domains"]
