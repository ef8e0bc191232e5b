"""AWS MCP Server - stdio entry point.

Exposes EC2 resources and tools to an MCP client over the process's
standard input and output. Logs go to stderr.
"""

import asyncio
import signal
import sys

from botocore.exceptions import BotoCoreError

from infra.client import EC2Client, InfraError
from shared.config import Settings, get_settings
from shared.errors import RegistrationError, ShutdownRequested, TransportFault
from shared.logging import get_logger, setup_logging
from mcp_server.server import MCPServer
from mcp_server.transport import open_stdin_reader

logger = get_logger(__name__)


async def run(settings: Settings) -> int:
    """
    Run the server until stdin closes or a shutdown signal arrives.

    Returns:
        Process exit status
    """
    try:
        client = EC2Client(settings.aws.region, settings.aws.profile)
    except BotoCoreError as e:
        logger.error("Failed to create AWS client", error=str(e))
        return 1

    if settings.aws.health_check:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, client.health_check)
        except InfraError as e:
            logger.warning("AWS health check failed, continuing", error=str(e))

    try:
        server = MCPServer.create(client, settings.mcp)
    except RegistrationError as e:
        logger.error("Failed to register resources and tools", error=str(e))
        return 1

    reader = await open_stdin_reader()
    stop_event = asyncio.Event()

    def request_shutdown() -> None:
        stop_event.set()
        # Wake a pending read; the loop then observes the stop event
        reader.feed_eof()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers not supported", signal=sig.name)

    transport = server.transport(reader, sys.stdout, stop_event)
    try:
        await transport.serve()
    except ShutdownRequested:
        logger.info("MCP server stopped")
    except TransportFault as e:
        logger.error("MCP server terminated", error=str(e))
        return 1

    return 0


def main() -> None:
    """Run the AWS MCP Server."""
    settings = get_settings()
    setup_logging(settings.log_level, json_output=settings.log_format == "json")

    logger.info(
        "Starting AWS MCP Server",
        environment=settings.environment,
        region=settings.aws.region,
        version=settings.mcp.version
    )

    sys.exit(asyncio.run(run(settings)))


if __name__ == "__main__":
    main()
