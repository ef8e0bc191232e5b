"""Transport Loop for the MCP Server.

Reads newline-delimited messages from an input stream, hands each one to
the dispatcher and writes the response as a single line. One message is
handled completely before the next line is read, so responses leave in
request order.
"""

import asyncio
import sys
from typing import Optional, Protocol, TextIO

from shared.errors import ShutdownRequested, TransportFault
from shared.logging import get_logger
from shared.models import Response
from mcp_server.dispatcher import RequestDispatcher

logger = get_logger(__name__)

# Upper bound for a single message line
DEFAULT_LINE_LIMIT = 16 * 1024 * 1024


class LineReader(Protocol):
    async def readline(self) -> bytes: ...


class StdioTransport:
    """
    Single-threaded read/dispatch/write loop over one byte stream.

    Cancellation is cooperative: the stop event is checked between
    messages, never while a handler is running.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        reader: LineReader,
        writer: TextIO,
        stop_event: Optional[asyncio.Event] = None
    ) -> None:
        self.dispatcher = dispatcher
        self.reader = reader
        self.writer = writer
        self.stop_event = stop_event or asyncio.Event()
        self.messages_handled = 0

    async def serve(self) -> None:
        """
        Run until the input stream closes.

        Raises:
            ShutdownRequested: If the stop event is observed between messages
            TransportFault: If reading or writing the stream fails
        """
        logger.info("Starting MCP server message loop on stdio")

        while True:
            self._check_cancelled()

            try:
                raw = await self.reader.readline()
            except (OSError, ValueError) as e:
                logger.error("Error reading from input stream", error=str(e))
                raise TransportFault(f"failed to read message: {e}") from e

            # A line that arrives after cancellation is left unprocessed
            self._check_cancelled()

            if not raw:
                logger.info("Input stream closed", messages=self.messages_handled)
                return

            line = raw.strip()
            if not line:
                continue

            response = await self.dispatcher.handle_line(line)
            self.messages_handled += 1

            if response is not None:
                self._write(response)

    def stop(self) -> None:
        """Request the loop to stop before the next message."""
        self.stop_event.set()

    def _check_cancelled(self) -> None:
        if self.stop_event.is_set():
            logger.info("Shutdown signal received, stopping server", messages=self.messages_handled)
            raise ShutdownRequested("server loop cancelled")

    def _write(self, response: Response) -> None:
        try:
            self.writer.write(response.encode() + "\n")
            self.writer.flush()
        except (OSError, ValueError) as e:
            logger.error("Error writing response", error=str(e))
            raise TransportFault(f"failed to write response: {e}") from e


async def open_stdin_reader(limit: int = DEFAULT_LINE_LIMIT) -> asyncio.StreamReader:
    """Wrap the process's stdin in an asyncio stream reader."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader
