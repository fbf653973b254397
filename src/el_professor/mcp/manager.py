"""
MCP server connection management.

Each configured server runs as a stdio subprocess driven by the ``mcp`` SDK.
Servers are started concurrently; every connection attempt is bounded by the
server's timeout and retried with backoff. A server that cannot be reached is
logged and skipped, the others keep working.
"""

import asyncio
import contextlib
import logging
from typing import Callable, Dict, List, Optional

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import Implementation

from .. import VERSION
from ..config.runtime import MCPServerConfig
from ..core.client.errors import MCPConnectionError, handle_error
from ..core.client.retry import RetryExecutor, RetryOptions

logger = logging.getLogger(__name__)

CLIENT_NAME_PREFIX = "el-professor-cli"


class MCPServerConnection:
    """
    One stdio MCP server and its client session.

    The SDK's context managers must be entered and exited by the same task,
    so a dedicated task owns them for the whole life of the connection and
    waits until :meth:`close` is called.
    """

    def __init__(self, config: MCPServerConfig, client_name: Optional[str] = None):
        self.config = config
        self.client_name = client_name or f"{CLIENT_NAME_PREFIX}-{config.name}"
        self.session: Optional[ClientSession] = None
        self._task: Optional[asyncio.Task] = None
        self._opened: Optional[asyncio.Future] = None
        self._closing = asyncio.Event()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def is_open(self) -> bool:
        return self.session is not None

    async def open(self) -> ClientSession:
        """Start the server process and initialize the session.

        Raises:
            MCPConnectionError: If the process or the handshake fails
        """
        if self._task is not None:
            raise MCPConnectionError("connection already started", self.name)

        self._opened = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(self._run(), name=f"mcp:{self.name}")
        try:
            return await self._opened
        except BaseException:
            await self._abort()
            raise

    async def close(self) -> None:
        """Shut the session and the subprocess down."""
        self._closing.set()
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        params = StdioServerParameters(
            command=self.config.command,
            args=self.config.args,
            env=self.config.env or None,
        )
        try:
            async with stdio_client(params) as (read_stream, write_stream):
                async with ClientSession(
                    read_stream,
                    write_stream,
                    client_info=Implementation(name=self.client_name, version=VERSION),
                ) as session:
                    await session.initialize()
                    self.session = session
                    self._opened.set_result(session)
                    await self._closing.wait()
        except Exception as e:
            if not self._opened.done():
                self._opened.set_exception(MCPConnectionError(str(e) or type(e).__name__, self.name))
            else:
                logger.error(f"MCP server '{self.name}' stopped with error: {e}")
        finally:
            self.session = None

    async def _abort(self) -> None:
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task


ConnectionFactory = Callable[[MCPServerConfig], MCPServerConnection]


class MCPManager:
    """Starts, tracks and stops the MCP servers used as model tools."""

    def __init__(
        self,
        executor: Optional[RetryExecutor] = None,
        retry_config: RetryOptions = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ):
        self.executor = executor or RetryExecutor()
        self.retry_config = retry_config
        self._connection_factory = connection_factory or MCPServerConnection
        self._connections: Dict[str, MCPServerConnection] = {}

    async def initialize_servers(self, server_configs: List[MCPServerConfig]) -> None:
        """Start all given servers concurrently."""
        await asyncio.gather(*(self.initialize_server(config) for config in server_configs))

    async def initialize_server(self, config: MCPServerConfig) -> bool:
        """
        Start one server, retrying failed connection attempts.

        Args:
            config: Server configuration

        Returns:
            True if the server is connected
        """
        context = f"MCP server '{config.name}'"
        try:
            connection = await self.executor.execute_with_retry(
                lambda: self._connect(config), self.retry_config, context
            )
        except Exception as e:
            handle_error(e, context, logger)
            logger.warning(f"✗ Failed to initialize MCP server {config.name}")
            return False

        self._connections[config.name] = connection
        logger.info(f"✓ Initialized MCP server: {config.name}")
        return True

    async def _connect(self, config: MCPServerConfig) -> MCPServerConnection:
        connection = self._connection_factory(config)
        await self.executor.execute_with_timeout(
            connection.open, config.timeout_ms, f"connect {config.name}"
        )
        return connection

    def get_client(self, server_name: str) -> Optional[ClientSession]:
        """Session for a connected server, or None."""
        connection = self._connections.get(server_name)
        return connection.session if connection else None

    def get_all_clients(self) -> List[ClientSession]:
        """Sessions of all connected servers."""
        return [
            connection.session
            for connection in self._connections.values()
            if connection.session is not None
        ]

    def is_server_connected(self, server_name: str) -> bool:
        return server_name in self._connections

    def get_connected_servers(self) -> List[str]:
        return list(self._connections.keys())

    async def close_all(self) -> None:
        """Close every connection. Errors while closing are logged."""
        results = await asyncio.gather(
            *(connection.close() for connection in self._connections.values()),
            return_exceptions=True
        )
        for name, result in zip(list(self._connections), results):
            if isinstance(result, Exception):
                logger.error(f"Error closing MCP client {name}: {result}")
        self._connections.clear()
