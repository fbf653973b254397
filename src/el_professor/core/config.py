"""
Core configuration object for ElProfessor.

Combines the loaded settings with runtime environment detection and the
platform-specific MCP server catalog. Instances are created explicitly and
passed to the components that need them.
"""

import logging
from typing import Callable, List, Optional

from ..config.runtime import (
    MCPServerConfig,
    RuntimeEnvironment,
    detect_runtime_environment,
    get_mcp_servers,
)
from ..config.settings import ElProfessorSettings
from .client.errors import ConfigurationError
from .client.retry import RetryConfig

logger = logging.getLogger(__name__)


class ElProfessorConfig:
    """Effective configuration: API key, model, runtime and MCP servers."""

    def __init__(
        self,
        settings: Optional[ElProfessorSettings] = None,
        detector: Callable[[], RuntimeEnvironment] = detect_runtime_environment,
    ):
        """Initialize the configuration.

        Args:
            settings: Loaded settings, read from the environment when omitted
            detector: Runtime environment detector

        Raises:
            ConfigurationError: If no Gemini API key is configured
        """
        self.settings = settings or ElProfessorSettings()
        if not self.settings.is_configured:
            raise ConfigurationError("GEMINI_API_KEY environment variable is required")

        self._runtime_environment = self.settings.runtime_environment or detector()
        self._mcp_servers = get_mcp_servers(self._runtime_environment)
        logger.info(f"Detected runtime environment: {self._runtime_environment.value}")

    @property
    def api_key(self) -> str:
        return self.settings.gemini_api_key

    @property
    def model(self) -> str:
        return self.settings.gemini_model

    @property
    def runtime_environment(self) -> RuntimeEnvironment:
        return self._runtime_environment

    @property
    def mcp_servers(self) -> List[MCPServerConfig]:
        """All MCP servers for the current runtime, including disabled ones."""
        return list(self._mcp_servers)

    @property
    def retry_config(self) -> RetryConfig:
        return self.settings.retry_config()

    def get_enabled_mcp_servers(self) -> List[MCPServerConfig]:
        """MCP servers that are not disabled."""
        return [server for server in self._mcp_servers if not server.disabled]

    def force_runtime_environment(self, environment: RuntimeEnvironment) -> None:
        """Override runtime detection and rebuild the MCP server catalog."""
        logger.info(
            f"Overriding runtime environment: {self._runtime_environment.value} → {environment.value}"
        )
        self._runtime_environment = environment
        self._mcp_servers = get_mcp_servers(environment)
