"""
Logging setup for ElProfessor.

Application modules log through ``logging.getLogger(__name__)``; this module
only installs the handler once, at CLI startup.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

# SDK loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "mcp", "google_genai", "asyncio")


def setup_logging(level: Union[str, int] = "INFO", console: Optional[Console] = None) -> None:
    """Install a Rich handler on the root logger at the given level."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console or Console(stderr=True),
                rich_tracebacks=True,
                show_path=False,
            )
        ],
        force=True,
    )

    sdk_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
