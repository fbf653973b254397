"""
ElProfessor - AWS expert assistant for the command line.

This package answers AWS questions and generates infrastructure code with
Google Gemini, using AWS Labs MCP servers as model tools.
"""

__version__ = "0.1.0"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "el-professor"
USER_AGENT: Final[str] = f"{PACKAGE_NAME}/{VERSION}"

__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
    "USER_AGENT",
]
