"""
MCP (Model Context Protocol) integration package for ElProfessor.

This package manages the stdio MCP servers whose tools are exposed to the
model.
"""

from .manager import MCPManager, MCPServerConnection

__all__ = ["MCPManager", "MCPServerConnection"]
