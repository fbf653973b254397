"""
Configuration package for ElProfessor.

This package contains settings, .env discovery, runtime environment
detection and the MCP server catalog.
"""

__all__ = ["settings", "env_loader", "runtime"]
