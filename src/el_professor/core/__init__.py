"""
Core package for ElProfessor.

This package contains the agent, the API client layer and the configuration
object that ties settings and runtime detection together.
"""

__all__ = ["agent", "client", "config"]
