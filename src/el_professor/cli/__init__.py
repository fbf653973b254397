"""
CLI package for ElProfessor.

This package contains the Typer application and the interactive session.
"""

__all__ = ["app", "session"]
