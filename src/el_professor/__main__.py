"""
Entry point for running ElProfessor as a module.

This allows users to run the CLI using:
    python -m el_professor [command] [options]
"""

from el_professor.cli.app import main

if __name__ == "__main__":
    main()
