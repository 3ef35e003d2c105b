"""
Main entry point for the tutor-router CLI.

This module is executed when running `python -m tutor_router` or via the
`tutor-router` executable.
"""

from .cli import app


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
