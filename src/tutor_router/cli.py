"""
Command-line interface for tutor-router.

Provides commands for asking a single question, an interactive chat session,
browsing the constant table and inspecting configuration.
"""

import sys
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError

from . import __version__
from .core.config import RouterConfig
from .core.constants import default_constants
from .core.router import TutorRouter
from .models.enums import LogLevel, Role
from .models.schemas import Turn
from .utils.config_export import export_config
from .utils.logging import setup_logging
from .utils.rich_logging import console

app = typer.Typer(
    name="tutor-router",
    help="Route study questions to Math, Physics, Chemistry or History tutors",
    add_completion=False,
)

EXIT_WORDS = {"exit", "quit", ":q"}


def _load_config(
    model: Optional[str] = None,
    timeout: Optional[float] = None,
    debug: bool = False,
) -> RouterConfig:
    overrides: dict[str, Any] = {}
    if model:
        overrides["model"] = model
    if timeout is not None:
        overrides["generation_timeout"] = timeout
    if debug:
        overrides["log_level"] = LogLevel.DEBUG

    try:
        config = RouterConfig(**overrides)
    except ValidationError as e:
        console.print_error(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(config)
    return config


@app.command()
def version():
    """Show version information."""
    console.console.print(f"[bold cyan]tutor-router[/bold cyan] version {__version__}")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to route"),
    model: Optional[str] = typer.Option(None, "--model", help="Override the LLM model"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds allowed per model call"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Route a single question and print the answer."""
    config = _load_config(model=model, timeout=timeout, debug=debug)
    router = TutorRouter.from_config(config)

    result = router.route_sync([Turn(role=Role.USER, content=question)])
    console.print_route_result(result)


@app.command()
def chat(
    model: Optional[str] = typer.Option(None, "--model", help="Override the LLM model"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Interactive session.

    The transcript lives in memory for the length of the session; every
    question is routed with the conversation so far.
    """
    config = _load_config(model=model, debug=debug)
    router = TutorRouter.from_config(config)
    transcript: list[Turn] = []

    console.print_banner()
    console.print_info("Type 'exit' to leave.")

    while True:
        try:
            text = typer.prompt("You")
        except (EOFError, typer.Abort):
            break
        if text.strip().lower() in EXIT_WORDS:
            break
        if not text.strip():
            continue

        transcript.append(Turn(role=Role.USER, content=text.strip()))
        result = router.route_sync(transcript)
        transcript.append(Turn(role=Role.ASSISTANT, content=result.response))
        console.print_route_result(result)

    console.print_success(f"Session ended after {len(transcript) // 2} question(s).")


@app.command()
def constants(
    name: Optional[str] = typer.Argument(None, help="Constant to look up (fuzzy match)"),
    threshold: Optional[float] = typer.Option(
        None, "--threshold", help="Minimum match score (default: constant_match_threshold)"
    ),
):
    """List the physical constant table, or look one constant up."""
    table = default_constants()

    if name is None:
        console.print_constants(table)
        return

    if threshold is None:
        threshold = _load_config().constant_match_threshold

    answer = table.lookup(name, threshold)
    if answer is None:
        console.print_warning(f"No constant matches '{name}'.")
        raise typer.Exit(code=1)
    console.console.print(answer)


@app.command("config-show")
def config_show():
    """Print the effective configuration."""
    config = _load_config()
    console.print_config_summary(config)


@app.command("config-export")
def config_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination YAML file"),
    include_secrets: bool = typer.Option(
        False, "--include-secrets", help="Also write API keys"
    ),
):
    """Write the effective configuration to YAML."""
    config = _load_config()
    path = export_config(config, output_path=output, include_secrets=include_secrets)
    console.print_success(f"Configuration written to {path}")
