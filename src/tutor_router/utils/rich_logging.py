"""Console rendering and tracebacks with Rich"""

from typing import TYPE_CHECKING, Iterable, Optional

import structlog
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme
from rich.traceback import install as install_rich_traceback

if TYPE_CHECKING:
    from ..core.config import RouterConfig
    from ..models.schemas import ConstantEntry, RouteResult

TUTOR_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "agent": "magenta",
        "reason": "dim",
    }
)


class TutorConsole:
    """Singleton console with the router's theme"""

    _instance: Optional["TutorConsole"] = None

    def __new__(cls) -> "TutorConsole":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not hasattr(self, "initialized"):
            self.console = Console(theme=TUTOR_THEME)
            self.initialized = True

    def print_banner(self):
        self.console.print(
            Panel.fit(
                "[bold cyan]Tutor Router[/bold cyan] - subject-aware question routing\n"
                "[dim]Math • Physics • Chemistry • History[/dim]",
                border_style="cyan",
            )
        )

    def print_route_result(self, result: "RouteResult"):
        """Print a routed answer with the selected agent as the panel title"""
        border = "red" if result.agent.value == "Unknown" else "magenta"
        self.console.print(
            Panel(
                Markdown(result.response),
                title=f"[agent]{result.agent.value}[/agent]",
                subtitle=f"[reason]{result.reason}[/reason]",
                border_style=border,
            )
        )

    def print_config_summary(self, config: "RouterConfig"):
        """Print configuration summary table (secrets excluded)"""
        table = Table(title="Configuration", show_header=False, border_style="cyan")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="yellow")

        table.add_row("Model", config.model)
        table.add_row("API Key", "set" if config.gemini_api_key else "from environment")
        table.add_row("History Limit", str(config.history_limit))
        table.add_row(
            "Timeout",
            f"{config.generation_timeout:g}s" if config.generation_timeout else "none",
        )
        table.add_row("Retries", str(config.max_retries))
        table.add_row("Constant Match Threshold", f"{config.constant_match_threshold:g}")
        table.add_row("Log Level", config.log_level.value)
        if config.log_file:
            table.add_row("Log File", str(config.log_file))

        self.console.print(table)

    def print_constants(self, entries: Iterable["ConstantEntry"]):
        table = Table(title="Physical Constants", border_style="cyan")
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Symbol", style="magenta")
        table.add_column("Value", style="yellow", justify="right")
        table.add_column("Unit", style="green")

        for entry in entries:
            table.add_row(entry.key, entry.symbol, entry.value, entry.unit)

        self.console.print(table)

    def print_success(self, message: str):
        self.console.print(f"[success]✓[/success] {message}")

    def print_error(self, message: str):
        self.console.print(f"[error]✗[/error] {message}")

    def print_warning(self, message: str):
        self.console.print(f"[warning]⚠[/warning] {message}")

    def print_info(self, message: str):
        self.console.print(f"[info]ℹ[/info] {message}")


# Global console instance
console = TutorConsole()


def setup_rich_logging() -> None:
    """
    Install Rich's traceback handler globally.

    structlog configuration is handled separately in utils/logging.py.
    """
    install_rich_traceback(
        show_locals=True,
        width=120,
        extra_lines=3,
        theme="monokai",
        word_wrap=False,
        suppress=[structlog],
    )
