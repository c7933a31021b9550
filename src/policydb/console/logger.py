"""Console logging and output for the command line."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from policydb.console.display import print_policies_table, print_policy


if TYPE_CHECKING:
    from policydb.core.models import Policy


class StoreConsole:
    """Rich console interface for store commands."""

    def __init__(self, verbose: bool = False) -> None:
        self.console = Console()
        self.verbose = verbose

    def setup_logging(self, level: str = "INFO") -> None:
        logging.basicConfig(
            level=level if self.verbose else "WARNING",
            format="%(message)s",
            handlers=[
                RichHandler(
                    console=self.console, rich_tracebacks=True, show_time=False, show_path=False
                )
            ],
            force=True,
        )

    def print_policies(self, policies: list[Policy]) -> None:
        print_policies_table(self.console, policies)

    def print_policy(self, policy: Policy) -> None:
        print_policy(self.console, policy)

    def print_success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, error: str) -> None:
        self.console.print()
        self.console.print(
            Panel(f"[red]{error}[/red]", title="[red]Error[/red]", border_style="red")
        )
