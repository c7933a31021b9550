"""Display components for console output."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.table import Table


if TYPE_CHECKING:
    from rich.console import Console

    from policydb.core.models import Policy


def print_policies_table(console: Console, policies: list[Policy]) -> None:
    if not policies:
        console.print("[yellow]No policies stored[/yellow]")
        return
    table = Table(title=f"Policies ({len(policies)})", show_header=True, header_style="bold")
    table.add_column("Payment Hash", style="cyan", no_wrap=True)
    table.add_column("Fee (msat)", justify="right", style="green")
    for policy in policies:
        table.add_row(policy.hash_hex, str(policy.fee))
    console.print(table)


def print_policy(console: Console, policy: Policy) -> None:
    console.print(f"[bold]Payment hash:[/bold] [cyan]{policy.hash_hex}[/cyan]")
    console.print(f"[bold]Fee:[/bold] [green]{policy.fee}[/green] msat")
