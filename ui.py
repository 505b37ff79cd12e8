"""
DrvIndex - Console output using Rich.

write_console() is the leveled message sink used by the builder and matcher;
the show_* functions render the end-of-run reports as panels and tables.
"""

from __future__ import annotations

import enum
import os
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from models import IndexSummary, MatchResult, _format_duration

console = Console()

# Set by enable_debug_log(); every message is mirrored there when present
_debug_log_path: Optional[str] = None


class ConsoleType(enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


CONSOLE_TAGS = {
    ConsoleType.INFO: ("Info   ", "cyan"),
    ConsoleType.SUCCESS: ("Success", "green"),
    ConsoleType.WARNING: ("Warning", "yellow"),
    ConsoleType.ERROR: ("Error  ", "bold red on black"),
}


def enable_debug_log(log_path: Optional[str]) -> None:
    """Mirror console messages to log_path (None disables)."""
    global _debug_log_path
    _debug_log_path = log_path


def write_console(kind: ConsoleType, message: str) -> None:
    """Print a leveled message, and append it to the debug log if enabled."""
    tag, style = CONSOLE_TAGS[kind]
    line = Text("  ")
    line.append(tag, style=style)
    line.append("      ")
    line.append(message)
    console.print(line)

    if _debug_log_path:
        _append_log(_debug_log_path, f"{datetime.now().strftime('%H:%M:%S')} DrvIndex-{message}")


def _append_log(log_path: str, line: str) -> None:
    try:
        log_dir = os.path.dirname(os.path.abspath(log_path))
        os.makedirs(log_dir, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except (OSError, PermissionError):
        pass


def show_build_summary(summary: IndexSummary) -> None:
    """Display the final index build report."""
    console.print()
    console.print(Panel.fit(
        f"[bold green]Index Complete![/]\n\n"
        f"  Scanned:    [bold]{summary.scanned:,}[/] INF files\n"
        f"  Indexed:    [bold green]{summary.succeeded:,}[/]\n"
        f"  Failed:     [bold {'red' if summary.failed else 'dim'}]{summary.failed:,}[/]\n"
        f"  No HW ids:  [bold {'yellow' if summary.blank else 'dim'}]{summary.blank:,}[/]\n"
        f"  Duration:   [bold cyan]{_format_duration(summary.duration_s)}[/]\n\n"
        f"  Index file: [cyan]{escape(summary.index_path)}[/]",
        border_style="green",
        title="[bold]DrvIndex Report[/]",
    ))
    console.print()


def show_match_results(results: List[MatchResult]) -> None:
    """Show one table of candidate drivers per matched device."""
    if not results:
        console.print("[yellow]No matching drivers found for the problem devices.[/]")
        return

    for result in results:
        device = result.device
        title = device.description or device.instance_id
        console.print(f"\n[bold cyan]> {escape(title)}[/] -- {result.candidate_count:,} candidates")
        console.print(f"  [dim]{escape(device.instance_id)}[/]")

        table = Table(box=box.ROUNDED, show_lines=False)
        table.add_column("#", justify="center", width=4)
        table.add_column("Path", max_width=50)
        table.add_column("INF", min_width=12)
        table.add_column("Class", width=12)
        table.add_column("Provider", min_width=12)
        table.add_column("Date", width=12)
        table.add_column("Version", min_width=10)

        for idx, record in enumerate(result.candidates, 1):
            table.add_row(
                str(idx),
                *(escape(value) for value in (
                    record.path or ".",
                    record.inf,
                    record.driver_class,
                    record.provider,
                    record.date,
                    record.version,
                )),
            )
        console.print(table)

    console.print()
    console.print(Panel.fit(
        f"[bold cyan]Match Complete[/]\n"
        f"Found drivers for [bold]{len(results):,}[/] problem devices",
        border_style="cyan",
    ))
