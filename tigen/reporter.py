from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from tigen.inserter import InsertResult


def print_result(result: InsertResult, console: Optional[Console] = None) -> None:
    """
    Render a finished run as a rich table, one row per worker plus the remainder.
    """
    console = console or Console()

    mem_bytes = result.get("peak_rss_bytes") or 0
    cpu = result.get("cpu_percent") or 0.0
    title = (
        f"tigen: `{result['table']}` ({len(result['columns'])} columns)\n"
        f"[dim]{result['rows']:,} rows in {result['duration_seconds']:.2f}s "
        f"│ {result['throughput_rows_per_sec']:,.2f} rows/s "
        f"│ peak {mem_bytes / (1024 * 1024):.2f} MB │ CPU {cpu:.1f}%[/dim]"
    )

    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=(
            f"{result['worker_count']} workers x {result['per_worker_rows']:,} rows "
            f"+ {result['remainder_rows']:,} remainder, batch={result['batch_size']:,}"
        ),
    )
    table.add_column("Worker", style="cyan", no_wrap=True)
    table.add_column("Rows", justify="right", style="magenta")
    table.add_column("Batches", justify="right", style="blue")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_column("Throughput (rows/s)", justify="right", style="bold green")

    for stats in result["workers"]:
        name = "remainder" if stats["worker"] is None else str(stats["worker"])
        duration = stats["duration_seconds"]
        throughput = stats["rows"] / duration if duration > 0 else 0.0
        table.add_row(
            name,
            f"{stats['rows']:,}",
            str(stats["batches"]),
            f"{duration:.2f}",
            f"{throughput:,.2f}",
        )

    console.print(table)


__all__ = ["print_result"]
