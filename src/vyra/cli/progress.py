"""
Rich progress displays for CLI operations.

All output goes to stderr to preserve stdout for machine-readable output.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from vyra.core.ledger import GenerationRecord
from vyra.core.quota import UserQuotaRecord

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)


@contextmanager
def generation_progress(model: str | None = None) -> Iterator[None]:
    """
    Display a spinner while the generation pipeline runs.

    Args:
        model: The image generation model being used

    Yields:
        None while the pipeline is in progress
    """
    progress = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("[green]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,  # Disappears when done
    )
    description = "Generating image"
    if model:
        model_display = model if len(model) <= 40 else f"{model[:37]}..."
        description += f" [dim]({model_display})[/dim]"

    with progress:
        task = progress.add_task(description, total=None)
        yield
        progress.update(task, completed=True)


def print_success_result(image_url: str, original_prompt: str, optimized_prompt: str) -> None:
    """Print a formatted success panel with the image URL and prompts."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Image", f"[bold green]{image_url}[/bold green]")
    if optimized_prompt != original_prompt:
        table.add_row("Input", f"[dim]{original_prompt}[/dim]")
        table.add_row("Optimized", f"[dim]{optimized_prompt}[/dim]")
    else:
        table.add_row("Prompt", f"[dim]{original_prompt}[/dim]")

    panel = Panel(
        table,
        title="[bold green]✓ Image Generated[/bold green]",
        border_style="green",
        padding=(1, 2),
    )
    console.print()
    console.print(panel)


def print_usage(user_id: str, record: UserQuotaRecord, today: str, limit: int) -> None:
    """Print a user's quota state for ``today``."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right")
    table.add_column(style="white")
    table.add_row("User", user_id)
    table.add_row("Today", f"{record.effective_daily_count(today)} / {limit}")
    table.add_row("Total", str(record.total_generations))
    table.add_row("XP", str(record.xp))
    console.print(table)


def print_history(records: list[GenerationRecord]) -> None:
    """Print generation records as a table, newest first."""
    if not records:
        print_info("No generations recorded.")
        return
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("When")
    table.add_column("Prompt")
    table.add_column("Style")
    table.add_column("Image")
    for record in records:
        table.add_row(record.timestamp, record.original_prompt, record.style or "", record.image_url)
    console.print(table)


def print_info(message: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {message}")
