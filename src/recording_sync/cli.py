"""Command-line interface using Typer."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from recording_sync import __version__
from recording_sync.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="recording-sync",
    help="Recording Sync - move finished recordings into storage",
    add_completion=False,
)

console = Console()

STATUS_STYLES = {
    "synced": "green",
    "transferred": "bold green",
    "migrated": "cyan",
    "processing": "yellow",
    "error": "bold red",
    "added": "bold green",
    "exists": "green",
    "no_object": "yellow",
    "needs_sync": "yellow",
    "needs_migration": "cyan",
}


def _styled(value: str) -> str:
    style = STATUS_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Recording Sync v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Recording Sync - reconcile the video platform, storage and the database."""
    pass


@app.command()
def status(
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account key"),
) -> None:
    """Show which finished sessions are synced, pending, or need migration."""
    from recording_sync.services.providers import run_with_reconciler
    from recording_sync.utils import run_async

    try:
        report = run_async(
            run_with_reconciler(account, lambda r, account_id: r.check_status(account_id))
        )
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Sync Status")
    table.add_column("Game", style="cyan")
    table.add_column("Title")
    table.add_column("Match Date")
    table.add_column("Status")
    table.add_column("Storage Key", style="dim")

    for item in report.items:
        table.add_row(
            item.session_id,
            item.title,
            item.business_date.date().isoformat(),
            _styled(item.classification.value),
            item.storage_key or "-",
        )

    console.print(table)
    data = report.to_dict()
    console.print(
        f"Total: {data['total']}  Synced: {data['synced']}  "
        f"Needs sync: {data['needsSync']}  Needs migration: {data['needsMigration']}"
    )


@app.command()
def sync(
    session: Optional[str] = typer.Option(None, "--session", "-s", help="Only this game ID"),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account key"),
) -> None:
    """Transfer and migrate finished sessions."""
    from recording_sync.services.providers import run_with_reconciler
    from recording_sync.utils import run_async

    console.print("[bold blue]Running sync...[/bold blue]")
    try:
        summary = run_async(
            run_with_reconciler(
                account,
                lambda r, account_id: r.run_sync(account_id, target_session_id=session),
            )
        )
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Sync Results")
    table.add_column("Game", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Message")

    for item in summary.items:
        table.add_row(item.session_id, item.title, _styled(item.status.value), item.message)

    console.print(table)
    data = summary.to_dict()
    console.print(
        f"Total: {data['total']}  Transferred: {data['transferred']}  "
        f"Migrated: {data['migrated']}  Processing: {data['processing']}  "
        f"Errors: {data['errors']}"
    )
    if summary.errors:
        raise typer.Exit(code=1)


@app.command()
def tick(
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account key"),
) -> None:
    """Run one scheduled tick: transfer the oldest pending session."""
    from recording_sync.services.providers import run_with_reconciler
    from recording_sync.utils import run_async

    try:
        result = run_async(
            run_with_reconciler(account, lambda r, account_id: r.sync_next(account_id))
        )
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(
        f"{result.message} (games found: {result.sessions_found}, "
        f"needing sync: {result.needs_sync})"
    )
    if result.result:
        item = result.result
        console.print(f"{item.session_id}: {_styled(item.status.value)} - {item.message}")


@app.command()
def backfill(
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account key"),
) -> None:
    """Register recordings already in storage but missing from the database."""
    from recording_sync.services.providers import run_with_reconciler
    from recording_sync.utils import run_async

    try:
        report = run_async(
            run_with_reconciler(account, lambda r, account_id: r.backfill(account_id))
        )
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Backfill Results")
    table.add_column("Game", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Message")

    for item in report.items:
        table.add_row(item.session_id, item.title, _styled(item.status.value), item.message)

    console.print(table)


@app.command("derive-key")
def derive_key_command(
    session_id: str = typer.Argument(..., help="Game (session) ID"),
    production_id: str = typer.Argument(..., help="Production or export ID"),
    match_date: str = typer.Argument(..., help="Match date, e.g. 2024-06-15T18:00:00Z"),
    ext: str = typer.Option("mp4", "--ext", help="File extension"),
) -> None:
    """Print the canonical storage key for a recording."""
    from recording_sync.domain.keys import derive_key

    try:
        key = derive_key(session_id, production_id, match_date, ext=ext)
    except (ValueError, TypeError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(key)


@app.command()
def worker() -> None:
    """Start a Celery worker with the beat scheduler (for development)."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")

    import subprocess
    import sys

    subprocess.run(
        [
            sys.executable,
            "-m",
            "celery",
            "-A",
            "recording_sync.worker",
            "worker",
            "--beat",
            "--queues=sync",
            "--loglevel=info",
        ],
        check=True,
    )


if __name__ == "__main__":
    app()
