"""TuneVault CLI - Main entry point."""
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.prompt import Confirm
from rich.table import Table

app = typer.Typer(
    name="tunevault",
    help="TuneVault - Music and audiobook library ingestion",
    add_completion=True,
)

console = Console()


@app.command()
def version():
    """Show version information."""
    from tunevault import __version__
    console.print(f"TuneVault v{__version__}")


@app.command()
def status():
    """Check system status."""
    from tunevault.config import settings

    table = Table(title="TuneVault Status")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")

    # Check database
    try:
        from sqlalchemy import text
        from tunevault.database import engine
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        table.add_row("Database", "Connected")
    except Exception as e:
        table.add_row("Database", f"[red]Error: {e}[/red]")
        console.print(table)
        raise typer.Exit(1)

    for name, path in [
        ("Music Library", settings.music_path),
        ("Audiobooks", settings.audiobook_path),
        ("Artwork Cache", settings.cache_path),
    ]:
        if Path(path).exists():
            table.add_row(name, f"OK ({path})")
        else:
            table.add_row(name, f"[yellow]Missing ({path})[/yellow]")

    from tunevault.database import SessionLocal, init_db
    from tunevault.models import Album, Artist, Folder, Track
    from tunevault.models.enums import FileStatus

    init_db()
    db = SessionLocal()
    try:
        for label, model in [("Artists", Artist), ("Albums", Album), ("Tracks", Track)]:
            active = db.query(model).filter(model.status == FileStatus.ACTIVE.value).count()
            trashed = db.query(model).filter(model.status == FileStatus.TRASHED.value).count()
            table.add_row(label, f"{active} active, {trashed} trashed")
        table.add_row("Folders", str(db.query(Folder).count()))
    finally:
        db.close()

    console.print(table)


@app.command("import")
def import_library(
    mode: str = typer.Option("incremental", "--mode", "-m", help="incremental or full"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation for full imports"),
):
    """Scan the library roots and reconcile the catalog."""
    from tunevault.database import init_db
    from tunevault.dependencies import get_importer
    from tunevault.services.importer import ImportMode, ImportTaskManager, TaskStatus

    try:
        import_mode = ImportMode(mode)
    except ValueError:
        console.print(f"[red]Unknown mode '{mode}' (use incremental or full)[/red]")
        raise typer.Exit(1)

    if import_mode == ImportMode.FULL and not yes:
        if not Confirm.ask("Full import deletes the catalog, likes, history and playlists. Continue?"):
            console.print("Cancelled")
            return

    init_db()
    manager = ImportTaskManager(get_importer())
    task_id = manager.create_task(import_mode.value)

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.fields[file]}", style="dim"),
        console=console,
    ) as progress:
        bar = progress.add_task("Preparing", total=None, file="")
        task = manager.get_task(task_id)
        while task.is_running:
            progress.update(
                bar,
                description=task.status.value.title(),
                total=task.total,
                completed=task.current or 0,
                file=escape(task.current_file_name or ""),
            )
            time.sleep(0.2)
        task = manager.wait(task_id)
        progress.update(bar, total=task.total, completed=task.current or 0, file="")

    if task.status == TaskStatus.FAILED:
        console.print(f"[red]Import failed: {task.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Import complete: {task.current}/{task.total} files[/green]")


@app.command()
def watch(
    scan: bool = typer.Option(False, "--scan", help="Run an incremental import first"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL (debug, info, ...)"),
):
    """Watch the library roots and keep the catalog in sync."""
    import asyncio
    from tunevault.config import settings
    from tunevault.logging_config import setup_logging
    from tunevault.watcher import run_watcher

    setup_logging(level=log_level)
    console.print(f"Watching {settings.music_path} and {settings.audiobook_path} (Ctrl-C to stop)")
    try:
        asyncio.run(run_watcher(settings, scan_first=scan))
    except KeyboardInterrupt:
        console.print("Stopped")


@app.command("sweep-hashes")
def sweep_hashes():
    """Compute fingerprints for tracks that have none."""
    from tunevault.database import init_db
    from tunevault.dependencies import get_hash_sweeper

    init_db()
    stats = get_hash_sweeper().run_safely()
    if "error" in stats:
        console.print(f"[red]Sweep failed: {stats['error']}[/red]")
        raise typer.Exit(1)

    console.print(
        f"Checked {stats['checked']}: [green]{stats['updated']} updated[/green], "
        f"{stats['missing']} missing, {stats['errors']} errors"
    )


@app.command()
def fingerprint(
    path: Path = typer.Argument(..., help="File to fingerprint"),
):
    """Print the content fingerprint of a file."""
    from tunevault.config import settings
    from tunevault.services.fingerprint import calculate_fingerprint

    if not path.is_file():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    console.print(calculate_fingerprint(path, settings.fingerprint_window_bytes))


if __name__ == "__main__":
    app()
