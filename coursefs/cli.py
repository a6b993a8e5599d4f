import logging
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table
from rich.traceback import install
from rich.tree import Tree

from .config import CourseFSConfig, get_config_path, load_config, update_config
from .decorators import handle_vfs_errors
from .errors import PermissionDeniedError
from .vfs import CourseVFS, Entry, FileEntry

# Initialize Rich Traceback for better error messages
install(show_locals=False)

# Initialize Rich Console
console = Console()

# Configure logging to use Rich's RichHandler
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, console=Console(stderr=True))]
)
logger = logging.getLogger("coursefs")

app = typer.Typer(help="Browse and download the files of a Stud.IP course (read-only).")


def format_size(size: int) -> str:
    """Format a byte count for display; directories (negative size) show '-'."""
    if size < 0:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024


def _format_time(entry: Entry) -> str:
    return entry.mod_time.strftime("%Y-%m-%d %H:%M") if entry.mod_time else ""


def open_vfs(ctx: typer.Context) -> CourseVFS:
    """Build the course snapshot from the configuration stored on the context."""
    config: CourseFSConfig = ctx.obj
    with console.status(f"Fetching folder tree of course {config.remote.course_id}..."):
        return CourseVFS.from_config(config)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
    course_id: Optional[str] = typer.Option(None, "--course-id", "-c", help="Course ID"),
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Stud.IP login name"),
    password: Optional[str] = typer.Option(None, "--password", help="Stud.IP password"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Base URL of the Stud.IP JSON API"),
    root: Optional[str] = typer.Option(None, "--root", help="Sub-directory of the course to expose"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Concurrent fetches during the tree build"),
):
    """
    coursefs - read-only access to the file area of a Stud.IP course.

    The course's folder tree is fetched once per command; listings are
    answered from that snapshot.
    """
    config = load_config()
    if course_id is not None:
        config.remote.course_id = course_id
    if username is not None:
        config.remote.username = username
    if password is not None:
        config.remote.password = password
    if base_url is not None:
        config.remote.base_url = base_url
    if root is not None:
        config.build.root = root
    if workers is not None:
        config.build.max_workers = workers
    ctx.obj = config

    if verbose or config.cli.verbose:
        logger.setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")


@app.command(name="ls")
@handle_vfs_errors
def list_directory(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Directory to list (default: course root)"),
):
    """List the contents of a directory.

    Examples:
        coursefs ls
        coursefs ls Lectures/
    """
    with open_vfs(ctx) as vfs:
        entries = vfs.list(path)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Size", justify="right")
    table.add_column("Modified", style="dim")
    table.add_column("Info", style="dim")

    for entry in entries:
        if isinstance(entry, FileEntry):
            table.add_row("📄", entry.name, format_size(entry.size), _format_time(entry), entry.mime_type)
        else:
            table.add_row("📁", f"{entry.name}/", "-", _format_time(entry), f"{entry.items} items")

    console.print(table)


@app.command()
@handle_vfs_errors
def tree(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Directory to start from (default: course root)"),
):
    """Print the folder tree below a directory."""
    with open_vfs(ctx) as vfs:
        branches = {}
        label = path.strip("/") or "/"
        top = Tree(f"[bold cyan]{label}[/bold cyan]")
        for dir_path, entries in vfs.walk(path):
            branch = branches.get(dir_path, top)
            for entry in entries:
                if isinstance(entry, FileEntry):
                    branch.add(f"{entry.name} [dim]({format_size(entry.size)})[/dim]")
                else:
                    branches[entry.remote] = branch.add(f"[bold]{entry.name}/[/bold]")

        console.print(top)
        console.print(
            f"[dim]{vfs.stats.folders} folders, {vfs.stats.files} files "
            f"({vfs.stats.skipped_files} not downloadable)[/dim]"
        )


@app.command()
@handle_vfs_errors
def cat(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to print"),
):
    """Write a file's content to standard output."""
    with open_vfs(ctx) as vfs:
        with vfs.open(path) as stream:
            for chunk in stream.iter_bytes():
                typer.echo(chunk, nl=False)


@app.command()
@handle_vfs_errors
def get(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to download"),
    dest: Path = typer.Argument(Path("."), help="Target file or directory"),
):
    """Download a file.

    Examples:
        coursefs get Lectures/week1.pdf
        coursefs get Lectures/week1.pdf ~/Downloads/
    """
    with open_vfs(ctx) as vfs:
        entry = vfs.new_object(path)
        target = dest / entry.name if dest.is_dir() else dest

        with vfs.open(path) as stream, open(target, "wb") as f, Progress(console=console) as progress:
            task = progress.add_task(f"Downloading {entry.name}", total=entry.size or None)
            for chunk in stream.iter_bytes():
                f.write(chunk)
                progress.update(task, advance=len(chunk))

    console.print(f"[green]✓ Saved {entry.name} to {target}[/green]")


@app.command()
@handle_vfs_errors
def info(ctx: typer.Context):
    """Show the course's tree statistics."""
    with open_vfs(ctx) as vfs:
        table = Table(show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_row("Server", str(vfs))
        table.add_row("Course", vfs.course_id)
        table.add_row("Root", vfs.root_path or "/")
        table.add_row("Time precision", f"{vfs.precision:g}s")
        table.add_row("Folders", str(vfs.stats.folders))
        table.add_row("Files", str(vfs.stats.files))
        table.add_row("Not downloadable", str(vfs.stats.skipped_files))
        console.print(table)


@app.command()
@handle_vfs_errors
def mkdir(path: str = typer.Argument(..., help="Directory to create")):
    """Refused: the course store is read-only."""
    raise PermissionDeniedError(f"mkdir {path}: course files are read-only")


@app.command()
@handle_vfs_errors
def rm(path: str = typer.Argument(..., help="Path to remove")):
    """Refused: the course store is read-only."""
    raise PermissionDeniedError(f"rm {path}: course files are read-only")


@app.command()
@handle_vfs_errors
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    set_course_id: Optional[str] = typer.Option(None, "--set-course-id", help="Default course ID"),
    set_username: Optional[str] = typer.Option(None, "--set-username", help="Stud.IP login name"),
    set_password: Optional[str] = typer.Option(None, "--set-password", help="Stud.IP password"),
    set_base_url: Optional[str] = typer.Option(None, "--set-base-url", help="Base URL of the JSON API"),
    set_workers: Optional[int] = typer.Option(None, "--set-workers", help="Concurrent fetches during builds"),
    set_follow_pages: Optional[bool] = typer.Option(
        None, "--set-follow-pages/--set-first-page-only", help="Follow paged folder listings"
    ),
):
    """View or edit the configuration file."""
    updates = {
        "course_id": set_course_id,
        "username": set_username,
        "password": set_password,
        "base_url": set_base_url,
        "max_workers": set_workers,
        "follow_pages": set_follow_pages,
    }
    if any(value is not None for value in updates.values()):
        update_config(**updates)
        console.print(f"[green]✓ Configuration saved to {get_config_path()}[/green]")

    if show or not any(value is not None for value in updates.values()):
        current = load_config()
        table = Table(title=str(get_config_path()), show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for section, values in current.to_dict().items():
            for key, value in values.items():
                if key == "password" and value:
                    value = "********"
                table.add_row(f"{section}.{key}", str(value))
        console.print(table)


if __name__ == "__main__":
    app()
