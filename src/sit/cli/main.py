"""Main CLI entry point for sit."""

import io
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sit.constants import EMPTY_REF, MASTER_BRANCH, SIT_DIR
from sit.core import (
    CheckoutEngine,
    CommitEngine,
    GarbageCollector,
    Repository,
    ResetEngine,
    StagingManager,
)
from sit.core.diff import DiffEngine
from sit.core.history import iter_history
from sit.core.status import compute_status
from sit.errors import RepositoryNotFoundError, SitError
from sit.storage import NOT_FOUND, read_commit
from sit.utils.logger import configure_logging

console = Console(soft_wrap=True)
app = typer.Typer(
    name="sit",
    help="A minimal single-branch content-addressable version control system",
    add_completion=False,
)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", style="red", highlight=False)
    raise typer.Exit(1)


def _open_repo() -> Repository:
    try:
        return Repository.find(Path.cwd())
    except RepositoryNotFoundError as e:
        console.print("[bold red]Error:[/bold red] Not a sit repository", style="red")
        console.print(f"  {e.message}", style="dim", markup=False)
        console.print("\nRun [bold]sit init[/bold] to initialize a repository", style="yellow")
        raise typer.Exit(1)


def _scope(repo: Repository, path: Optional[str]) -> str:
    """Repository-relative form of a user path, keeping a trailing slash.

    The repository root itself becomes "/" so it still reads as a path scope.
    """
    if not path:
        return ""
    rel_path = repo.relative_path(path)
    if not rel_path:
        return "/"
    if path.endswith(("/", "\\")):
        rel_path += "/"
    return rel_path


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log engine activity to stderr",
    ),
) -> None:
    """sit - version control with a single linear history."""
    configure_logging("DEBUG" if verbose else None)


@app.command()
def version() -> None:
    """Show sit version."""
    from sit import __version__
    typer.echo(f"sit version {__version__}")


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing .sit/ directory (dangerous!)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a sit repository in the current directory."""
    workspace_root = Path.cwd()

    try:
        repo = Repository.init(workspace_root, force=force)
        repo.close()
    except (SitError, OSError) as e:
        _fail(e)

    if not quiet:
        success_message = f"""[bold green]✓[/bold green] Initialized sit repository

[dim]Repository root:[/dim] {workspace_root}
[dim]Storage location:[/dim] {workspace_root / SIT_DIR}

[bold]Next steps:[/bold]
  1. Set your identity: [cyan]sit config user.name "Your Name"[/cyan]
                        [cyan]sit config user.email you@example.com[/cyan]
  2. Stage files: [cyan]sit add <path>[/cyan]
  3. Commit: [cyan]sit commit -m "Initial commit"[/cyan]
"""
        console.print(Panel(success_message, border_style="green", title="sit Initialized"))


@app.command()
def add(
    paths: list[str] = typer.Argument(..., help="Files or directories to add"),
) -> None:
    """Add files to the staging area."""
    repo = _open_repo()
    try:
        with repo.lock():
            result = StagingManager(repo).add(paths)
    except (SitError, OSError) as e:
        _fail(e)
    finally:
        repo.close()

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}", highlight=False)
    for path_str in result.added:
        console.print(f"  [green]+[/green] {escape(path_str)} added.", highlight=False)
    for path_str in result.updated:
        console.print(f"  [yellow]*[/yellow] {escape(path_str)} updated.", highlight=False)
    if result.errors:
        console.print("\n[bold red]Errors:[/bold red]")
        for error in result.errors:
            console.print(f"  [red]x[/red] {escape(str(error))}", highlight=False)
        raise typer.Exit(1)
    if not result.staged:
        console.print("[yellow]No files found to add[/yellow]")


@app.command()
def rm(
    paths: list[str] = typer.Argument(..., help="Paths to remove from the index"),
) -> None:
    """Remove files from the staging area (the working tree is untouched)."""
    repo = _open_repo()
    try:
        with repo.lock():
            stats = StagingManager(repo).remove(paths)
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    for path_str in stats["removed"]:
        console.print(f"  [red]-[/red] {escape(path_str)} removed.", highlight=False)
    for path_str in stats["not_staged"]:
        console.print(f"  [dim]{escape(path_str)} is not staged[/dim]", highlight=False)


@app.command()
def commit(
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (default: the contents of .sit/COMMIT_MSG)",
    ),
    amend: bool = typer.Option(
        False,
        "--amend",
        help="Replace the commit HEAD points at and relink newer commits",
    ),
) -> None:
    """Commit the staging area as a snapshot."""
    repo = _open_repo()
    try:
        with repo.lock():
            result = CommitEngine(repo).commit(message, amend=amend)
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    console.print(f"[bold green]>[/bold green] Committed [bold cyan]{result.commit_id[:7]}[/bold cyan]")
    console.print(f"  [dim]Author:[/dim]  {escape(result.commit.author)}", highlight=False)
    parent = result.commit.parent
    console.print(f"  [dim]Parent:[/dim]  {'(root commit)' if result.is_root else parent[:7]}")
    if amend:
        for old_id, new_id in result.rewritten:
            console.print(f"  [dim]Rewrote:[/dim] {old_id[:7]} -> {new_id[:7]}")
        console.print(f"  [dim]master:[/dim]  {result.tip[:7]}")
    console.print()
    for line in result.commit.message.splitlines():
        console.print(f"  {line}", markup=False, highlight=False)


@app.command()
def status() -> None:
    """Show staging area and working tree status."""
    repo = _open_repo()
    try:
        state = compute_status(repo)
        master = repo.master()
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    console.print(f"[bold]On branch:[/bold] {MASTER_BRANCH}  [dim](linear history)[/dim]")
    if state.head == EMPTY_REF:
        console.print("[bold]HEAD:[/bold] [dim](no commits yet)[/dim]")
    else:
        console.print(f"[bold]HEAD:[/bold] {state.head[:7]}  [dim]({state.head})[/dim]")
        if state.head != master:
            console.print(f"[yellow]HEAD is detached from master ({master[:7]})[/yellow]")
    console.print()

    if state.staged:
        console.print("[bold green]Changes to be committed:[/bold green]")
        for path_str, change in state.staged.items():
            console.print(f"  [green]{change + ':':<10}[/green] {escape(path_str)}", highlight=False)
        console.print()
    if state.unstaged:
        console.print("[bold red]Changes not staged for commit:[/bold red]")
        for path_str, change in state.unstaged.items():
            console.print(f"  [red]{change + ':':<10}[/red] {escape(path_str)}", highlight=False)
        console.print()
    if state.untracked:
        console.print("[bold]Untracked files:[/bold]")
        for path_str in state.untracked:
            console.print(f"  [dim]{escape(path_str)}[/dim]", highlight=False)
        console.print()
    if not (state.staged or state.unstaged or state.untracked):
        console.print("[dim]Nothing to commit (working tree clean)[/dim]")


@app.command()
def checkout(
    commit_id: Optional[str] = typer.Argument(None, help="Commit id, short id, master or HEAD"),
    path: Optional[str] = typer.Argument(None, help="File or directory to restore"),
) -> None:
    """Check out a commit, or restore a path from a commit or the index."""
    repo = _open_repo()
    try:
        with repo.lock():
            result = CheckoutEngine(repo).checkout(commit_id or "", _scope(repo, path))
    except (SitError, OSError) as e:
        _fail(e)
    finally:
        repo.close()

    if not result.ok:
        console.print(f"[bold red]Error:[/bold red] {escape(result.error)}", highlight=False)
        raise typer.Exit(1)
    if path:
        for path_str in result.written:
            console.print(f"  [green]✓[/green] {escape(path_str)}", highlight=False)
    else:
        console.print(
            f"[bold green]>[/bold green] HEAD is now at [bold cyan]{result.commit_id[:7]}[/bold cyan]"
            f"  [dim]({len(result.written)} file(s))[/dim]"
        )


@app.command()
def log(
    commit_id: str = typer.Argument(MASTER_BRANCH, help="Commit id, or master for the full history"),
) -> None:
    """Show commit history."""
    repo = _open_repo()
    try:
        if commit_id == MASTER_BRANCH:
            commits = list(iter_history(repo, repo.master()))
        else:
            resolved = repo.resolve_commit(commit_id)
            commits = [(resolved, read_commit(repo.store, resolved))]
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    if not commits:
        console.print("[dim]No commits yet[/dim]")
        return

    for i, (object_id, record) in enumerate(commits):
        console.print(f"[bold yellow]Commit {object_id}[/bold yellow]")
        if record.parent == EMPTY_REF:
            console.print("[dim]Parent: (root commit)[/dim]")
        else:
            console.print(f"[dim]Parent: {record.parent[:7]}[/dim]")
        console.print(f"[bold]Author:[/bold] {escape(record.author)}", highlight=False)
        console.print()
        for line in record.message.splitlines():
            console.print(f"    {line}", markup=False, highlight=False)
        if i < len(commits) - 1:
            console.print()


@app.command()
def reset(
    commit_id: Optional[str] = typer.Argument(None, help="Target commit (default: HEAD)"),
    path: Optional[str] = typer.Argument(None, help="Limit the reset to a file or directory"),
    hard: bool = typer.Option(
        False,
        "--hard",
        help="Also update the working tree",
    ),
) -> None:
    """Reset the staging area (and with --hard the working tree) to a commit."""
    repo = _open_repo()
    try:
        with repo.lock():
            report = ResetEngine(repo).reset(commit_id or "", _scope(repo, path), hard=hard)
    except (SitError, OSError) as e:
        _fail(e)
    finally:
        repo.close()

    for line in report.lines():
        console.print(line, markup=False, highlight=False)
    for path_str in report.untracked:
        console.print(f"[bold red]Error:[/bold red] {escape(path_str)} is not tracked", highlight=False)
    for error in report.errors:
        console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", highlight=False)
    if report.errors:
        raise typer.Exit(1)


@app.command()
def diff(
    base: Optional[str] = typer.Argument(None, help="Base commit (default: the index)"),
    target: Optional[str] = typer.Argument(None, help="Target commit (default: working tree)"),
) -> None:
    """Show changes between the index, commits and the working tree."""
    repo = _open_repo()
    buffer = io.StringIO()
    try:
        DiffEngine(repo).diff(buffer, base or "", target or "")
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    output = buffer.getvalue()
    if output:
        typer.echo(output, nl=False)


@app.command()
def gc() -> None:
    """Delete objects that are no longer reachable."""
    repo = _open_repo()
    try:
        with repo.lock():
            result = GarbageCollector(repo).collect()
    except SitError as e:
        _fail(e)
    finally:
        repo.close()

    console.print(
        f"[bold green]>[/bold green] Removed {len(result.removed)} object(s), kept {result.kept}"
    )


@app.command()
def config(
    key: Optional[str] = typer.Argument(None, help="Configuration key, e.g. user.name"),
    value: Optional[str] = typer.Argument(None, help="New value"),
    unset: bool = typer.Option(False, "--unset", help="Remove the key"),
    list_all: bool = typer.Option(False, "--list", "-l", help="List all settings"),
) -> None:
    """Get or set repository configuration."""
    repo = _open_repo()
    try:
        if list_all or key is None:
            for item_key, item_value in repo.config.items().items():
                console.print(f"{item_key}={item_value}", markup=False, highlight=False)
            return

        if unset:
            with repo.lock():
                if not repo.config.unset(key):
                    raise SitError(f"Config `{key}` not found.")
            return

        if value is None:
            current = repo.config.get(key)
            if current is NOT_FOUND:
                raise typer.Exit(1)
            console.print(current, markup=False, highlight=False)
            return

        with repo.lock():
            repo.config.set(key, value)
    except SitError as e:
        _fail(e)
    finally:
        repo.close()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
