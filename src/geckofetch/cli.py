from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.filesize import decimal
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from geckofetch import __version__, installer, report, resolver
from geckofetch.config import RunOptions
from geckofetch.errors import GeckofetchError
from geckofetch.platform import OSBucket

app = typer.Typer(
    add_completion=False,
    help="Install the Geckodriver binary.",
    rich_markup_mode="rich",
)
console = Console()

_STAGES = {
    "downloading": ("Downloading Geckodriver for {os}...", 5.0),
    "extracting": ("Extracting Geckodriver for {os}...", 92.0),
    "installing": ("Installing Geckodriver for {os}...", 97.0),
    "done": ("Installed Geckodriver for {os}.", 100.0),
}


def _handle_error(err: GeckofetchError) -> None:
    console.print(f"[red]{escape(err.format())}[/red]", soft_wrap=True)
    raise typer.Exit(code=1)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"geckofetch {__version__}")
        raise typer.Exit()


def _install_with_progress(version: str, options: RunOptions) -> installer.RunResult:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Preparing install...", total=100.0, completed=0.0)
        current = {"os": ""}

        def on_status(bucket: OSBucket, stage: str) -> None:
            current["os"] = bucket.name
            description, completed = _STAGES[stage]
            progress.update(task_id, description=description.format(os=bucket.name), completed=completed)

        def on_download(total_bytes: int | None, downloaded_bytes: int) -> None:
            description = f"Downloading Geckodriver for {current['os']}..."
            if total_bytes and total_bytes > 0:
                ratio = min(downloaded_bytes / total_bytes, 1.0)
                progress.update(task_id, description=description, completed=5.0 + (ratio * 85.0))
                return
            # Unknown content length: keep moving the bar while showing bytes received.
            task = progress.tasks[task_id]
            next_progress = task.completed + 1.0
            if next_progress > 90.0:
                next_progress = 5.0
            progress.update(
                task_id,
                description=f"{description} {decimal(downloaded_bytes)}",
                completed=next_progress,
            )

        def on_error(bucket: OSBucket, err: GeckofetchError) -> None:
            console.print(f"[red]{bucket.name}: {escape(err.format())}[/red]", soft_wrap=True)

        def on_notice(message: str) -> None:
            console.print(f"[yellow]{message}[/yellow]", soft_wrap=True)

        return installer.run(
            version,
            options,
            on_status=on_status,
            on_download=on_download,
            on_error=on_error,
            on_notice=on_notice,
        )


@app.command()
def install(
    version: str | None = typer.Argument(
        None, help="Geckodriver release tag, e.g. v0.33.0. Defaults to the latest release."
    ),
    install_all: bool = typer.Option(
        False, "--all", help="Install a Geckodriver binary for every OS."
    ),
    proxy: str | None = typer.Option(
        None,
        "--proxy",
        help='The proxy to download the binary through (example: "tcp://127.0.0.1:9000").',
    ),
    ssl_no_verify: bool = typer.Option(
        False,
        "--ssl-no-verify",
        help="Bypass SSL certificate verification when installing through a proxy.",
    ),
    output: Path | None = typer.Option(
        None, "--output", help="Directory path to store binaries in.", file_okay=False
    ),
    show_version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the geckofetch version and exit.",
    ),
) -> None:
    """Install the Geckodriver binary.

    [bold cyan]Examples[/]
    [green]geckofetch[/green]
    [green]geckofetch v0.33.0 --all[/green]
    [green]geckofetch --proxy tcp://127.0.0.1:9000 --ssl-no-verify[/green]
    """
    _ = show_version
    options = RunOptions.build(
        version=version,
        install_all=install_all,
        proxy=proxy,
        ssl_verify=not ssl_no_verify,
        output_directory=output,
    )
    try:
        resolved = resolver.resolve_version(options.version, options)
        result = _install_with_progress(resolved, options)
    except GeckofetchError as err:
        _handle_error(err)

    summary = report.summarize(result)
    for message in summary.messages:
        console.print(message, soft_wrap=True, highlight=False)
    if summary.exit_code:
        raise typer.Exit(code=summary.exit_code)
