"""CLI entry point for pastshots."""

from __future__ import annotations

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pastshots.errors import PastshotsError
from pastshots.models.config import CONFIG_FILE_NAME, PastshotsConfig, ViewportConfig
from pastshots.models.run_result import RunResult
from pastshots.orchestrator import Orchestrator

console = Console()
logger = logging.getLogger(__name__)

try:
    __version__ = version("pastshots")
except PackageNotFoundError:
    __version__ = "0.0.0"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _parse_viewport(ctx, param, value: str | None) -> ViewportConfig | None:
    if value is None:
        return None
    try:
        return ViewportConfig.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def print_summary(result: RunResult) -> None:
    table = Table(title="Capture Summary")
    table.add_column("Page", style="bold")
    table.add_column("Outcome")
    table.add_column("Diff")
    styles = {"created": "blue", "unchanged": "green", "settled": "yellow", "changed": "red"}
    for page in result.pages:
        style = styles[page.outcome]
        table.add_row(page.name, f"[{style}]{page.outcome}[/{style}]", page.diff_path or "")
    console.print(table)
    console.print(
        f"[blue]{result.created}[/blue] created, [green]{result.unchanged}[/green] unchanged, "
        f"[yellow]{result.settled}[/yellow] settled, [red]{result.changed}[/red] changed "
        f"in {result.duration_seconds}s"
    )


@click.command()
@click.version_option(__version__, prog_name="pastshots")
@click.option("--config", "-c", "config_path", default=CONFIG_FILE_NAME, show_default=True,
              help="JSON config file")
@click.option("--output", help="Output directory for the captured screenshots")
@click.option("--serve", help="Pages to serve with the embedded HTTP server (glob)")
@click.option("--port", type=int, help="Port number for the embedded HTTP server")
@click.option("--browser", type=click.Choice(["firefox", "chrome", "chromium", "webkit"]),
              help="Browser that will take screenshots")
@click.option("--viewport-size", callback=_parse_viewport, metavar="WIDTH,HEIGHT",
              help="Viewport size (default: 1024,768)")
@click.option("--selector", help="Scope screenshot to a CSS selector. Leave empty for viewport")
@click.option("--tolerance", type=click.FloatRange(min=0), help="Tolerance to use when comparing")
@click.option("--create-diff/--no-create-diff", default=None, help="Create diff images")
@click.option("--strict/--no-strict", default=None, help="Disable anti-aliasing tolerance")
@click.option("--settle-delay", "settle_delay_ms", type=click.IntRange(min=0),
              help="Milliseconds to wait before a capture/retry")
@click.option("--headed", is_flag=True, default=None, help="Show the browser window")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(config_path: str, headed: bool | None, verbose: bool, **options) -> None:
    """Capture pages and keep a visual baseline per page."""
    setup_logging(verbose)
    if headed:
        options["headless"] = False

    try:
        cfg = PastshotsConfig.load(config_path).merged(options)
        result = Orchestrator(cfg).run()
    except PastshotsError as e:
        logger.error("%s", e)
        console.print(f"[red]Capture failed:[/red] {e}")
        sys.exit(1)

    print_summary(result)


if __name__ == "__main__":
    main()
