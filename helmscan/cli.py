"""CLI interface for helmscan."""

import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from helmscan.consts import (
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT,
    EXIT_FATAL,
    EXIT_INTERRUPTED,
    EXIT_MISSING_TOKEN,
    SNYK_CLI_DOCKER_IMAGE,
    SNYK_TOKEN_ENV_VAR,
)
from helmscan.errors import HelmScanError, MissingTokenError
from helmscan.models.model_scanner import ScanRunResult
from helmscan.models.model_settings import ExtractorKind, FailurePolicy, ScanSettings
from helmscan.pipeline import find_missing_tools, list_chart_images, run_scan_pipeline
from helmscan.report_writer import write_report

app = typer.Typer(
    name="helmscan",
    help="helmscan - Scan every container image referenced by a Helm chart",
)

# stdout carries only the report
console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )


def _resolve_input_directory(input_directory: Path | None) -> Path:
    """Absent or "." means the current working directory."""
    if input_directory is None or str(input_directory) == ".":
        return Path.cwd()
    return input_directory


def _check_tools(settings: ScanSettings) -> None:
    missing = find_missing_tools(settings)
    if missing:
        console.print(f"[red]Error: required tools not found on PATH: {', '.join(missing)}[/red]")
        raise typer.Exit(EXIT_FATAL)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _print_summary(result: ScanRunResult) -> None:
    summary_table = Table(title=f"Scan Summary - {result.report.chart_label}")
    summary_table.add_column("Metric", style="cyan")
    summary_table.add_column("Count", justify="right", style="magenta")

    summary_table.add_row("Discovered", str(len(result.discovered)))
    summary_table.add_row("Reported", str(len(result.report.images)))
    summary_table.add_row("Scanned", str(result.succeeded))
    summary_table.add_row("Skipped scan", str(result.skipped))
    summary_table.add_row("Dropped", str(result.failed))
    summary_table.add_row("Duration", f"{result.duration_seconds:.1f}s")

    console.print(summary_table)

    if result.failures:
        console.print(f"\n[yellow]Dropped images ({len(result.failures)}):[/yellow]")
        for image_ref, error in result.failures.items():
            console.print(f"  [dim]{image_ref}:[/dim] {_truncate(error)}")


@app.command()
def scan(
    input_directory: Path = typer.Argument(
        None, help="Chart directory to render (default: current directory)"
    ),
    output: Path = typer.Option(
        None, "--output", "-o", help="Write report to file instead of stdout"
    ),
    no_test: bool = typer.Option(False, "--no-test", help="Discover images without scanning them"),
    extractor: ExtractorKind = typer.Option(
        ExtractorKind.LINES, "--extractor", help="Image extraction strategy"
    ),
    scanner_image: str = typer.Option(
        SNYK_CLI_DOCKER_IMAGE, "--scanner-image", help="Image packaging the Snyk CLI"
    ),
    concurrency: int = typer.Option(
        DEFAULT_CONCURRENCY, "--concurrency", min=1, help="Max concurrent image scans"
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", min=0.001, help="Timeout in seconds for each external call"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on render errors and scanner image pull errors"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Render a chart, scan each referenced image with Snyk, and emit a JSON report."""
    token = os.getenv(SNYK_TOKEN_ENV_VAR, "")
    if not token:
        console.print(f"[red]Error:[/red] {SNYK_TOKEN_ENV_VAR} environment variable is not set")
        raise typer.Exit(EXIT_MISSING_TOKEN)

    _configure_logging(verbose)

    settings = ScanSettings(
        input_directory=_resolve_input_directory(input_directory),
        output=output,
        scan_enabled=not no_test,
        token=token,
        extractor=extractor,
        scanner_image=scanner_image,
        concurrency=concurrency,
        timeout=timeout,
        failure_policy=FailurePolicy.FAIL_FAST if strict else FailurePolicy.BEST_EFFORT,
    )

    _check_tools(settings)

    logger.info(f"input directory: {settings.input_directory}")
    logger.info(f"output: {settings.output or '<stdout>'}")
    logger.info(f"scan enabled: {settings.scan_enabled}")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Scanning...", total=None)

            def on_progress(current: int, total: int) -> None:
                progress.update(task, completed=current, total=total)

            result = run_scan_pipeline(settings, progress_callback=on_progress)

        write_report(result.report, settings.output)

    except MissingTokenError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_MISSING_TOKEN)
    except HelmScanError as e:
        logger.error(f"{type(e).__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_FATAL)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED)

    _print_summary(result)


@app.command()
def images(
    input_directory: Path = typer.Argument(
        None, help="Chart directory to render (default: current directory)"
    ),
    extractor: ExtractorKind = typer.Option(
        ExtractorKind.LINES, "--extractor", help="Image extraction strategy"
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT, "--timeout", min=0.001, help="Render timeout in seconds"
    ),
    strict: bool = typer.Option(False, "--strict", help="Fail if rendering fails"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """List the images a chart references, one per line."""
    _configure_logging(verbose)

    settings = ScanSettings(
        input_directory=_resolve_input_directory(input_directory),
        scan_enabled=False,
        extractor=extractor,
        timeout=timeout,
        failure_policy=FailurePolicy.FAIL_FAST if strict else FailurePolicy.BEST_EFFORT,
    )
    _check_tools(settings)

    try:
        found = list_chart_images(settings)
    except HelmScanError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_FATAL)

    if not found:
        console.print("[yellow]No images found.[/yellow]")
        return

    for image_ref in found:
        typer.echo(image_ref)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
