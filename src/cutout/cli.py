"""Command-line interface for cutout."""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from . import __version__
from .batch import run_batch
from .codec import PillowCodec
from .config import get_settings
from .errors import CaptureSpecError, InvalidOriginError
from .models import BatchReport, CaptureSpec, ExtractionResult
from .parsing import SPEC_FORMAT, parse_capture_specs, parse_origin

app = typer.Typer(
    name="cutout",
    help="cutout: extract rectangular regions from images",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)

console = Console(stderr=True)

# Exit code for invalid arguments, same as typer/click usage errors
EXIT_USAGE = 2


def version_callback(value: bool) -> None:
    """Print version and exit if --version flag is provided."""
    if value:
        typer.echo(f"cutout version {__version__}")
        raise typer.Exit()


def configure_logging(level: str, verbose: bool) -> None:
    """Configure root logging for one invocation."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command()
def main(
    inputs: list[Path] = typer.Argument(
        ...,
        help="Input image files (e.g. *.jpg, *.png, *.tif, *.webp, *.gif, *.bmp)",
        dir_okay=False,
    ),
    capture: list[str] = typer.Option(
        ...,
        "--capture",
        "-c",
        metavar="SPEC",
        help=f"Capture spec: {SPEC_FORMAT}. Can be repeated.",
    ),
    origin: str | None = typer.Option(
        None,
        "--origin",
        help="Coordinate origin: tl (top-left) or bl (bottom-left). Defaults to tl.",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for output images (default: beside each input)",
        file_okay=False,
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        "-j",
        help="Number of input files processed in parallel. Defaults to 1.",
        min=1,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output with timing information",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate capture specifications without writing images",
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Extract named rectangular regions from images.

    Each capture is cropped out of every input and saved as
    <basename>_<name>.<ext>, in the same format as the input.

    \b
    Example:
        cutout page.png -c left:200x300:1200x1850 -c right:1500x300:1200x1850
        cutout chart.png --origin bl -c legend:40x20:300x120 --dry-run
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(EXIT_USAGE) from None

    configure_logging(settings.log_level, verbose)

    try:
        specs = parse_capture_specs(capture)
        origin_value = parse_origin(origin if origin is not None else settings.origin)
    except (CaptureSpecError, InvalidOriginError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(EXIT_USAGE) from None

    if output_dir is None:
        output_dir = settings.output_dir
    if jobs is None:
        jobs = settings.jobs

    if dry_run:
        console.print(
            f"[bold cyan]Dry run:[/bold cyan] validating {len(specs)} capture specs "
            f"against {len(inputs)} images"
        )
    else:
        console.print("[bold cyan]Capture Extraction[/bold cyan]")
        console.print(f"Inputs: {len(inputs)}")
    console.print(f"Origin: {origin_value.name.lower().replace('_', '-')}")
    if output_dir is not None:
        console.print(f"Output: {escape(str(output_dir))}")
    _print_specs(specs)
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Validating images..." if dry_run else "Extracting...", total=len(inputs))

        report = run_batch(
            inputs,
            specs,
            origin_value,
            dry_run=dry_run,
            verbose=verbose,
            output_dir=output_dir,
            jobs=jobs,
            codec=PillowCodec(jpeg_quality=settings.jpeg_quality),
            progress_callback=lambda current, total: progress.update(task, completed=current, total=total),
        )

    _print_results(report, verbose)
    if verbose:
        console.print(_summary_table(report))

    total = len(report.results)
    failed = len(report.failures)
    if failed:
        console.print(f"[red]Error:[/red] {failed} of {total} captures failed")
        raise typer.Exit(1)

    if dry_run:
        console.print("[green]✓[/green] Validation successful. All capture specifications are valid.")
    else:
        console.print(f"[green]✓[/green] Wrote {total} captures")


def _print_specs(specs: list[CaptureSpec]) -> None:
    for spec in specs:
        console.print(
            f"  Capture '{escape(spec.name)}': {spec.width}x{spec.height} at ({spec.x}, {spec.y})"
        )


def _print_results(report: BatchReport, verbose: bool) -> None:
    current: Path | None = None
    for result in report.results:
        if result.input_path != current:
            current = result.input_path
            _print_input_header(result, verbose)

        if result.capture_name is None:
            console.print(f"  [red]✗[/red] {escape(result.message or '')}")
        elif result.ok:
            line = f"  [green]✓[/green] '{escape(result.capture_name)}' -> {escape(str(result.output_path))}"
            if verbose and result.timings and result.timings.crop_encode_ms is not None:
                line += f" (crop+encode: {result.timings.crop_encode_ms:.1f} ms)"
            console.print(line)
        else:
            console.print(f"  [red]✗[/red] '{escape(result.capture_name)}': {escape(result.message or '')}")


def _print_input_header(result: ExtractionResult, verbose: bool) -> None:
    line = escape(str(result.input_path))
    if result.image_size is not None:
        line += f" ({result.image_size[0]}x{result.image_size[1]})"
    if verbose and result.timings is not None:
        line += f" (decode: {result.timings.decode_ms:.1f} ms)"
    console.print(line)


def _summary_table(report: BatchReport) -> Table:
    table = Table(title="Summary")
    table.add_column("Input")
    table.add_column("Capture")
    table.add_column("Status")
    table.add_column("Detail")

    for result in report.results:
        status = "[green]ok[/green]" if result.ok else f"[red]{result.error_kind.value}[/red]"
        detail = str(result.output_path) if result.ok else (result.message or "")
        table.add_row(
            escape(result.input_path.name),
            escape(result.capture_name or "*"),
            status,
            escape(detail),
        )
    return table


if __name__ == "__main__":
    app()
