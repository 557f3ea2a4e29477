#!/usr/bin/env python3
"""
Local File Compressor - CLI Interface

Shrink images and structurally optimize PDFs without leaving your machine.

Usage:
    filecompress image photo.png --quality 0.6 --max-size 500KB
    filecompress pdf report.pdf --output report_small.pdf
    filecompress batch *.jpg --mode image --output-dir out/
    filecompress serve --port 5000
"""

import json
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
)
from rich.table import Table

from filecompress import Mode, ProcessingConfig, SourceFile, Workspace
from filecompress.config import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    configure_logging,
)
from filecompress.export import ExportArtifact
from filecompress.utils import get_output_path, parse_size, unique_path

console = Console()


def create_progress_bar(disable: bool = False):
    """Create a rich progress bar."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=disable,
    )


def file_writer(output: Optional[str], output_dir: Optional[str], written: list):
    """
    Return a save_as callback that writes artifacts to disk.

    An explicit ``output`` path is overwritten. Generated names never
    replace an existing file.
    """
    def save_as(artifact: ExportArtifact):
        path = get_output_path(artifact.filename, output, output_dir)
        if not output:
            path = unique_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(artifact.handle.getvalue())
        written.append(path)
    return save_as


def build_config(quality: float, max_size: str, max_dimension: int) -> ProcessingConfig:
    """Build an image config, turning bad values into click errors."""
    try:
        return ProcessingConfig(
            max_size_mb=parse_size(max_size) / (1024 * 1024),
            max_width_or_height=max_dimension,
            quality=quality,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))


def run_single(
    mode: Mode,
    input_file: str,
    config: Optional[ProcessingConfig],
    output: Optional[str],
    json_output: bool,
):
    """Process one file and export the result."""
    input_path = Path(input_file)
    workspace = Workspace()
    workspace.switch_tab(mode)

    status = console.status(f"Processing {input_path.name}...") if not json_output else nullcontext()
    with status:
        outcome = workspace.intake.pick(mode, SourceFile.from_path(input_path), config)

    written = []
    if outcome.processed:
        workspace.exporter.export(mode, file_writer(output, None, written))

    if json_output:
        results = outcome.to_dict()
        results["output_path"] = str(written[0]) if written else None
        click.echo(json.dumps(results, indent=2))
        if not outcome.processed:
            sys.exit(1)
        return

    if not outcome.accepted:
        console.print(f"[red]Error: {outcome.reason}[/red]")
        sys.exit(1)

    if not outcome.processed:
        if outcome.notice:
            console.print(f"[bold red]Error: {outcome.notice.message}[/bold red]")
        sys.exit(1)

    result = outcome.result
    table = Table(title=f"{mode.value.capitalize()} Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    summary = result.to_dict()
    table.add_row("Original Size", summary["original_size_formatted"])
    table.add_row("New Size", summary["size_formatted"])
    table.add_row("Reduction", f"{summary['compression_ratio']:.1f}%")
    table.add_row("Type", result.mime_type)

    console.print(table)
    console.print(f"\n[bold green]Saved to: {written[0]}[/bold green]")


@click.group(invoke_without_command=True)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose: bool):
    """Local File Compressor - Shrink images and optimize PDFs."""
    configure_logging("DEBUG" if verbose else "WARNING")
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--quality", "-q",
    type=float,
    default=DEFAULT_QUALITY,
    show_default=True,
    help="Target quality between 0 and 1",
)
@click.option(
    "--max-size", "-s",
    default="1MB",
    show_default=True,
    help="Best-effort size ceiling (e.g., 1MB, 500KB)",
)
@click.option(
    "--max-dimension", "-m",
    type=int,
    default=DEFAULT_MAX_DIMENSION,
    show_default=True,
    help="Longest allowed side in pixels",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path (default: compressed_<timestamp>.jpg)",
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output results as JSON",
)
def image(
    input_file: str,
    quality: float,
    max_size: str,
    max_dimension: int,
    output: Optional[str],
    json_output: bool,
):
    """Compress an image."""
    config = build_config(quality, max_size, max_dimension)
    run_single(Mode.IMAGE, input_file, config, output, json_output)


@cli.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path (default: optimized_<timestamp>.pdf)",
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output results as JSON",
)
def pdf(input_file: str, output: Optional[str], json_output: bool):
    """Structurally optimize a PDF file."""
    run_single(Mode.DOCUMENT, input_file, None, output, json_output)


@cli.command()
@click.argument("input_files", nargs=-1, type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in Mode]),
    required=True,
    help="Which kind of file to process; other files are skipped",
)
@click.option(
    "--output-dir", "-d",
    type=click.Path(file_okay=False),
    help="Output directory (default: current directory)",
)
@click.option(
    "--quality", "-q",
    type=float,
    default=DEFAULT_QUALITY,
    show_default=True,
    help="Target quality between 0 and 1 (image mode)",
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output results as JSON",
)
def batch(
    input_files: tuple,
    mode: str,
    output_dir: Optional[str],
    quality: float,
    json_output: bool,
):
    """Process several files one after another."""
    if not input_files:
        console.print("[red]No input files specified[/red]")
        sys.exit(1)

    mode = Mode.parse(mode)
    config = build_config(quality, "1MB", DEFAULT_MAX_DIMENSION) if mode is Mode.IMAGE else None
    workspace = Workspace()

    results = []
    success_count = 0
    skipped_count = 0
    fail_count = 0

    with create_progress_bar(disable=json_output) as progress:
        overall_task = progress.add_task(
            f"Processing {len(input_files)} files...",
            total=len(input_files)
        )

        for input_file in input_files:
            outcome = workspace.intake.drop(mode, SourceFile.from_path(input_file), config)
            entry = outcome.to_dict()
            entry["input_path"] = input_file

            if not outcome.accepted:
                skipped_count += 1
            elif outcome.processed:
                written = []
                workspace.exporter.export(
                    mode,
                    file_writer(None, output_dir, written),
                    label=Path(input_file).stem,
                )
                entry["output_path"] = str(written[0])
                success_count += 1
            else:
                fail_count += 1

            results.append(entry)
            progress.update(overall_task, advance=1)

    if json_output:
        click.echo(json.dumps({
            "total": len(input_files),
            "success": success_count,
            "skipped": skipped_count,
            "failed": fail_count,
            "results": results,
        }, indent=2))
    else:
        console.print(f"\n[bold]Batch Complete[/bold]")
        console.print(f"[green]Success: {success_count}[/green]")
        if skipped_count > 0:
            console.print(f"[yellow]Skipped: {skipped_count}[/yellow]")
        if fail_count > 0:
            console.print(f"[red]Failed: {fail_count}[/red]")


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default: 5000)")
@click.option("--debug", is_flag=True, help="Run Flask in debug mode")
def serve(host: Optional[str], port: Optional[int], debug: bool):
    """Start the local web page."""
    from filecompress.config import Settings
    from web.app import create_app

    settings = Settings.from_env()
    if host:
        settings.host = host
    if port:
        settings.port = port
    configure_logging(settings.log_level)

    app = create_app(settings)
    console.print(f"[bold blue]Open http://{settings.host}:{settings.port} in your browser[/bold blue]")
    app.run(debug=debug, host=settings.host, port=settings.port)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
