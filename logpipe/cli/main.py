"""
Main CLI interface for logpipe.

Provides a command-line interface for preprocessing log files, running the
collector against configured sources, and managing configuration.
"""

import json
import time
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from logpipe.ingestion import LogLineParser, FORMATS
from logpipe.models import ProcessedLog, PreprocessingStats, level_name
from logpipe.utils.config import PipelineConfig, load_config, create_default_config
from logpipe.utils.logsetup import setup_logging

app = typer.Typer(
    name="logpipe",
    help="logpipe - log collection and preprocessing pipeline",
    add_completion=False,
)
console = Console()

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold red",
}


@app.callback()
def main_options(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level for diagnostics (overrides the config file)"
    ),
):
    """logpipe - log collection and preprocessing pipeline."""
    ctx.obj = {"log_level": log_level}
    setup_logging(log_level or "WARNING")


def _load_config(ctx: typer.Context, config: Optional[Path]) -> PipelineConfig:
    """Load an explicit config (fatal on error) or the discovered default."""
    try:
        config_obj = load_config(config)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        if config:
            console.print(f"[red]Error:[/red] Could not load config: {e}")
            raise typer.Exit(1)
        console.print(f"[yellow]Warning:[/yellow] Ignoring invalid config: {e}")
        return PipelineConfig()

    if not (ctx.obj or {}).get("log_level"):
        setup_logging(config_obj.log_level)
    return config_obj


def _render_logs(logs: List[ProcessedLog], title: str, limit: int) -> None:
    table = Table(title=title)
    table.add_column("Timestamp", style="blue")
    table.add_column("Level", justify="center")
    table.add_column("Source", style="cyan")
    table.add_column("Message")
    table.add_column("IP Type", style="magenta")
    table.add_column("Valid", justify="center")

    for log in logs[:limit]:
        level = level_name(log.log_level)
        style = LEVEL_STYLES.get(level, "white")
        timestamp = log.timestamp.strftime('%Y-%m-%d %H:%M:%S') if hasattr(log.timestamp, 'strftime') \
            else str(log.timestamp)
        valid = "[green]✓[/green]" if log.is_valid else f"[red]✗[/red] {'; '.join(log.validation_errors)}"
        table.add_row(
            timestamp,
            f"[{style}]{level}[/{style}]",
            log.source,
            log.message,
            log.enriched_metadata.ip_type or "",
            valid,
        )

    console.print(table)
    if len(logs) > limit:
        console.print(f"[dim]... {len(logs) - limit} more record(s)[/dim]")


def _render_stats(stats: PreprocessingStats, title: str = "Preprocessing Stats") -> None:
    console.print(Panel.fit(
        f"[bold]Processed:[/bold] {stats.total_processed}\n"
        f"  [green]Valid:[/green] {stats.valid_logs}\n"
        f"  [red]Invalid:[/red] {stats.invalid_logs}\n"
        f"  [yellow]Filtered:[/yellow] {stats.filtered_logs}\n"
        f"[bold]Transformations applied:[/bold] {stats.transformed_logs}\n"
        f"[bold]Average time:[/bold] {stats.average_processing_time:.3f} ms",
        title=title,
        border_style="blue"
    ))


def _emit_json(logs: List[ProcessedLog], stats: PreprocessingStats, **extra) -> None:
    # Plain echo: rich would wrap long lines
    payload = {
        'logs': [log.to_dict() for log in logs],
        'stats': stats.to_dict(),
    }
    payload.update(extra)
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command()
def preprocess(
    ctx: typer.Context,
    logfile: Path = typer.Argument(..., help="Path to log file"),
    format: str = typer.Option("auto", "--format", "-f", help=f"Log format ({'/'.join(FORMATS)})"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Default source name"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
    output: str = typer.Option("table", "--output", "-o", help="Output format (table/json)"),
    show_invalid: bool = typer.Option(False, "--show-invalid", help="Only show records that failed validation"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of records to show"),
):
    """
    Run a log file through the preprocessing pipeline.

    Examples:
        logpipe preprocess app.log
        logpipe preprocess app.jsonl --format json --output json
        logpipe preprocess app.log --config logpipe.yaml --show-invalid
    """
    if not logfile.exists():
        console.print(f"[red]Error:[/red] Log file not found: {logfile}")
        raise typer.Exit(1)
    if format not in FORMATS:
        console.print(f"[red]Error:[/red] Unknown format: {format}. Use one of {', '.join(FORMATS)}")
        raise typer.Exit(1)

    config_obj = _load_config(ctx, config)
    try:
        preprocessor = config_obj.build_preprocessor()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    parser = LogLineParser(default_source=source or "unknown")
    raw_logs = list(parser.parse_file(logfile, format=format))
    processed = preprocessor.batch_preprocess(raw_logs)
    if show_invalid:
        processed = [log for log in processed if not log.is_valid]
    stats = preprocessor.get_stats()

    if output == "json":
        _emit_json(processed, stats)
        return

    _render_logs(processed, f"Processed logs from {logfile.name}", limit)
    _render_stats(stats)


@app.command()
def collect(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
    duration: float = typer.Option(10.0, "--duration", "-d", help="Seconds to collect for"),
    output: str = typer.Option("table", "--output", "-o", help="Output format (table/json)"),
    limit: int = typer.Option(20, "--limit", "-l", help="Number of records to show"),
):
    """
    Poll the configured sources, then preprocess what was collected.

    Examples:
        logpipe collect --duration 30
        logpipe collect --config logpipe.yaml --output json
    """
    config_obj = _load_config(ctx, config)
    try:
        collector = config_obj.build_collector()
        preprocessor = config_obj.build_preprocessor()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not collector.get_sources():
        console.print("[red]Error:[/red] No sources configured. Run 'logpipe config init' to create a config.")
        raise typer.Exit(1)

    try:
        collector.start_collection()
        if output != "json":
            with console.status(f"[bold green]Collecting logs for {duration:g}s..."):
                time.sleep(duration)
        else:
            time.sleep(duration)
        collector.stop_collection()

        raw_logs = collector.collect_logs()
        collection_stats = collector.get_collection_stats()
    finally:
        collector.shutdown()

    processed = preprocessor.batch_preprocess(raw_logs)
    stats = preprocessor.get_stats()

    if output == "json":
        _emit_json(processed, stats, collection=collection_stats.to_dict())
        return

    console.print(
        f"[green]✓[/green] Collected {collection_stats.total_logs_collected} record(s) "
        f"({collection_stats.error_count} fetch error(s), {collection_stats.evicted_logs} evicted)"
    )
    _render_logs(processed, "Collected logs", limit)
    _render_stats(stats)


@app.command(name="config")
def config_command(
    action: str = typer.Argument(..., help="Action: init (create default config)"),
    path: Path = typer.Option("logpipe.yaml", "--path", "-p", help="Config file path"),
):
    """
    Manage configuration files.

    Actions:
        init    - Create a default configuration file

    Examples:
        logpipe config init
        logpipe config init --path myconfig.yaml
    """
    if action == "init":
        try:
            create_default_config(path)
            console.print(f"[green]✓[/green] Created default configuration at: {path}")
        except OSError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
    else:
        console.print(f"[red]Error:[/red] Unknown action: {action}")
        console.print("Available actions: init")
        raise typer.Exit(1)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
