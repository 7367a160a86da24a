#!/usr/bin/env python3
"""Command line front end for census registration lookups."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Literal

import click
from rich.console import Console
from rich.table import Table

from ..__version__ import COMPONENT_VERSIONS, __version__, get_version_string
from ..config import LookupConfig, load_config
from ..exceptions import CensoLookupError
from ..models import ConnectionReport, Dimension, LookupResult
from ..services import open_orchestrator
from ..utils.logging import (
    clear_execution_context,
    get_logger,
    set_execution_context,
    setup_structured_logging,
)
from ..validation import validate_search_value

logger = get_logger(__name__)

console = Console()

OutputFormat = Literal["text", "json"]


async def run_lookups(
    config: LookupConfig, dimension: Dimension, values: tuple[str, ...]
) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """Look up each value in order through one orchestrator.

    Lookup errors are reported per value with the generic search error
    message; the kind of error is kept for logs and JSON output.
    """
    outcomes: list[dict[str, Any]] = []
    async with open_orchestrator(config) as orchestrator:
        for value in values:
            check = validate_search_value(
                dimension, value, config.validation, config.messages.invalid_input
            )
            if not check.is_valid:
                outcomes.append({"value": value, "status": "invalid", "message": check.error_message})
                continue

            try:
                result = await orchestrator.perform_lookup(dimension, value.strip())
            except CensoLookupError as e:
                logger.error(
                    "lookup_failed",
                    extra={"error": e.message, "error_type": type(e).__name__},
                )
                outcomes.append(
                    {
                        "value": value,
                        "status": "error",
                        "error_type": type(e).__name__,
                        "message": config.messages.error_search,
                    }
                )
                continue

            outcomes.append(_lookup_outcome(config, result))
        stats = orchestrator.get_stats()
    return outcomes, stats


def _lookup_outcome(config: LookupConfig, result: LookupResult) -> dict[str, Any]:
    outcome = {
        "value": result.search_value,
        "status": "found" if result.found else "not_found",
        "message": result.message,
        "dimension": result.dimension.value,
        "column": result.column_name,
        "total_rows": result.total_rows,
    }
    if not result.found:
        outcome["redirect_url"] = config.redirect_urls.for_dimension(result.dimension)
    return outcome


def display_outcomes_text(outcomes: list[dict[str, Any]], dimension: Dimension) -> None:
    console.print(f"[dim]Resultados por {dimension.label}[/dim]")
    styles = {"found": "green", "not_found": "yellow", "invalid": "red", "error": "red"}
    for outcome in outcomes:
        style = styles[outcome["status"]]
        console.print(f"[bold]{outcome['value']}[/bold]: [{style}]{outcome['message']}[/{style}]")
        if outcome.get("redirect_url"):
            console.print(f"   Formulario: {outcome['redirect_url']}")
        if outcome.get("column"):
            console.print(f"   Columna: {outcome['column']}")


def display_stats_text(stats: dict[str, Any]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    cache = stats["cache"]
    balancer = stats["balancer"]
    table.add_row("Result cache hits", str(cache["search_hits"]))
    table.add_row("Result cache misses", str(cache["search_misses"]))
    table.add_row("Result cache hit rate", f"{cache['search_hit_rate']}%")
    table.add_row("Cached results", str(cache["search_results_count"]))
    table.add_row("Endpoints", str(balancer["total"]))
    table.add_row("Failed endpoints", str(balancer["failed"]))
    table.add_row("Rotation cursor", str(balancer["current_index"]))

    console.print(table)


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML configuration file (defaults to $CENSO_CONFIG_PATH)",
)
@click.option("--log-level", default=None, help="Override the configured log level")
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None, version: bool) -> None:
    """Check whether an identifier is already registered in the census sheet."""
    if version:
        click.echo(get_version_string())
        ctx.exit(0)

    try:
        config = load_config(config_path)
    except CensoLookupError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        ctx.exit(2)

    setup_structured_logging(
        log_level=log_level or config.logging.level,
        log_file=config.logging.file,
    )
    ctx.obj = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument("values", nargs=-1, required=True)
@click.option(
    "--type",
    "search_type",
    type=click.Choice([d.value for d in Dimension]),
    default=Dimension.CEDULA.value,
    show_default=True,
    help="Which identifier the values are",
)
@click.option("--stats", "show_stats", is_flag=True, help="Show cache and balancer statistics")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_obj
def lookup(
    config: LookupConfig,
    values: tuple[str, ...],
    search_type: str,
    show_stats: bool,
    output_format: OutputFormat,
) -> None:
    """Look up one or more identifiers."""
    dimension = Dimension(search_type)
    set_execution_context(command="lookup", dimension=dimension.value)
    try:
        if output_format == "text":
            console.print(f"[dim]{config.messages.loading}[/dim]")

        outcomes, stats = asyncio.run(run_lookups(config, dimension, values))

        if output_format == "json":
            payload: dict[str, Any] = {"results": outcomes}
            if show_stats:
                payload["stats"] = stats
            click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))
        else:
            display_outcomes_text(outcomes, dimension)
            if show_stats:
                display_stats_text(stats)
    finally:
        clear_execution_context()

    if any(outcome["status"] in ("error", "invalid") for outcome in outcomes):
        sys.exit(1)


async def _check(config: LookupConfig) -> ConnectionReport:
    async with open_orchestrator(config) as orchestrator:
        return await orchestrator.check_connection()


@main.command()
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_obj
def check(config: LookupConfig, output_format: OutputFormat) -> None:
    """Probe the relay with a bulk fetch."""
    set_execution_context(command="check")
    try:
        report = asyncio.run(_check(config))
    finally:
        clear_execution_context()

    if output_format == "json":
        click.echo(report.model_dump_json(indent=2))
    elif report.success:
        console.print(f"[green]{report.message}[/green]")
        console.print(f"   Filas: {report.total_rows}")
        console.print(f"   Columnas: {', '.join(str(h) for h in report.headers)}")
    else:
        console.print(f"[red]{report.message}: {report.error}[/red]")

    if not report.success:
        sys.exit(1)


@main.command("config")
@click.pass_obj
def show_config(config: LookupConfig) -> None:
    """Print the effective configuration."""
    click.echo(
        json.dumps(
            {
                "version": __version__,
                "components": COMPONENT_VERSIONS,
                "config": config.model_dump(mode="json"),
            },
            indent=2,
            ensure_ascii=False,
        )
    )


if __name__ == "__main__":
    main()
