"""Click CLI commands for testpulse."""

import json
import logging
from datetime import timezone

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from testpulse import __version__
from testpulse.config import ConfigError, load_thresholds
from testpulse.history import HistoryStore
from testpulse.models import RunStatus
from testpulse.monitor import HealthMonitor
from testpulse.reporter import print_health_report, print_metrics_table
from testpulse.trends import classify_trend, regression_slope

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--dir", "base_dir", default=".testpulse", show_default=True,
              help="Directory holding the history file and reports")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False),
              help="YAML file with alert thresholds")
@click.option("--flaky-threshold", type=float, default=None, help="Retry rate threshold")
@click.option("--slow-threshold", type=float, default=None, help="Average duration threshold (ms)")
@click.option("--stability-threshold", type=float, default=None, help="Stability score threshold")
@click.option("--failure-rate-threshold", type=float, default=None, help="Failure rate threshold")
@click.option("-v", "--verbose", is_flag=True, help="Log progress")
@click.option("--debug", is_flag=True, help="Log everything")
@click.pass_context
def main(ctx, base_dir, config_path, flaky_threshold, slow_threshold,
         stability_threshold, failure_rate_threshold, verbose, debug):
    """testpulse: flaky, slow and failing test monitoring from run history."""
    _setup_logging(debug=debug, verbose=verbose)
    try:
        thresholds = load_thresholds(
            config_path,
            flaky_threshold=flaky_threshold,
            slow_test_threshold=slow_threshold,
            stability_threshold=stability_threshold,
            failure_rate_threshold=failure_rate_threshold,
        )
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise SystemExit(2)

    ctx.obj = HealthMonitor(HistoryStore(base_dir=base_dir), thresholds)


def _setup_logging(debug: bool, verbose: bool):
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@main.command()
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.pass_obj
def report(monitor: HealthMonitor, json_out):
    """Generate, save and print the health report."""
    health = monitor.generate_health_report()
    if json_out:
        console.print_json(health.model_dump_json())
    else:
        print_health_report(health, out=console)


@main.command()
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.pass_obj
def flaky(monitor: HealthMonitor, json_out):
    """List flaky tests, highest retry rate first."""
    _print_query(monitor.get_flaky_tests(), "Flaky tests", json_out)


@main.command()
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.pass_obj
def slow(monitor: HealthMonitor, json_out):
    """List slow tests, slowest first."""
    _print_query(monitor.get_slow_tests(), "Slow tests", json_out)


@main.command()
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.pass_obj
def failing(monitor: HealthMonitor, json_out):
    """List failing tests, highest failure rate first."""
    _print_query(monitor.get_failing_tests(), "Failing tests", json_out)


def _print_query(metrics, title, json_out):
    if json_out:
        console.print_json(json.dumps([m.model_dump(mode="json") for m in metrics]))
        return
    if not metrics:
        console.print(f"[green]No {title.lower()}.[/green]")
        return
    print_metrics_table(metrics, title, out=console)


@main.command()
@click.argument("test_name")
@click.option("--status", required=True, type=click.Choice([s.value for s in RunStatus]))
@click.option("--duration", "duration_ms", required=True, type=float, help="Duration in ms")
@click.option("--retries", default=0, type=int, show_default=True)
@click.option("--timestamp", default=None, type=click.DateTime(),
              help="When the run finished (UTC if no offset). Defaults to now")
@click.option("--error", default=None, help="Failure message")
@click.pass_obj
def record(monitor: HealthMonitor, test_name, status, duration_ms, retries, timestamp, error):
    """Record one test execution."""
    if timestamp is not None and timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if duration_ms < 0 or retries < 0:
        console.print("[red]Duration and retries must be non-negative.[/red]")
        raise SystemExit(2)

    if monitor.record(test_name, status, duration_ms, retries, timestamp, error):
        console.print(f"[green]Recorded[/green] {test_name}")
    else:
        console.print(f"[yellow]Could not record {test_name}; see log.[/yellow]")


@main.command()
@click.argument("test_name")
@click.option("--limit", default=20, help="Max runs to show")
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.pass_obj
def trend(monitor: HealthMonitor, test_name, limit, json_out):
    """Show a test's duration trend."""
    records = monitor.store.get_records(test_name)
    if not records:
        console.print(f"[yellow]No history for {test_name}.[/yellow]")
        return

    durations = [r.duration_ms for r in records]
    direction = classify_trend(durations)
    slope = regression_slope(durations)

    if json_out:
        console.print_json(json.dumps({
            "test_name": test_name,
            "trend": direction.value,
            "slope_ms_per_run": slope,
            "durations_ms": durations,
        }))
        return

    table = Table(show_header=True, header_style="bold", title=test_name)
    table.add_column("Timestamp")
    table.add_column("Status")
    table.add_column("Retries", justify="right")
    table.add_column("Duration", justify="right")
    for r in records[-limit:]:
        table.add_row(
            r.timestamp.isoformat()[:19],
            r.status.value,
            str(r.retries),
            f"{r.duration_ms:.0f}ms",
        )
    console.print(table)
    style = {"improving": "green", "stable": "blue", "degrading": "red"}[direction.value]
    console.print(f"Trend: [{style}]{direction.value}[/{style}] ({slope:+.1f}ms per run)")


@main.command()
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_obj
def clear(monitor: HealthMonitor, yes):
    """Erase all recorded history."""
    if not yes and not click.confirm("Erase all test history?"):
        return
    if monitor.clear():
        console.print("[green]Test health data cleared.[/green]")
    else:
        console.print("[yellow]Could not clear history; see log.[/yellow]")


if __name__ == "__main__":
    main()
