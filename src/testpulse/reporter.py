"""Rich CLI reporter for test health results."""

from typing import Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from testpulse.models import HealthMetrics, HealthReport, Severity


console = Console()

TOP_ALERTS = 5


def print_health_report(report: HealthReport, out: Optional[Console] = None):
    """Print the health summary: overall health, category counts, top alerts."""
    out = out or console
    total = report.total_tests

    summary = Table.grid(padding=(0, 2))
    summary.add_column(justify="left")
    summary.add_column(justify="right")
    summary.add_column(justify="right")
    summary.add_row("Total tests", str(total), "")
    for label, count, style in (
        ("Healthy", report.healthy_tests, "green"),
        ("Flaky", report.flaky_tests, "yellow"),
        ("Slow", report.slow_tests, "yellow"),
        ("Failing", report.failing_tests, "red"),
    ):
        summary.add_row(
            Text(label, style=style), str(count), f"({_share(count, total):.1%})"
        )

    content = Table.grid()
    content.add_row(Text(f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}"))
    content.add_row(Text(
        f"\nOverall Health: {report.overall_health:.1%}\n",
        style=_health_style(report.overall_health),
    ))
    content.add_row(summary)

    if report.alerts:
        content.add_row(Text(f"\nAlerts ({len(report.alerts)}):", style="bold"))
        for severity, style in ((Severity.CRITICAL, "red"), (Severity.WARNING, "yellow")):
            matching = report.alerts_by_severity(severity)
            if not matching:
                continue
            content.add_row(Text(
                f"  {severity.value.capitalize()} ({len(matching)}):", style=style
            ))
            for alert in matching[:TOP_ALERTS]:
                content.add_row(Text(f"    - {alert.test_name}: {alert.message}"))

    out.print(Panel(content, title="Test Health Report", border_style="blue"))


def print_metrics_table(
    metrics: Sequence[HealthMetrics], title: str, out: Optional[Console] = None
):
    """Print query results, one row per test."""
    out = out or console
    table = Table(show_header=True, header_style="bold", title=title)
    table.add_column("TEST", style="bold")
    table.add_column("RUNS", justify="right")
    table.add_column("FAIL", justify="right")
    table.add_column("FLAKY", justify="right")
    table.add_column("RETRY", justify="right")
    table.add_column("STABILITY", justify="right")
    table.add_column("AVG MS", justify="right")

    for m in metrics:
        table.add_row(
            m.test_name,
            str(m.total_runs),
            f"{m.failure_rate:.0%}",
            str(m.flaky_runs),
            f"{m.retry_rate:.0%}",
            Text(f"{m.stability_score:.0%}", style=_health_style(m.stability_score)),
            f"{m.average_duration_ms:,.0f}",
        )
    out.print(table)


def _share(count: int, total: int) -> float:
    return count / total if total else 0.0


def _health_style(score: float) -> str:
    if score >= 0.8:
        return "green"
    elif score >= 0.5:
        return "yellow"
    return "red"
