"""Threshold checks that turn metrics into severity-tiered alerts."""

from testpulse.models import HealthAlert, HealthMetrics, HealthThresholds, Severity, Trend
from testpulse.trends import SLOPE_TOLERANCE

# Fixed critical cut-offs; the configurable thresholds only decide the warning tier.
CRITICAL_STABILITY = 0.5
CRITICAL_FAILURE_RATE = 0.5


def check_health(metrics: HealthMetrics, thresholds: HealthThresholds) -> list[HealthAlert]:
    """Run the four independent checks. A test can raise zero to four alerts."""
    alerts = []
    name = metrics.test_name

    if metrics.retry_rate >= thresholds.flaky_threshold:
        critical = metrics.retry_rate >= 2 * thresholds.flaky_threshold
        alerts.append(HealthAlert(
            severity=Severity.CRITICAL if critical else Severity.WARNING,
            test_name=name,
            message=f"Test is flaky with {metrics.retry_rate:.1%} retry rate",
            metric="retry_rate",
            value=metrics.retry_rate,
            threshold=thresholds.flaky_threshold,
        ))

    if metrics.average_duration_ms >= thresholds.slow_test_threshold:
        critical = metrics.average_duration_ms >= 2 * thresholds.slow_test_threshold
        alerts.append(HealthAlert(
            severity=Severity.CRITICAL if critical else Severity.WARNING,
            test_name=name,
            message=(
                f"Test is slow with average duration of "
                f"{metrics.average_duration_ms / 1000:.1f}s"
            ),
            metric="average_duration_ms",
            value=metrics.average_duration_ms,
            threshold=thresholds.slow_test_threshold,
        ))

    if metrics.stability_score < thresholds.stability_threshold:
        critical = metrics.stability_score < CRITICAL_STABILITY
        alerts.append(HealthAlert(
            severity=Severity.CRITICAL if critical else Severity.WARNING,
            test_name=name,
            message=f"Test has low stability score of {metrics.stability_score:.1%}",
            metric="stability_score",
            value=metrics.stability_score,
            threshold=thresholds.stability_threshold,
        ))

    failure_rate = metrics.failure_rate
    if failure_rate >= thresholds.failure_rate_threshold:
        critical = failure_rate >= CRITICAL_FAILURE_RATE
        alerts.append(HealthAlert(
            severity=Severity.CRITICAL if critical else Severity.WARNING,
            test_name=name,
            message=f"Test has high failure rate of {failure_rate:.1%}",
            metric="failure_rate",
            value=failure_rate,
            threshold=thresholds.failure_rate_threshold,
        ))

    return alerts


def check_trend(test_name: str, trend: Trend, slope: float) -> list[HealthAlert]:
    """Informational alert when a test's duration keeps creeping up."""
    if trend != Trend.DEGRADING:
        return []
    return [HealthAlert(
        severity=Severity.INFO,
        test_name=test_name,
        message=f"Test duration is trending up by {slope:.1f}ms per run",
        metric="duration_trend",
        value=slope,
        threshold=SLOPE_TOLERANCE,
    )]
