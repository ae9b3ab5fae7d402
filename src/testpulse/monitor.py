"""Health monitor: report generation and read-only query views over history."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from testpulse.alerts import check_health, check_trend
from testpulse.history import HistoryStore
from testpulse.metrics import compute_metrics
from testpulse.models import (
    HealthMetrics,
    HealthReport,
    HealthThresholds,
    RunRecord,
    RunStatus,
)
from testpulse.trends import classify_trend, regression_slope
from testpulse.utils import atomic_write_text

logger = logging.getLogger(__name__)

LATEST_REPORT_NAME = "health-report-latest.json"


class HealthMonitor:
    """Computes test health from a HistoryStore against fixed thresholds."""

    def __init__(
        self,
        store: HistoryStore,
        thresholds: Optional[HealthThresholds] = None,
        reports_dir: str | Path | None = None,
    ):
        self.store = store
        self.thresholds = thresholds or HealthThresholds()
        self.reports_dir = Path(reports_dir) if reports_dir else store.base_dir / "reports"

    def record(
        self,
        test_name: str,
        status: RunStatus | str,
        duration_ms: float,
        retries: int = 0,
        timestamp: Optional[datetime] = None,
        error: Optional[str] = None,
    ) -> bool:
        """Ingest one completed test execution."""
        return self.store.record(RunRecord(
            test_name=test_name,
            status=status,
            duration_ms=duration_ms,
            retries=retries,
            timestamp=timestamp or datetime.now(timezone.utc),
            error=error,
        ))

    def compute_metrics(self, test_name: str) -> Optional[HealthMetrics]:
        return compute_metrics(test_name, self.store.get_records(test_name))

    def generate_health_report(self) -> HealthReport:
        """Build the aggregate report and persist it (best effort)."""
        history = self.store.load()
        t = self.thresholds

        all_metrics = []
        alerts = []
        trends = {}
        for test_name, records in history.items():
            metrics = compute_metrics(test_name, records)
            if metrics is None:
                continue
            all_metrics.append(metrics)
            alerts.extend(check_health(metrics, t))

            durations = [r.duration_ms for r in records]
            trend = classify_trend(durations)
            trends[test_name] = trend
            alerts.extend(check_trend(test_name, trend, regression_slope(durations)))

        total = len(all_metrics)
        healthy = sum(1 for m in all_metrics if m.stability_score >= t.stability_threshold)

        report = HealthReport(
            generated_at=datetime.now(timezone.utc),
            total_tests=total,
            healthy_tests=healthy,
            flaky_tests=sum(1 for m in all_metrics if _is_flaky(m, t)),
            slow_tests=sum(1 for m in all_metrics if _is_slow(m, t)),
            failing_tests=sum(1 for m in all_metrics if _is_failing(m, t)),
            overall_health=healthy / total if total > 0 else 1.0,
            metrics=all_metrics,
            alerts=alerts,
            trends=trends,
        )

        self.save_report(report)
        return report

    def save_report(self, report: HealthReport) -> Optional[Path]:
        """Write a timestamped report plus the latest copy. Failures are logged only."""
        stamp = report.generated_at.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S%f")
        report_path = self.reports_dir / f"health-report-{stamp}.json"
        data = report.model_dump_json(indent=2)
        try:
            atomic_write_text(report_path, data)
            atomic_write_text(self.reports_dir / LATEST_REPORT_NAME, data)
        except OSError as e:
            logger.error("Could not save health report to %s: %s", self.reports_dir, e)
            return None
        logger.info("Health report saved to %s", report_path)
        return report_path

    def get_flaky_tests(self) -> list[HealthMetrics]:
        """Tests at or above the flaky threshold, highest retry rate first."""
        return self._query(lambda m: _is_flaky(m, self.thresholds), lambda m: m.retry_rate)

    def get_slow_tests(self) -> list[HealthMetrics]:
        """Tests at or above the slow threshold, slowest first."""
        return self._query(
            lambda m: _is_slow(m, self.thresholds), lambda m: m.average_duration_ms
        )

    def get_failing_tests(self) -> list[HealthMetrics]:
        """Tests at or above the failure rate threshold, highest rate first."""
        return self._query(lambda m: _is_failing(m, self.thresholds), lambda m: m.failure_rate)

    def clear(self) -> bool:
        return self.store.clear()

    def _query(
        self,
        keep: Callable[[HealthMetrics], bool],
        severity: Callable[[HealthMetrics], float],
    ) -> list[HealthMetrics]:
        matches = []
        for test_name, records in self.store.load().items():
            metrics = compute_metrics(test_name, records)
            if metrics and keep(metrics):
                matches.append(metrics)
        matches.sort(key=severity, reverse=True)
        return matches


def _is_flaky(m: HealthMetrics, t: HealthThresholds) -> bool:
    return m.retry_rate >= t.flaky_threshold


def _is_slow(m: HealthMetrics, t: HealthThresholds) -> bool:
    return m.average_duration_ms >= t.slow_test_threshold


def _is_failing(m: HealthMetrics, t: HealthThresholds) -> bool:
    return m.failure_rate >= t.failure_rate_threshold
