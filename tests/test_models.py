"""Tests for Pydantic model validation and serialization."""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from testpulse.models import (
    HealthAlert,
    HealthReport,
    HealthThresholds,
    RunRecord,
    RunStatus,
    Severity,
    Trend,
)

from conftest import make_metrics


class TestRunRecord:
    def test_status_from_string(self):
        r = RunRecord(
            test_name="login",
            status="failed",
            duration_ms=12.5,
            timestamp=datetime(2026, 1, 15, tzinfo=timezone.utc),
            error="boom",
        )
        assert r.status == RunStatus.FAILED
        assert r.retries == 0

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            RunRecord(
                test_name="t", status="passed", duration_ms=-1,
                timestamp=datetime.now(timezone.utc),
            )

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            RunRecord(
                test_name="t", status="passed", duration_ms=1, retries=-1,
                timestamp=datetime.now(timezone.utc),
            )

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            RunRecord(
                test_name="t", status="exploded", duration_ms=1,
                timestamp=datetime.now(timezone.utc),
            )

    def test_frozen(self):
        r = RunRecord(
            test_name="t", status="passed", duration_ms=1,
            timestamp=datetime.now(timezone.utc),
        )
        with pytest.raises(ValidationError):
            r.status = RunStatus.FAILED

    def test_naive_timestamp_taken_as_utc(self):
        r = RunRecord(
            test_name="t", status="passed", duration_ms=1,
            timestamp=datetime(2026, 1, 15, 12, 0, 0),
        )
        assert r.timestamp == datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def test_json_uses_iso_timestamp_and_string_status(self):
        r = RunRecord(
            test_name="t", status="flaky", duration_ms=1, retries=2,
            timestamp=datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc),
        )
        data = r.model_dump(mode="json")
        assert data["status"] == "flaky"
        assert data["timestamp"].startswith("2026-01-15T12:00:00")


class TestHealthThresholds:
    def test_defaults(self):
        t = HealthThresholds()
        assert t.flaky_threshold == 0.2
        assert t.slow_test_threshold == 30000
        assert t.stability_threshold == 0.8
        assert t.failure_rate_threshold == 0.1

    def test_negative_rejected(self):
        with pytest.raises(ValidationError):
            HealthThresholds(flaky_threshold=-0.1)

    def test_rate_above_one_rejected(self):
        with pytest.raises(ValidationError):
            HealthThresholds(failure_rate_threshold=1.5)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            HealthThresholds(flakyness=0.3)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            HealthThresholds(stability_threshold=-1)

    def test_immutable(self):
        t = HealthThresholds()
        with pytest.raises(ValidationError):
            t.flaky_threshold = 0.9


class TestHealthMetrics:
    def test_failure_rate(self):
        assert make_metrics(failed_runs=3).failure_rate == pytest.approx(0.3)


class TestHealthReport:
    def test_alerts_by_severity(self):
        alerts = [
            HealthAlert(severity=s, test_name="t", message="m", metric="x", value=1, threshold=0.5)
            for s in (Severity.CRITICAL, Severity.WARNING, Severity.CRITICAL, Severity.INFO)
        ]
        report = HealthReport(
            generated_at=datetime.now(timezone.utc),
            total_tests=1,
            healthy_tests=1,
            flaky_tests=0,
            slow_tests=0,
            failing_tests=1,
            overall_health=1.0,
            metrics=[make_metrics()],
            alerts=alerts,
            trends={"t": Trend.STABLE},
        )
        assert len(report.alerts_by_severity(Severity.CRITICAL)) == 2
        assert len(report.alerts_by_severity(Severity.INFO)) == 1

    def test_roundtrip_json(self):
        report = HealthReport(
            generated_at=datetime(2026, 1, 15, tzinfo=timezone.utc),
            total_tests=1,
            healthy_tests=1,
            flaky_tests=0,
            slow_tests=0,
            failing_tests=0,
            overall_health=1.0,
            metrics=[make_metrics(last_success=datetime(2026, 1, 14, tzinfo=timezone.utc))],
            trends={"t": Trend.DEGRADING},
        )
        restored = HealthReport.model_validate_json(report.model_dump_json())
        assert restored == report
        assert restored.trends["t"] == Trend.DEGRADING
