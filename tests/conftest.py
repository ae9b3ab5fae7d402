"""Shared fixtures for testpulse tests."""

import pytest
from datetime import datetime, timedelta, timezone

from testpulse.history import HistoryStore
from testpulse.models import HealthMetrics, RunRecord
from testpulse.monitor import HealthMonitor

BASE_TIME = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_runs(name, statuses, duration_ms=100.0, retries=None):
    """Chronological records, one minute apart."""
    retries = retries or [0] * len(statuses)
    durations = duration_ms if isinstance(duration_ms, list) else [duration_ms] * len(statuses)
    return [
        RunRecord(
            test_name=name,
            status=status,
            duration_ms=durations[i],
            retries=retries[i],
            timestamp=BASE_TIME + timedelta(minutes=i),
        )
        for i, status in enumerate(statuses)
    ]


def make_metrics(**overrides):
    fields = dict(
        test_name="t",
        total_runs=10,
        passed_runs=8,
        failed_runs=2,
        flaky_runs=0,
        average_duration_ms=100.0,
        min_duration_ms=50.0,
        max_duration_ms=150.0,
        retry_rate=0.0,
        stability_score=0.8,
    )
    fields.update(overrides)
    return HealthMetrics(**fields)


@pytest.fixture
def store(tmp_path):
    return HistoryStore(base_dir=tmp_path / ".testpulse")


@pytest.fixture
def monitor(store):
    return HealthMonitor(store)


@pytest.fixture
def record_all(store):
    def _record(records):
        for r in records:
            assert store.record(r)
    return _record
