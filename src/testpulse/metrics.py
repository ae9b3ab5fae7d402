"""Reliability and performance metrics computed from a test's run history."""

from typing import Optional, Sequence

from testpulse.models import HealthMetrics, RunRecord, RunStatus

FLAKY_PENALTY = 0.5


def calculate_stability(passed_runs: int, flaky_runs: int, total_runs: int) -> float:
    """Pass rate minus half the flaky rate, floored at zero."""
    pass_rate = passed_runs / total_runs
    flaky_rate = flaky_runs / total_runs
    return max(0.0, pass_rate - FLAKY_PENALTY * flaky_rate)


def compute_metrics(test_name: str, records: Sequence[RunRecord]) -> Optional[HealthMetrics]:
    """Summarize a chronological run sequence.

    Returns None when there are no runs; callers must read that as
    "no data", never as "healthy".
    """
    if not records:
        return None

    passed = failed = flaky = skipped = 0
    total_retries = 0
    total_duration = 0.0
    min_duration = max_duration = records[0].duration_ms
    last_failure = last_success = None

    for r in records:
        if r.status == RunStatus.PASSED:
            passed += 1
            if last_success is None or r.timestamp > last_success:
                last_success = r.timestamp
        elif r.status == RunStatus.FAILED:
            failed += 1
            if last_failure is None or r.timestamp > last_failure:
                last_failure = r.timestamp
        elif r.status == RunStatus.SKIPPED:
            skipped += 1
        # A retried failure is both failed and flaky
        if r.status == RunStatus.FLAKY or r.retries > 0:
            flaky += 1

        total_retries += r.retries
        total_duration += r.duration_ms
        min_duration = min(min_duration, r.duration_ms)
        max_duration = max(max_duration, r.duration_ms)

    total = len(records)
    return HealthMetrics(
        test_name=test_name,
        total_runs=total,
        passed_runs=passed,
        failed_runs=failed,
        flaky_runs=flaky,
        skipped_runs=skipped,
        average_duration_ms=total_duration / total,
        min_duration_ms=min_duration,
        max_duration_ms=max_duration,
        retry_rate=total_retries / total,
        stability_score=calculate_stability(passed, flaky, total),
        last_failure=last_failure,
        last_success=last_success,
    )
