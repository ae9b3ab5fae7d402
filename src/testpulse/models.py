"""All Pydantic models for testpulse."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================
# INGESTION MODELS (what the test runner hands us)
# ============================================================


class RunStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    FLAKY = "flaky"


class RunRecord(BaseModel):
    """One observed execution of a test."""
    model_config = ConfigDict(frozen=True)

    test_name: str
    status: RunStatus
    duration_ms: float = Field(ge=0)
    retries: int = Field(default=0, ge=0)
    timestamp: datetime
    error: Optional[str] = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are taken as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ============================================================
# CONFIGURATION
# ============================================================


class HealthThresholds(BaseModel):
    """Alerting thresholds, fixed for the lifetime of a monitor."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    flaky_threshold: float = Field(default=0.2, ge=0)          # retry rate
    slow_test_threshold: float = Field(default=30000, ge=0)    # average duration, ms
    stability_threshold: float = Field(default=0.8, ge=0, le=1)
    failure_rate_threshold: float = Field(default=0.1, ge=0, le=1)


# ============================================================
# DERIVED MODELS (recomputed on demand, never stored)
# ============================================================


class HealthMetrics(BaseModel):
    """Point-in-time reliability and performance statistics for one test."""
    test_name: str
    total_runs: int
    passed_runs: int
    failed_runs: int
    flaky_runs: int
    skipped_runs: int = 0
    average_duration_ms: float
    min_duration_ms: float
    max_duration_ms: float
    retry_rate: float
    stability_score: float
    last_failure: Optional[datetime] = None
    last_success: Optional[datetime] = None

    @property
    def failure_rate(self) -> float:
        return self.failed_runs / self.total_runs


class Trend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class HealthAlert(BaseModel):
    """A threshold crossing for one metric of one test."""
    severity: Severity
    test_name: str
    message: str
    metric: str
    value: float
    threshold: float


class HealthReport(BaseModel):
    """Aggregate health snapshot across every known test."""
    generated_at: datetime
    total_tests: int
    healthy_tests: int
    flaky_tests: int
    slow_tests: int
    failing_tests: int
    overall_health: float
    metrics: list[HealthMetrics] = Field(default_factory=list)
    alerts: list[HealthAlert] = Field(default_factory=list)
    trends: dict[str, Trend] = Field(default_factory=dict)

    def alerts_by_severity(self, severity: Severity) -> list[HealthAlert]:
        return [a for a in self.alerts if a.severity == severity]
