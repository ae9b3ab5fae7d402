"""pytest plugin feeding each test outcome into a testpulse history.

Inert unless ``--testpulse-dir`` is given. Retry counts come from the
``rerun`` attribute that pytest-rerunfailures sets on reports.
"""

from datetime import datetime, timezone
from typing import Optional

import pytest

from testpulse.history import HistoryStore
from testpulse.models import RunRecord, RunStatus


def pytest_addoption(parser):
    group = parser.getgroup("testpulse", "test health monitoring")
    group.addoption(
        "--testpulse-dir",
        default=None,
        help="Record every test outcome into the testpulse history in this directory",
    )


def pytest_configure(config):
    base_dir = config.getoption("testpulse_dir", default=None)
    if base_dir:
        config.pluginmanager.register(RunRecorder(HistoryStore(base_dir)), "testpulse-recorder")


class RunRecorder:
    """Turns pytest reports into RunRecords."""

    def __init__(self, store: HistoryStore):
        self.store = store

    @pytest.hookimpl(trylast=True)
    def pytest_runtest_logreport(self, report):
        record = record_from_report(report)
        if record is not None:
            self.store.record(record)


def record_from_report(report, timestamp: Optional[datetime] = None) -> Optional[RunRecord]:
    """Map one phase report to a RunRecord, or None if the phase is not final.

    The call phase always counts. Setup counts only when it failed or skipped,
    since the call phase then never runs.
    """
    if report.outcome == "rerun":
        return None
    if report.when == "setup" and report.outcome == "passed":
        return None
    if report.when not in ("setup", "call"):
        return None

    if report.outcome == "passed":
        status = RunStatus.PASSED
    elif report.outcome == "failed":
        status = RunStatus.FAILED
    else:
        status = RunStatus.SKIPPED

    return RunRecord(
        test_name=report.nodeid,
        status=status,
        duration_ms=report.duration * 1000,
        retries=getattr(report, "rerun", 0) or 0,
        timestamp=timestamp or datetime.now(timezone.utc),
        error=_error_message(report) if status == RunStatus.FAILED else None,
    )


def _error_message(report) -> Optional[str]:
    text = getattr(report, "longreprtext", "") or ""
    lines = [line for line in text.splitlines() if line.strip()]
    return lines[-1][:500] if lines else None
