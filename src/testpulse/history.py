"""JSON history store: bounded per-test run log with atomic replace."""

import json
import logging
from pathlib import Path
from typing import Mapping

from pydantic import TypeAdapter, ValidationError

from testpulse.models import RunRecord, RunStatus
from testpulse.utils import atomic_write_text, file_lock

logger = logging.getLogger(__name__)

MAX_RECORDS_PER_TEST = 100

History = Mapping[str, tuple[RunRecord, ...]]

_history_adapter = TypeAdapter(dict[str, list[RunRecord]])


def normalize_record(record: RunRecord) -> RunRecord:
    """A pass that needed retries is not a clean pass."""
    if record.status == RunStatus.PASSED and record.retries > 0:
        return record.model_copy(update={"status": RunStatus.FLAKY})
    return record


def append_record(history: History, record: RunRecord) -> dict[str, tuple[RunRecord, ...]]:
    """Return a new history with record appended and its test trimmed to the cap."""
    updated = dict(history)
    runs = updated.get(record.test_name, ()) + (record,)
    updated[record.test_name] = runs[-MAX_RECORDS_PER_TEST:]
    return updated


class HistoryStore:
    """Per-test execution history persisted as one JSON document.

    Writers serialize on an flock'd sidecar file around the whole
    load/append/replace cycle, so parallel test workers never lose a record.
    Readers take no lock; the file is only ever swapped in whole.
    """

    def __init__(self, base_dir: str | Path = ".testpulse"):
        self.base_dir = Path(base_dir)
        self.data_file = self.base_dir / "history.json"
        self.lock_file = self.base_dir / "history.json.lock"

    def load(self) -> dict[str, tuple[RunRecord, ...]]:
        """Load the full store. Missing or corrupt files yield an empty history."""
        if not self.data_file.exists():
            return {}
        try:
            raw = self.data_file.read_text(encoding="utf-8")
            parsed = _history_adapter.validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable test history %s: %s", self.data_file, e)
            return {}
        return {name: tuple(runs) for name, runs in parsed.items()}

    def get_records(self, test_name: str) -> tuple[RunRecord, ...]:
        return self.load().get(test_name, ())

    def record(self, record: RunRecord) -> bool:
        """Append one run. Returns False if the write failed (already logged)."""
        record = normalize_record(record)
        try:
            with file_lock(self.lock_file):
                history = append_record(self.load(), record)
                self._save(history)
        except OSError as e:
            logger.error("Could not record run of %s: %s", record.test_name, e)
            return False
        logger.debug("Recorded %s run of %s", record.status.value, record.test_name)
        return True

    def clear(self) -> bool:
        """Erase all history."""
        try:
            with file_lock(self.lock_file):
                self._save({})
        except OSError as e:
            logger.error("Could not clear test history %s: %s", self.data_file, e)
            return False
        logger.info("Cleared test history %s", self.data_file)
        return True

    def _save(self, history: History):
        data = {
            name: [r.model_dump(mode="json") for r in runs]
            for name, runs in history.items()
        }
        atomic_write_text(self.data_file, json.dumps(data, indent=2))
