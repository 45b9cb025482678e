import json
import os
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from openlabel.logging.logger import Log
from openlabel.reports.base import (
    BaseReportStore,
    build_decision,
    build_report,
    newest_first,
    validate_decision,
)
from openlabel.reports.exceptions import CorruptReportError, ReportNotFoundError
from openlabel.reports.models import Report, is_valid_report_id, new_report_id


def report_file_path(reports_dir: Path, report_id: str) -> Path:
    """Build path to report file: {reports_dir}/{report_id}.json"""
    return reports_dir / f"{report_id}.json"


class FileReportStore(BaseReportStore):
    """One JSON document per report in a directory.

    Every write goes to a temporary file first and is moved into place, so a
    reader never sees a half-written report. Decision updates are serialized
    on a fixed set of lock stripes keyed by report id.
    """

    MAX_ID_ATTEMPTS = 5
    LOCK_STRIPES = 64

    def __init__(self, reports_dir: Path) -> None:
        self._dir = reports_dir
        self._dir.mkdir(parents=True, exist_ok=True)
        self._create_lock = threading.Lock()
        self._locks = [threading.Lock() for _ in range(self.LOCK_STRIPES)]

    def save(self, analysis: Mapping[str, Any], metadata: Mapping[str, Any]) -> Report:
        with self._create_lock:
            report = build_report(self._unused_id(), analysis, metadata)
            self._write(report)
        Log.info(f"Report {report.id} saved")
        return report

    def list(self) -> list[Report]:
        reports: list[Report] = []
        for path in sorted(self._dir.glob("*.json")):
            try:
                reports.append(self._read(path))
            except CorruptReportError as exc:
                Log.warning(f"Skipping unreadable report {path.name}: {exc}")
        return newest_first(reports)

    def get(self, report_id: str) -> Report:
        return self._read(self._existing_path(report_id))

    def attach_decision(self, report_id: str, decision: str, notes: str = "") -> Report:
        validate_decision(decision)
        with self._lock_for(report_id):
            report = self.get(report_id)
            updated = report.with_decision(build_decision(report, decision, notes))
            self._write(updated)
        Log.info(f"Purchase decision '{decision}' saved for report {report_id}")
        return updated

    def _unused_id(self) -> str:
        for _ in range(self.MAX_ID_ATTEMPTS):
            report_id = new_report_id()
            if not report_file_path(self._dir, report_id).exists():
                return report_id
        raise RuntimeError("Could not allocate an unused report id")

    def _existing_path(self, report_id: str) -> Path:
        if not is_valid_report_id(report_id):
            raise ReportNotFoundError(f"Report {report_id} not found")
        path = report_file_path(self._dir, report_id)
        if not path.exists():
            raise ReportNotFoundError(f"Report {report_id} not found")
        return path

    def _lock_for(self, report_id: str) -> threading.Lock:
        return self._locks[hash(report_id) % self.LOCK_STRIPES]

    @staticmethod
    def _read(path: Path) -> Report:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return Report.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise CorruptReportError(f"Cannot read report {path.name}: {exc}") from exc

    def _write(self, report: Report) -> None:
        path = report_file_path(self._dir, report.id)
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{report.id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(report.to_dict(), fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
