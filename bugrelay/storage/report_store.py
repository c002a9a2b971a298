"""
Report Store
============
Filesystem persistence for bug reports, laid out like a blob container:

    <root>/<container>/<report_id>/metadata.json   — full report
    <root>/<container>/<report_id>/logs.json       — client log entries
    <root>/<container>/<report_id>/screenshot.png  — optional screenshot

Writes go through a temporary file and an atomic rename, so a reader never
sees a half-written metadata.json.
"""
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import List

from pydantic import ValidationError

from bugrelay.core.errors import ReportNotFoundError, StorageError
from bugrelay.models.bug_report import BugReport

logger = logging.getLogger(__name__)

METADATA = "metadata.json"
LOGS = "logs.json"
SCREENSHOT = "screenshot.png"

_REPORT_ID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


def _atomic_write(path: Path, data: bytes) -> None:
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
    except OSError:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


class ReportStore:
    def __init__(self, root: str, container: str = "bug-reports", public_base_url: str = "") -> None:
        self.container_path = Path(root) / container
        self.public_base_url = public_base_url.rstrip("/")

    def ensure_container(self) -> None:
        self.container_path.mkdir(parents=True, exist_ok=True)

    def _report_dir(self, report_id: str) -> Path:
        if not _REPORT_ID_RE.match(report_id or ""):
            raise ReportNotFoundError(report_id)
        return self.container_path / report_id

    def save_report(self, report: BugReport) -> None:
        directory = self._report_dir(report.id)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            metadata = report.model_dump_json(by_alias=True, exclude_none=True, indent=2)
            logs = json.dumps(
                [entry.model_dump(mode="json", by_alias=True, exclude_none=True) for entry in report.logs],
                indent=2,
            )
            _atomic_write(directory / METADATA, metadata.encode("utf-8"))
            _atomic_write(directory / LOGS, logs.encode("utf-8"))
        except OSError as exc:
            raise StorageError(f"failed to save report {report.id}: {exc}") from exc

    def save_screenshot(self, report_id: str, data: bytes) -> str:
        directory = self._report_dir(report_id)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            _atomic_write(directory / SCREENSHOT, data)
        except OSError as exc:
            raise StorageError(f"failed to save screenshot for {report_id}: {exc}") from exc
        return self.screenshot_url(report_id)

    def screenshot_url(self, report_id: str) -> str:
        return f"{self.public_base_url}/screenshots/{report_id}"

    def screenshot_path(self, report_id: str) -> Path:
        path = self._report_dir(report_id) / SCREENSHOT
        if not path.is_file():
            raise ReportNotFoundError(report_id)
        return path

    def get_report(self, report_id: str) -> BugReport:
        path = self._report_dir(report_id) / METADATA
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ReportNotFoundError(report_id)
        except OSError as exc:
            raise StorageError(f"failed to read report {report_id}: {exc}") from exc
        try:
            return BugReport.model_validate_json(raw)
        except ValidationError as exc:
            raise StorageError(f"corrupt metadata for report {report_id}: {exc}") from exc

    def list_reports(self) -> List[BugReport]:
        """All readable reports, newest first."""
        if not self.container_path.is_dir():
            return []
        reports: List[BugReport] = []
        for entry in sorted(self.container_path.iterdir()):
            if not (entry / METADATA).is_file():
                continue
            try:
                reports.append(self.get_report(entry.name))
            except StorageError as exc:
                logger.warning("Skipping report %s: %s", entry.name, exc)
        reports.sort(key=lambda r: r.timestamp, reverse=True)
        return reports
