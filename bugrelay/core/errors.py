"""
Errors
======
Domain exceptions. API handlers translate these into JSON error bodies;
the CLI prints them and exits non-zero.
"""


class BugRelayError(Exception):
    """Base class for all bugrelay errors."""


class ConfigError(BugRelayError):
    """Required configuration is missing or malformed."""


class StorageError(BugRelayError):
    """Report storage could not be read or written."""


class ReportNotFoundError(StorageError):
    """No stored report has the requested id."""

    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id
