"""
Bug Report Model
================
Pydantic models for a bug report submitted by the mobile and web clients.

This is the contract between the intake API, report storage and the relay
pipeline. JSON field names are camelCase (what the clients send and what the
pipeline webhook receives); Python attributes are snake_case.

Fields:
    id                  — "br_<uuid4>", assigned by the intake API
    title               — short summary typed by the user
    description         — free-text description
    steps_to_reproduce  — optional reproduction steps
    current_route       — app route the report was filed from
    navigation_history  — routes visited before the report, oldest first
    logs                — client log entries captured with the report
    device_info         — platform / OS / app build information
    user_info           — optional reporter identity
    timestamp           — client-side submission time
    trace_id            — optional distributed trace id
    screenshot_url      — set once a screenshot upload succeeds
    labels              — derived classification (see transforms.labels)
    is_test             — reports flagged as tests are dropped by the pipeline
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LogEntry(CamelModel):
    level: str = "info"
    message: str = ""
    timestamp: str = ""
    context: Optional[Dict[str, Any]] = None


class DeviceInfo(CamelModel):
    platform: str = ""
    os: str = ""
    os_version: str = ""
    app_version: str = ""
    build_number: str = ""
    device_model: Optional[str] = None
    manufacturer: Optional[str] = None


class UserInfo(CamelModel):
    user_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    tier: Optional[str] = None


class ReportLabels(CamelModel):
    platform: Optional[str] = None
    os: Optional[str] = None
    route_domain: Optional[str] = None
    severity: Optional[str] = None
    user_tier: Optional[str] = None
    user_email: Optional[str] = None


class BugReport(CamelModel):
    id: str
    title: str
    description: str = ""
    steps_to_reproduce: Optional[str] = None
    current_route: str = ""
    navigation_history: List[str] = []
    logs: List[LogEntry] = []
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)
    user_info: Optional[UserInfo] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    trace_id: Optional[str] = None
    screenshot_url: Optional[str] = None
    labels: Optional[ReportLabels] = None
    is_test: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """camelCase JSON-ready dict, as posted to the pipeline webhook."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LogWardEntry(BaseModel):
    time: str
    service: str
    level: str
    message: str
    channel: str
    context: Dict[str, Any] = {}
    trace_id: Optional[str] = None
