"""
Formatted Report Model
======================
Output of the bug-report formatter, consumed by every pipeline sink.

Field names are snake_case because they double as template placeholders
in the Discord embed (``{{ severity }}``, ``{{ linear_label_names }}``...).

Linear fields:
    linear_graphql_body      — complete GraphQL request body (JSON string)
    linear_graphql_body_b64  — the same body, base64 encoded (UTF-8)
    linear_title / linear_description / linear_priority
    linear_label_ids         — resolved Linear label ids (never empty strings)
    linear_label_names       — every computed label name, resolved or not

Discord fields:
    emoji, priority_label, timestamp
"""
from typing import List, Optional
from pydantic import BaseModel


class FormattedReport(BaseModel):
    # --- Original data ---
    report_id: str = ""
    title: str
    description_raw: Optional[str] = None
    platform: str
    os: str
    app_version: str
    current_route: Optional[str] = None
    route_domain: str
    user_id: Optional[str] = None
    user_email: Optional[str] = None
    user_tier: Optional[str] = None
    screenshot_url: Optional[str] = None
    trace_id: Optional[str] = None
    severity: str

    # --- Linear ---
    linear_graphql_body: str
    linear_graphql_body_b64: str
    linear_title: str
    linear_description: str
    linear_priority: int
    linear_label_ids: List[str] = []
    linear_label_names: List[str] = []

    # --- Discord ---
    emoji: str
    priority_label: str
    timestamp: str

    is_test: bool = False
